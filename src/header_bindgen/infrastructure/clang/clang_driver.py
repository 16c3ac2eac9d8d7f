#!/usr/bin/env python3

"""Thin wrapper around the clang executable."""

import json
import shutil
import subprocess
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from ...exceptions import ClangError
from ..config import get_config
from ..logging import get_logger

logger = get_logger(__name__)


class ClangDriver:
    """Runs clang for AST dumps and layout probe programs.

    Probe binaries and objects live in a private temporary directory that
    ``clean()`` removes.
    """

    def __init__(
        self,
        include_dirs: Iterable[str | Path] = (),
        clang_binary: str | None = None,
        language: str | None = None,
        timeout: float | None = None,
    ):
        config = get_config()
        self.clang_binary = clang_binary or config["CLANG_BINARY"]
        self.language = language or config["CLANG_LANGUAGE"]
        if timeout is None:
            # 0 means wait for clang indefinitely
            timeout = config["CLANG_TIMEOUT_S"] or None
        self.timeout = timeout
        self.include_dirs: list[Path] = [Path(d) for d in include_dirs]
        self._work_dir: Path | None = None

    def __enter__(self) -> "ClangDriver":
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object | None) -> None:
        self.clean()

    @property
    def include_args(self) -> list[str]:
        return [f"-I{d}" for d in self.include_dirs]

    @property
    def work_dir(self) -> Path:
        if self._work_dir is None:
            self._work_dir = Path(tempfile.mkdtemp(prefix="header_bindgen_"))
            logger.debug(f"Created work directory {self._work_dir}")
        return self._work_dir

    def _run(self, command: list[str], stdin: str | None = None) -> str:
        """Run a command and return its stdout.

        Raises:
            ClangError: If the command cannot be started or exits non-zero
        """
        logger.debug(f"exec {' '.join(command)}")
        try:
            completed = subprocess.run(
                command,
                input=stdin,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ClangError(f"executable not found: {command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise ClangError(f"command timed out after {self.timeout}s: {' '.join(command)}") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise ClangError(f"command failed ({e.returncode}): {' '.join(command)}\n{stderr}") from e
        return completed.stdout

    def dump_ast(self, header_path: str | Path) -> list[dict[str, Any]]:
        """Dump the header's AST as JSON and return the top-level declarations."""
        command = [
            self.clang_binary,
            "-Xclang",
            "-ast-dump=json",
            "-fsyntax-only",
            *self.include_args,
            str(header_path),
        ]
        logger.info(f'Dumping AST for "{header_path}"')
        output = self._run(command)
        try:
            root = json.loads(output)
        except json.JSONDecodeError as e:
            raise ClangError(f"clang produced invalid AST JSON for {header_path}: {e}") from e
        return list(root.get("inner") or [])

    def compile_and_run(self, code: str) -> str:
        """Compile ``code`` into a probe executable, run it and return its stdout."""
        executable = self.work_dir / "layout_probe"
        self._run(
            [self.clang_binary, *self.include_args, "-x", self.language, "-", "-o", str(executable)],
            stdin=code,
        )
        return self._run([str(executable)])

    def compile_object(self, code: str, name: str = "layout_probe") -> Path:
        """Compile ``code`` into an object file carrying every declared type's debug info."""
        obj_path = self.work_dir / f"{name}.o"
        self._run(
            [
                self.clang_binary,
                *self.include_args,
                "-x",
                self.language,
                "-c",
                "-g",
                "-fno-eliminate-unused-debug-types",
                "-",
                "-o",
                str(obj_path),
            ],
            stdin=code,
        )
        return obj_path

    def clean(self) -> None:
        """Remove probe artifacts."""
        if self._work_dir is not None:
            logger.debug(f"Removing work directory {self._work_dir}")
            shutil.rmtree(self._work_dir, ignore_errors=True)
            self._work_dir = None
