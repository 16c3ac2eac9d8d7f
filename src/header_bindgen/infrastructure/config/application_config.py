"""Configuration management for header-bindgen."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ...utils.path_utils import default_output_path

LAYOUT_BACKENDS = ("probe", "dwarf")


@dataclass
class Config:
    """Configuration for one bindings generation run."""

    header_path: Path
    output_path: Path
    cache_path: Optional[Path] = None
    include_dirs: list[Path] = field(default_factory=list)
    lib_path: Optional[str] = None
    layout_backend: str = "probe"
    verbose: bool = False
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from environment variables or .env file.

        Args:
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config object
        """
        if env_path is None:
            env_path = Path.cwd() / ".env"

        if env_path.exists():
            load_dotenv(env_path)

        header_path = Path(os.getenv("HEADER_PATH", "include/mylib.h"))
        output_path_str = os.getenv("OUTPUT_PATH")
        output_path = Path(output_path_str) if output_path_str else default_output_path(header_path)
        cache_path_str = os.getenv("CACHE_PATH")
        include_dirs_str = os.getenv("INCLUDE_DIRS", "")
        log_dir_str = os.getenv("LOG_DIR")
        verbose_str = os.getenv("VERBOSE", "false").lower()

        return cls(
            header_path=header_path,
            output_path=output_path,
            cache_path=Path(cache_path_str) if cache_path_str else None,
            include_dirs=[Path(p) for p in include_dirs_str.split(os.pathsep) if p],
            lib_path=os.getenv("LIB_PATH") or None,
            layout_backend=os.getenv("LAYOUT_BACKEND", "probe").lower(),
            verbose=verbose_str in ("true", "1", "yes"),
            log_dir=Path(log_dir_str) if log_dir_str else None,
        )

    @classmethod
    def from_args(
        cls,
        header_path: Optional[Path] = None,
        output_path: Optional[Path] = None,
        cache_path: Optional[Path] = None,
        include_dirs: Optional[list[Path]] = None,
        lib_path: Optional[str] = None,
        layout_backend: Optional[str] = None,
        verbose: Optional[bool] = None,
    ) -> "Config":
        """
        Create configuration from explicit arguments, falling back to environment.

        Args:
            header_path: Path to the C header (overrides env)
            output_path: Generated module path (overrides env)
            cache_path: Layout cache prefix (overrides env)
            include_dirs: Extra clang include directories (appended to env)
            lib_path: Python expression for the shared library path (overrides env)
            layout_backend: "probe" or "dwarf" (overrides env)
            verbose: Enable verbose output (overrides env)

        Returns:
            Config object
        """
        config = cls.from_env()

        if header_path is not None:
            config.header_path = header_path
            if output_path is None and not os.getenv("OUTPUT_PATH"):
                config.output_path = default_output_path(header_path)
        if output_path is not None:
            config.output_path = output_path
        if cache_path is not None:
            config.cache_path = cache_path
        if include_dirs:
            config.include_dirs = [*config.include_dirs, *include_dirs]
        if lib_path is not None:
            config.lib_path = lib_path
        if layout_backend is not None:
            config.layout_backend = layout_backend.lower()
        if verbose is not None:
            config.verbose = verbose

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.header_path.exists():
            raise ValueError(f"Header file not found: {self.header_path}")

        if not self.header_path.is_file():
            raise ValueError(f"Not a file: {self.header_path}")

        if self.layout_backend not in LAYOUT_BACKENDS:
            raise ValueError(
                f"Unknown layout backend {self.layout_backend!r}, expected one of {LAYOUT_BACKENDS}"
            )

        for include_dir in self.include_dirs:
            if not include_dir.is_dir():
                raise ValueError(f"Include directory not found: {include_dir}")

    def ensure_output_dir(self) -> None:
        """Create the output file's directory if it doesn't exist."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
