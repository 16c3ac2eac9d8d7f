"""Root logger configuration for the command line tool."""

import logging
import sys
from datetime import datetime
from pathlib import Path

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class LoggerSetup:
    """One-shot setup of the console handler and the per-run log file."""

    _initialized = False
    _log_file_path: Path | None = None

    @classmethod
    def initialize(cls, log_dir: Path | None, verbose: bool = False) -> None:
        """
        Configure the root logger once per process.

        Console output goes to stderr so bindings written to stdout stay
        clean. When ``log_dir`` is given, a timestamped file in it records
        everything at DEBUG.

        Args:
            log_dir: Directory for the run log, or None for console only
            verbose: Show DEBUG messages on the console
        """
        if cls._initialized:
            return

        root = logging.getLogger()
        root.setLevel(logging.DEBUG)
        root.handlers.clear()

        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.DEBUG if verbose else logging.INFO)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root.addHandler(console)

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            cls._log_file_path = log_dir / f"header_bindgen_{datetime.now():%Y%m%d_%H%M%S}.log"
            run_log = logging.FileHandler(cls._log_file_path, encoding="utf-8")
            run_log.setLevel(logging.DEBUG)
            run_log.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            root.addHandler(run_log)

        cls._initialized = True
        if cls._log_file_path is not None:
            logging.getLogger(__name__).debug(f"Run log: {cls._log_file_path}")

    @classmethod
    def get_log_file_path(cls) -> Path | None:
        return cls._log_file_path
