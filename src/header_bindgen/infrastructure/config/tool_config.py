"""Toolchain defaults, overridable through ``BINDGEN_*`` environment variables."""

import os
from pathlib import Path
from typing import Any

from ..logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "BINDGEN_"
TRUE_STRINGS = ("true", "1", "yes", "on")

DEFAULT_CONFIG: dict[str, Any] = {
    # clang invocation
    "CLANG_BINARY": "clang",
    "CLANG_LANGUAGE": "c++",
    "CLANG_TIMEOUT_S": 0,
    # Layout cache
    "CACHE_DIR": ".cache",
    "ENABLE_PERSISTENT_CACHE": True,
}


def _coerce(key: str, default: Any, raw: str) -> Any:
    """Convert an environment string to the type of its default."""
    if isinstance(default, bool):
        return raw.strip().lower() in TRUE_STRINGS
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Ignoring {ENV_PREFIX}{key}={raw!r}: not an integer")
            return default
    return raw


def get_config() -> dict[str, Any]:
    """Return the defaults with any ``BINDGEN_<KEY>`` overrides applied."""
    config = dict(DEFAULT_CONFIG)
    for key, default in DEFAULT_CONFIG.items():
        raw = os.getenv(ENV_PREFIX + key)
        if raw is not None:
            config[key] = _coerce(key, default, raw)
    return config


def get_cache_file_path(header_path: str | Path) -> Path:
    """Layout cache prefix for a header, inside ``CACHE_DIR`` next to it.

    The tables live at ``<prefix>_sizeof.json`` and ``<prefix>_offsetof.json``.
    """
    header = Path(header_path)
    cache_dir = header.parent / get_config()["CACHE_DIR"]
    cache_dir.mkdir(exist_ok=True)
    return cache_dir / f"{header.stem}_layout"
