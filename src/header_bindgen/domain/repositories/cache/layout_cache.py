#!/usr/bin/env python3

"""Persistent sizeof/offsetof cache for layout oracle queries."""

import json
from pathlib import Path
from typing import Any

from ....infrastructure.logging import get_logger

logger = get_logger(__name__)

KEY_SEPARATOR = "::"


class LayoutCache:
    """Manages the disk-based size and offset tables.

    Each table is its own JSON file next to ``cache_path``:
    ``<cache_path>_sizeof.json`` and ``<cache_path>_offsetof.json``.
    Keys are built from ``(header, type[, field])``.
    """

    def __init__(self, cache_path: str | Path | None = None):
        """Initialize the cache, loading existing tables when present.

        Args:
            cache_path: Path prefix of the cache files; None keeps the cache in memory
        """
        self.cache_path = Path(cache_path) if cache_path is not None else None
        self._modified = False
        self.sizes: dict[str, int] = self._load_table("sizeof")
        self.offsets: dict[str, int] = self._load_table("offsetof")

    @staticmethod
    def make_key(header: str, type_name: str, field_name: str | None = None) -> str:
        """Build a cache key for a type or a type's field."""
        parts = [header, type_name]
        if field_name is not None:
            parts.append(field_name)
        return KEY_SEPARATOR.join(parts)

    def _table_path(self, table: str) -> Path | None:
        if self.cache_path is None:
            return None
        return self.cache_path.with_name(f"{self.cache_path.name}_{table}.json")

    def _load_table(self, table: str) -> dict[str, int]:
        """Load one table from disk.

        A missing file is normal on the first run; a corrupted file is
        logged and ignored.
        """
        path = self._table_path(table)
        if path is None:
            return {}

        if not path.exists():
            logger.info(f"{table} cache not found at {path}, layout queries may take some time")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load {table} cache from {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring {table} cache at {path}: expected a JSON object")
            return {}

        logger.info(f"Loaded {table} cache from {path} ({len(data)} entries)")
        return {str(k): int(v) for k, v in data.items()}

    def get_size(self, key: str) -> int | None:
        return self.sizes.get(key)

    def put_size(self, key: str, size: int) -> None:
        if self.sizes.get(key) != size:
            self.sizes[key] = size
            self._modified = True

    def get_offset(self, key: str) -> int | None:
        return self.offsets.get(key)

    def put_offset(self, key: str, offset: int) -> None:
        if self.offsets.get(key) != offset:
            self.offsets[key] = offset
            self._modified = True

    @property
    def is_modified(self) -> bool:
        return self._modified

    def save(self) -> None:
        """Save both tables to disk if modified."""
        if not self._modified or self.cache_path is None:
            return

        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            for table, data in (("sizeof", self.sizes), ("offsetof", self.offsets)):
                path = self._table_path(table)
                assert path is not None
                with open(path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, sort_keys=True)
            logger.info(
                f"Saved layout cache to {self.cache_path} "
                f"({len(self.sizes)} sizes, {len(self.offsets)} offsets)"
            )
            self._modified = False
        except OSError as e:
            logger.error(f"Failed to save layout cache to {self.cache_path}: {e}")

    def get_statistics(self) -> dict[str, Any]:
        """Get cache statistics for monitoring.

        Returns:
            Dictionary with cache statistics
        """
        return {
            "sizes": len(self.sizes),
            "offsets": len(self.offsets),
            "modified": self._modified,
            "cache_path": str(self.cache_path) if self.cache_path else None,
        }
