#!/usr/bin/env python3

"""Interface the resolver uses to ask for native layout facts."""

from typing import Protocol


class LayoutOracle(Protocol):
    """Byte sizes and offsets as the native compiler lays them out.

    ``type_name`` is spelled the way the probe compiler accepts it
    (``Outer::Inner`` for records nested in another record).
    """

    query_count: int

    def size_of(self, type_name: str) -> int: ...

    def offset_of(self, type_name: str, field_name: str) -> int: ...

    def field_size_of(self, type_name: str, field_name: str) -> int: ...
