#!/usr/bin/env python3

"""Layout oracle that compiles and runs a tiny probe program per query."""

import json
from pathlib import Path

from ...domain.repositories.cache import LayoutCache
from ...exceptions import LayoutQueryError
from ..logging import get_logger
from .clang_driver import ClangDriver

logger = get_logger(__name__)

_PROBE_TEMPLATE = """\
#include "{header}"
#include <stdio.h>

int main() {{
    printf("[ %lu ]", (unsigned long)({expression}));
    return 0;
}}
"""


class ProbeLayoutOracle:
    """Answers sizeof/offsetof questions by asking the compiler.

    Each uncached query spawns clang and the resulting probe, so results
    are stored in the shared ``LayoutCache``.
    """

    def __init__(self, header_path: str | Path, driver: ClangDriver, cache: LayoutCache | None = None):
        self.header_path = str(header_path)
        self.driver = driver
        self.cache = cache if cache is not None else LayoutCache()
        self.query_count = 0
        self._probe_header = Path(header_path).resolve().as_posix()

    def _probe(self, expression: str) -> int:
        code = _PROBE_TEMPLATE.format(header=self._probe_header, expression=expression)
        self.query_count += 1
        output = self.driver.compile_and_run(code)
        try:
            return int(json.loads(output)[0])
        except (json.JSONDecodeError, IndexError, TypeError, ValueError) as e:
            raise LayoutQueryError(f"unexpected probe output {output!r} for {expression}") from e

    def size_of(self, type_name: str) -> int:
        key = LayoutCache.make_key(self.header_path, type_name)
        cached = self.cache.get_size(key)
        if cached is not None:
            return cached

        logger.info(f'Querying sizeof "{type_name}"')
        size = self._probe(f"sizeof({type_name})")
        self.cache.put_size(key, size)
        return size

    def offset_of(self, type_name: str, field_name: str) -> int:
        key = LayoutCache.make_key(self.header_path, type_name, field_name)
        cached = self.cache.get_offset(key)
        if cached is not None:
            return cached

        logger.info(f'Querying offsetof "{type_name}"."{field_name}"')
        offset = self._probe(f"(size_t)&(reinterpret_cast<{type_name}*>(0)->{field_name})")
        self.cache.put_offset(key, offset)
        return offset

    def field_size_of(self, type_name: str, field_name: str) -> int:
        key = LayoutCache.make_key(self.header_path, type_name, field_name)
        cached = self.cache.get_size(key)
        if cached is not None:
            return cached

        logger.info(f'Querying sizeof "{type_name}"."{field_name}"')
        size = self._probe(f"sizeof(reinterpret_cast<{type_name}*>(0)->{field_name})")
        self.cache.put_size(key, size)
        return size
