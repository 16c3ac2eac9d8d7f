"""Pytest configuration and shared fixtures."""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from header_bindgen.domain.models.c_types import TypeGraph
from header_bindgen.domain.services.generation import GeneratorOptions, generate


class FakeLayoutOracle:
    """Layout oracle answering from dictionaries instead of the compiler.

    Unknown names raise ``KeyError`` so a test fails loudly on a query it
    did not expect.
    """

    def __init__(
        self,
        sizes: dict[str, int] | None = None,
        offsets: dict[tuple[str, str], int] | None = None,
        field_sizes: dict[tuple[str, str], int] | None = None,
    ):
        self.sizes = dict(sizes or {})
        self.offsets = dict(offsets or {})
        self.field_sizes = dict(field_sizes or {})
        self.query_count = 0
        self.queries: list[tuple[str, ...]] = []

    def size_of(self, type_name: str) -> int:
        self.query_count += 1
        self.queries.append(("sizeof", type_name))
        return self.sizes[type_name]

    def offset_of(self, type_name: str, field_name: str) -> int:
        self.query_count += 1
        self.queries.append(("offsetof", type_name, field_name))
        return self.offsets[(type_name, field_name)]

    def field_size_of(self, type_name: str, field_name: str) -> int:
        self.query_count += 1
        self.queries.append(("sizeof", type_name, field_name))
        return self.field_sizes[(type_name, field_name)]


@pytest.fixture
def fake_oracle() -> FakeLayoutOracle:
    """Empty fake oracle; tests fill in the tables they need."""
    return FakeLayoutOracle()


@pytest.fixture(scope="session")
def header_path() -> Path:
    """Header path used for resolver tests (never read from disk)."""
    return Path("include/mylib.h")


def load_module(text: str) -> dict[str, Any]:
    """Execute generated module text and return its namespace."""
    namespace: dict[str, Any] = {"__name__": "generated_bindings", "__file__": "generated_bindings.py"}
    exec(compile(text, "generated_bindings.py", "exec"), namespace)
    return namespace


@pytest.fixture
def offline_options() -> GeneratorOptions:
    """Options for generated code that can run without a native library."""
    return GeneratorOptions(func_symbols_import=False, func_wrappers=False)


@pytest.fixture
def build_module(offline_options: GeneratorOptions) -> Callable[[TypeGraph], dict[str, Any]]:
    """Generate bindings for a graph and execute them."""

    def _build(graph: TypeGraph) -> dict[str, Any]:
        result = generate(graph, offline_options)
        assert not result.failed_symbols, f"unexpected failures: {result.failed_symbols}"
        return load_module(result.text)

    return _build


@pytest.fixture
def load_generated() -> Callable[[str], dict[str, Any]]:
    """Executor for generated module text."""
    return load_module
