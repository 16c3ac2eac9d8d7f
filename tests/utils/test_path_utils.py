"""Tests for path utilities."""

from pathlib import Path

import pytest

from header_bindgen.utils.path_utils import default_output_path, sanitize_module_name


@pytest.mark.unit
@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("mylib", "mylib"),
        ("my-lib.v2", "my_lib_v2"),
        ("__weird__", "weird"),
        ("3d_math", "_3d_math"),
        ("class", "_class"),
        ("", "bindings"),
        ("---", "bindings"),
    ],
)
def test_sanitize_module_name(name: str, expected: str) -> None:
    assert sanitize_module_name(name) == expected


@pytest.mark.unit
def test_default_output_path() -> None:
    assert default_output_path("include/my-lib.h") == Path("my_lib_bindings.py")
    assert default_output_path(Path("/abs/path/zlib.h")) == Path("zlib_bindings.py")
