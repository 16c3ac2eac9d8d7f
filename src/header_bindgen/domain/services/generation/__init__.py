#!/usr/bin/env python3

"""Layout code generation for resolved type graphs."""

from .codegen import GenerationResult, LayoutCodeGen, generate, py_ident
from .failure_tracker import FailureTracker
from .marshal_types import ffi_kind_of, marshal_type, prototype_expr, restype_expr
from .options import DEFAULT_LIB_PATH, GeneratorOptions, default_lib_path_code

__all__ = [
    "DEFAULT_LIB_PATH",
    "FailureTracker",
    "GenerationResult",
    "GeneratorOptions",
    "LayoutCodeGen",
    "default_lib_path_code",
    "ffi_kind_of",
    "generate",
    "marshal_type",
    "prototype_expr",
    "py_ident",
    "restype_expr",
]
