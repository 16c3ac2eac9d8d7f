"""header-bindgen - ctypes bindings with exact native layout from C headers."""

from .application import BindingsGenerator
from .domain.models.c_types import TypeGraph
from .domain.services.generation import GeneratorOptions, LayoutCodeGen, generate
from .domain.services.parsing import AstResolver, resolve
from .infrastructure.config import Config
from .main import main

__all__ = [
    "AstResolver",
    "BindingsGenerator",
    "Config",
    "GeneratorOptions",
    "LayoutCodeGen",
    "TypeGraph",
    "generate",
    "main",
    "resolve",
]
