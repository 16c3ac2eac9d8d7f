#!/usr/bin/env python3

"""Domain models for header-bindgen."""

from . import c_types

__all__ = [
    "c_types",
]
