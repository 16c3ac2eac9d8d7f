#!/usr/bin/env python3

"""Application layer: the end-to-end bindings pipeline."""

from .bindings_generator import BindingsGenerator

__all__ = ["BindingsGenerator"]
