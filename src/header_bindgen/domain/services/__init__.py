#!/usr/bin/env python3

"""Domain services: AST resolution and code generation."""

from . import generation, parsing

__all__ = ["generation", "parsing"]
