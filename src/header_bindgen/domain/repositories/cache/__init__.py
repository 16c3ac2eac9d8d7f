#!/usr/bin/env python3

"""Cache implementations for layout facts."""

from .layout_cache import LayoutCache

__all__ = [
    "LayoutCache",
]
