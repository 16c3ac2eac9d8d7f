#!/usr/bin/env python3

"""Repositories for persisted layout facts."""

from . import cache

__all__ = [
    "cache",
]
