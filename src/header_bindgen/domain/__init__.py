#!/usr/bin/env python3

"""Domain layer containing the type graph, resolution and code generation."""

from . import models, repositories, services

__all__ = [
    "models",
    "repositories",
    "services",
]
