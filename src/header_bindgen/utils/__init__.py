#!/usr/bin/env python3

"""Utility helpers."""

from .path_utils import default_output_path, sanitize_module_name

__all__ = ["default_output_path", "sanitize_module_name"]
