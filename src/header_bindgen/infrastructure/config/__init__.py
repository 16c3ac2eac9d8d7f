#!/usr/bin/env python3

"""Infrastructure configuration module."""

from .application_config import LAYOUT_BACKENDS, Config
from .tool_config import get_cache_file_path, get_config

__all__ = ["Config", "LAYOUT_BACKENDS", "get_cache_file_path", "get_config"]
