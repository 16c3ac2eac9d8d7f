#!/usr/bin/env python3
"""
Entry point for header-bindgen.

This file allows running the tool directly from the project root:
    python main.py include/mylib.h -o mylib_bindings.py
"""

import sys
from pathlib import Path

# Add src to path for development mode
project_root = Path(__file__).parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from header_bindgen.main import main

if __name__ == "__main__":
    main()
