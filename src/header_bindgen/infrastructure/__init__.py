#!/usr/bin/env python3

"""Infrastructure layer: configuration, logging and the clang toolchain."""
