"""Main entry point for header-bindgen."""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

from .application import BindingsGenerator
from .domain.services.generation import DEFAULT_LIB_PATH, GeneratorOptions
from .exceptions import BindgenError
from .infrastructure.config import LAYOUT_BACKENDS, Config
from .infrastructure.logging import LoggerSetup, get_logger, log_timing


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="header-bindgen",
        description="Generate Python ctypes bindings with exact native struct layout from a C header",
        epilog="""
Examples:
  # Generate mylib_bindings.py next to the current directory
  header-bindgen include/mylib.h

  # Extra include directories and a custom output file
  header-bindgen include/mylib.h -I third_party/include -o bindings/mylib.py

  # Load the library from an explicit path expression
  header-bindgen include/mylib.h --lib-path '"/opt/mylib/lib/libmylib"'

  # Read layouts from DWARF instead of running probe programs
  header-bindgen include/mylib.h --layout-backend dwarf

  # Using .env file for configuration
  echo 'HEADER_PATH=include/mylib.h' > .env
  header-bindgen
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "header",
        type=Path,
        nargs="?",
        help="Path to the C header (optional if using .env)",
    )
    parser.add_argument("-o", "--output", type=Path, help="Generated module path (default: <header>_bindings.py)")
    parser.add_argument(
        "-I",
        "--include",
        dest="include_dirs",
        type=Path,
        action="append",
        default=[],
        metavar="DIR",
        help="Additional include directory for clang (repeatable)",
    )
    parser.add_argument("--cache", type=Path, metavar="PATH", help="Layout cache path prefix")
    parser.add_argument(
        "--lib-path",
        metavar="EXPR",
        help=f"Python expression for the shared library path without suffix (default: {DEFAULT_LIB_PATH})",
    )
    parser.add_argument("--layout-backend", choices=LAYOUT_BACKENDS, help="How sizes and offsets are computed")
    parser.add_argument("--fail-fast", action="store_true", help="Abort on the first symbol that fails to generate")
    parser.add_argument("--struct-sizes", action="store_true", help="Emit <Struct>__ffi_size constants")
    parser.add_argument("--func-decl-types", action="store_true", help="Emit <func>__signature type aliases")
    parser.add_argument("--no-readers", action="store_true", help="Do not emit read_* functions")
    parser.add_argument("--no-writers", action="store_true", help="Do not emit write_* functions")
    parser.add_argument("--no-helpers", action="store_true", help="Do not emit PtrT/NULL/alloc_* helpers")
    parser.add_argument("--no-wrappers", action="store_true", help="Do not emit callable function wrappers")
    parser.add_argument("--no-symbol-import", action="store_true", help="Do not load the shared library")
    parser.add_argument("--no-allocs", action="store_true", help="Do not emit alloc_<Struct> functions")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output with debug logs")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace, config: Config) -> GeneratorOptions:
    return GeneratorOptions(
        readers=not args.no_readers,
        writers=not args.no_writers,
        helpers=not args.no_helpers,
        func_decl_types=args.func_decl_types,
        func_wrappers=not args.no_wrappers,
        func_symbols_import=not args.no_symbol_import,
        struct_sizes=args.struct_sizes,
        struct_allocs=not args.no_allocs,
        fail_fast=args.fail_fast,
        lib_path=config.lib_path or DEFAULT_LIB_PATH,
    )


@log_timing
def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Generate bindings for one header."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = Config.from_args(
            header_path=args.header,
            output_path=args.output,
            cache_path=args.cache,
            include_dirs=args.include_dirs,
            lib_path=args.lib_path,
            layout_backend=args.layout_backend,
            verbose=args.verbose or None,
        )
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    LoggerSetup.initialize(config.log_dir, verbose=config.verbose)
    logger = get_logger(__name__)

    logger.debug(f"Header: {config.header_path}")
    logger.debug(f"Output: {config.output_path}")

    config.ensure_output_dir()
    options = build_options(args, config)

    try:
        with BindingsGenerator(config) as generator:
            result = generator.generate(options)
            output_path = generator.write(result)
    except BindgenError as e:
        logger.error(f"Fatal error during generation: {e}")
        if config.verbose:
            logger.exception("Traceback")
        sys.exit(1)

    # Print summary
    logger.info("=" * 70)
    logger.info("GENERATION SUMMARY")
    logger.info("=" * 70)
    logger.info(f"Header: {config.header_path}")
    logger.info(f"Output: {output_path}")
    logger.info(f"Failed symbols: {len(result.failed_symbols)}")
    if (log_file := LoggerSetup.get_log_file_path()) is not None:
        logger.info(f"Log file: {log_file}")

    if result.failed_symbols:
        logger.info("Failed symbols (write these bindings by hand):")
        for name in sorted(result.failed_symbols):
            logger.info(f"  - {name}")

    sys.exit(0)


if __name__ == "__main__":
    main()
