#!/usr/bin/env python3

"""Options controlling what the layout code generator emits."""

from collections.abc import Callable
from dataclasses import dataclass

DEFAULT_LIB_PATH = 'str(_Path(__file__).parent / "mylib")'


def default_lib_path_code(out: list[str], options: "GeneratorOptions") -> str:
    """Emit ``_LIB_PATH`` as ``lib_path`` plus the platform's shared-library suffix.

    Returns:
        Name of the variable holding the library path
    """
    out.append('_LIB_SUFFIX = {"darwin": "dylib", "win32": "dll"}.get(_sys.platform, "so")\n')
    out.append(f'_LIB_PATH = {options.lib_path} + "." + _LIB_SUFFIX\n')
    return "_LIB_PATH"


LibPathCode = Callable[[list[str], "GeneratorOptions"], str]


@dataclass
class GeneratorOptions:
    """What to emit for each declaration.

    ``lib_path`` is a Python expression evaluated inside the generated
    module, where ``pathlib.Path`` and ``sys`` are imported as ``_Path``
    and ``_sys``; ``lib_path_code`` may replace the whole snippet that
    defines the path and must return the name of the variable it defines.
    """

    indent_width: int = 4
    readers: bool = True
    writers: bool = True
    helpers: bool = True
    func_decl_types: bool = False
    func_wrappers: bool = True
    func_symbols_import: bool = True
    struct_sizes: bool = False
    struct_allocs: bool = True
    fail_fast: bool = False
    lib_path: str = DEFAULT_LIB_PATH
    lib_path_code: LibPathCode = default_lib_path_code
