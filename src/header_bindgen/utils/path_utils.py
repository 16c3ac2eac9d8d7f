"""Path utilities for generated modules."""

import keyword
import re
import string
from pathlib import Path


def sanitize_module_name(name: str, replacement: str = "_") -> str:
    """Sanitize a string into an importable Python module name."""
    if not name:
        return "bindings"

    valid_chars = set(string.ascii_letters + string.digits + "_")
    sanitized = "".join(c if c in valid_chars else replacement for c in name)

    # Collapse multiple replacement characters
    if replacement in sanitized:
        pattern = re.escape(replacement) + "+"
        sanitized = re.sub(pattern, replacement, sanitized)

    sanitized = sanitized.strip(replacement)

    if not sanitized:
        return "bindings"

    # Module names cannot start with a digit or be a keyword
    if sanitized[0].isdigit() or keyword.iskeyword(sanitized):
        sanitized = f"{replacement}{sanitized}"

    return sanitized


def default_output_path(header_path: str | Path) -> Path:
    """Default generated module path for a header: ``<stem>_bindings.py`` in the cwd."""
    return Path(f"{sanitize_module_name(Path(header_path).stem)}_bindings.py")
