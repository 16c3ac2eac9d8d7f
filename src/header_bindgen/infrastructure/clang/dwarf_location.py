"""Decoding of ``DW_AT_data_member_location`` values.

DWARF 4/5 producers store a member offset as a constant. ``-gdwarf-2``
and some older producers store a location expression, in practice
``[DW_OP_plus_uconst, offset]``. Anything else is not a fixed offset.
"""

DW_OP_PLUS_UCONST = 0x23


def parse_location_offset(attr_value: int | list[int] | tuple[int, ...] | None) -> int | None:
    """Return the member offset in bytes, or None when it cannot be decoded.

        >>> parse_location_offset(4)
        4
        >>> parse_location_offset([0x23, 16])
        16
    """
    if isinstance(attr_value, int):
        return attr_value
    if not isinstance(attr_value, (list, tuple)):
        return None

    expr = list(attr_value)
    if len(expr) == 2 and expr[0] == DW_OP_PLUS_UCONST and isinstance(expr[1], int):
        return expr[1]
    if len(expr) == 1 and isinstance(expr[0], int):
        return expr[0]
    return None
