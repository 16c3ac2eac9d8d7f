#!/usr/bin/env python3

"""Exception hierarchy for header-bindgen.

Two severities exist. Resolution errors abort the whole run because a
broken type graph cannot be trusted. Generation errors are recorded per
symbol by the code generator and only propagate in fail-fast mode.
"""


class BindgenError(Exception):
    """Base class for all header-bindgen errors."""


class ResolutionError(BindgenError, ValueError):
    """Fatal error while building the type graph."""


class DeclarationNotFoundError(ResolutionError):
    """A referenced type name is not present in the registry."""

    def __init__(self, name: str):
        super().__init__(f'declaration not found "{name}"')
        self.name = name


class UnknownEnumExpressionError(ResolutionError):
    """An enum initializer uses an expression node kind we do not understand."""


class MixedEnumCounterError(ResolutionError):
    """An implicit enum member follows an explicit non-integer value."""


class UnknownMemberShapeError(ResolutionError):
    """A record member has a declaration shape we do not understand."""


class UnresolvedLazyAliasError(ResolutionError):
    """A typedef waited for a tag that was never declared."""

    def __init__(self, pending: dict[str, str]):
        names = ", ".join(f"{alias} -> {target}" for alias, target in sorted(pending.items()))
        super().__init__(f"unresolved lazy aliases: {names}")
        self.pending = pending


class GenerationError(BindgenError, ValueError):
    """Recoverable error while emitting code for one symbol."""


class UnmappableTypeError(GenerationError):
    """A type has no marshal-level (ctypes) descriptor."""


class LayoutQueryError(BindgenError, RuntimeError):
    """The layout oracle could not answer a size or offset query."""


class ClangError(LayoutQueryError):
    """Invoking the clang executable failed."""
