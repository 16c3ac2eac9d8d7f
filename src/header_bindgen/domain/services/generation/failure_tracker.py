#!/usr/bin/env python3

"""Per-symbol failure isolation for code generation."""

from collections.abc import Callable
from typing import TypeVar

from ....infrastructure.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class FailureTracker:
    """Collects the names of symbols whose generation failed.

    In fail-fast mode the first failure is re-raised after being recorded.
    """

    def __init__(self, fail_fast: bool = False):
        self.fail_fast = fail_fast
        self.failed_symbols: set[str] = set()

    def try_do(self, work: Callable[[], T], failed_symbol: str, message: str | None = None) -> T | None:
        """Run ``work``; on failure record ``failed_symbol`` and return None.

        Args:
            work: Unit of generation work
            failed_symbol: Name recorded when ``work`` raises
            message: Extra context for the warning

        Returns:
            The result of ``work``, or None if it failed
        """
        try:
            return work()
        except Exception as e:
            context = f" ({message})" if message else ""
            logger.warning(f'Generation failed for "{failed_symbol}"{context}: {e}')
            self.failed_symbols.add(failed_symbol)
            if self.fail_fast:
                raise
            logger.debug("fail_fast is off, skipping symbol", exc_info=True)
            return None
