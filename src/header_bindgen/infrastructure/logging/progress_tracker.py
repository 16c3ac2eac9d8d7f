"""Progress reporting for the resolve/generate pipeline."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter


class ProgressTracker:
    """Pipeline counters plus a stack of timed, named operations.

    The counters cover resolved declarations, layout oracle queries,
    emitted fragments and failed symbols. ``report_summary`` prints them
    in one INFO line at the end of a run.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.started = perf_counter()
        self.declaration_count = 0
        self.layout_query_count = 0
        self.fragment_count = 0
        self.failed_symbol_count = 0
        self.operation_stack: list[str] = []

    @contextmanager
    def track_operation(self, operation_name: str) -> Iterator[None]:
        """Time ``operation_name`` while it sits on the operation stack."""
        self.operation_stack.append(operation_name)
        started = perf_counter()
        self.logger.debug(f"[{self.get_current_context()}] begin")
        try:
            yield
        except Exception as e:
            self.logger.error(f"Operation {operation_name} failed after {perf_counter() - started:.3f}s: {e}")
            raise
        else:
            self.logger.debug(f"[{self.get_current_context()}] done in {perf_counter() - started:.3f}s")
        finally:
            self.operation_stack.pop()

    def count_declarations(self, count: int) -> None:
        self.declaration_count += count

    def count_layout_queries(self, count: int) -> None:
        self.layout_query_count += count

    def count_fragments(self, count: int) -> None:
        self.fragment_count += count

    def count_failures(self, count: int) -> None:
        self.failed_symbol_count += count

    def report_summary(self) -> None:
        self.logger.info(
            f"Bindings generated: {self.declaration_count} declarations, "
            f"{self.layout_query_count} layout queries, {self.fragment_count} fragments, "
            f"{self.failed_symbol_count} failed symbols in {perf_counter() - self.started:.2f}s"
        )

    def get_current_context(self) -> str:
        """Nested operation names joined with ``/``, or ``idle``."""
        return "/".join(self.operation_stack) or "idle"
