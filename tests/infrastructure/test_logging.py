"""Tests for logging utilities."""

import logging

import pytest

from header_bindgen.infrastructure.logging import ProgressTracker, log_timing


@log_timing
def explode() -> None:
    raise RuntimeError("boom")


@pytest.mark.unit
def test_log_timing_reports_failures(caplog: pytest.LogCaptureFixture) -> None:
    with pytest.raises(RuntimeError):
        explode()
    assert "explode: RuntimeError after" in caplog.text


@pytest.mark.unit
def test_progress_tracker_summary(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)
    tracker = ProgressTracker(logging.getLogger("progress"))

    with tracker.track_operation("resolve"):
        assert tracker.get_current_context() == "resolve"
        tracker.count_declarations(12)
        tracker.count_layout_queries(30)
    tracker.count_fragments(40)
    tracker.count_failures(1)
    tracker.report_summary()

    assert tracker.get_current_context() == "idle"
    assert "12 declarations, 30 layout queries, 40 fragments, 1 failed symbols" in caplog.text


@pytest.mark.unit
def test_progress_tracker_failed_operation(caplog: pytest.LogCaptureFixture) -> None:
    tracker = ProgressTracker(logging.getLogger("progress"))
    with pytest.raises(ValueError):
        with tracker.track_operation("generate"):
            raise ValueError("bad graph")
    assert "Operation generate failed" in caplog.text
    assert not tracker.operation_stack
