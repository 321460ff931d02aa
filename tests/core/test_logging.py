from __future__ import annotations

import logging

from app.core.logging import (
    _ContainerFormatter,
    _GradingContextFilter,
    bind_submission,
    setup_logging,
    submission_id_var,
)


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_uvicorn_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def test_formatter_excludes_location_for_info() -> None:
    fmt = _ContainerFormatter()
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )
    output = fmt.format(record)
    assert "hello" in output
    assert "[test.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    fmt = _ContainerFormatter()
    record = logging.LogRecord(
        name="test",
        level=logging.WARNING,
        pathname="test.py",
        lineno=42,
        msg="bad thing",
        args=(),
        exc_info=None,
    )
    output = fmt.format(record)
    assert "bad thing" in output
    assert "[test.py:42]" in output


def test_formatter_includes_location_for_error() -> None:
    fmt = _ContainerFormatter()
    record = logging.LogRecord(
        name="test",
        level=logging.ERROR,
        pathname="svc.py",
        lineno=99,
        msg="broke",
        args=(),
        exc_info=None,
    )
    output = fmt.format(record)
    assert "[svc.py:99]" in output


# ---- submission context ----


def _record(msg: str = "graded") -> logging.LogRecord:
    return logging.LogRecord(
        name="app.services.grading_service",
        level=logging.INFO,
        pathname="grading_service.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_bind_submission_sets_record_fields() -> None:
    record = _record()
    with bind_submission("sub-1", "ex-1", "student-1"):
        _GradingContextFilter().filter(record)
    assert record.submission_id == "sub-1"  # type: ignore[attr-defined]
    assert record.exercise_id == "ex-1"  # type: ignore[attr-defined]
    assert record.submitter_id == "student-1"  # type: ignore[attr-defined]


def test_bind_submission_resets_on_exit() -> None:
    with bind_submission("sub-1", "ex-1", "student-1"):
        with bind_submission("sub-2", "ex-1", "student-1"):
            assert submission_id_var.get() == "sub-2"
        assert submission_id_var.get() == "sub-1"
    assert submission_id_var.get() is None


def test_filter_leaves_unbound_fields_none() -> None:
    record = _record()
    _GradingContextFilter().filter(record)
    assert record.submission_id is None  # type: ignore[attr-defined]


def test_container_formatter_appends_submission() -> None:
    record = _record()
    with bind_submission("sub-9", "ex-1", "student-1"):
        _GradingContextFilter().filter(record)
    assert _ContainerFormatter().format(record).endswith("sub=sub-9")
