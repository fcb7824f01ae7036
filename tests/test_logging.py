"""Failure-mode tests for the structured logging subsystem."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from icectl.logging import StructuredLogger


def _records(logger: StructuredLogger) -> list[dict[str, object]]:
    path = logger._operations_log_path  # type: ignore[attr-defined]
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_structured_logger_disables_when_directory_unavailable(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Logger gracefully disables itself when log directory cannot be created."""
    log_dir = tmp_path / "logs"

    original_mkdir = Path.mkdir

    def fail_mkdir(self: Path, *args: object, **kwargs: object) -> None:
        if self == log_dir:
            raise PermissionError("no access")
        original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fail_mkdir)

    logger = StructuredLogger(log_dir)
    assert logger.enabled is False

    with logger.operation("stats", args={"argv": []}) as op:
        op.success("done", changed=0)


def test_structured_logger_disables_after_write_failure(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Write failures mark the logger disabled so subsequent writes are skipped."""
    logger = StructuredLogger(tmp_path / "logs")
    operations_path = logger._operations_log_path  # type: ignore[attr-defined]

    original_open = Path.open

    def fail_once(self: Path, *args: object, **kwargs: object) -> object:
        if self == operations_path:
            raise OSError("disk full")
        return original_open(self, *args, **kwargs)

    monkeypatch.setattr(Path, "open", fail_once)

    with logger.operation("stats") as op:
        op.success("done", changed=0)

    assert logger.enabled is False

    with logger.operation("list-mounts") as op:
        op.success("done", changed=0)


def test_operation_records_steps_and_target(tmp_path: Path) -> None:
    """A successful operation writes one record with its steps."""
    logger = StructuredLogger(tmp_path / "logs")

    with logger.operation(
        "kill-source",
        args={"argv": ["/stream1"]},
        target={"kind": "icecast", "host": "http://127.0.0.1:8000"},
    ) as op:
        op.add_step("command.resolve", detail="kill-source")
        op.success("Source successfully detached from /stream1", changed=1)

    (record,) = _records(logger)
    assert record["command"] == "kill-source"
    assert record["args"] == {"argv": ["/stream1"]}
    assert record["target"] == {"kind": "icecast", "host": "http://127.0.0.1:8000"}
    assert record["steps"] == [
        {"name": "command.resolve", "status": "success", "detail": "kill-source"}
    ]
    assert record["result"]["status"] == "success"
    assert record["result"]["changed"] == 1
    assert isinstance(record["duration_ms"], int)


def test_operation_scope_warning_sanitises_context(tmp_path: Path) -> None:
    """Warnings should be recorded with JSON-safe context values."""
    logger = StructuredLogger(tmp_path / "logs")

    class Custom:
        def __str__(self) -> str:
            return "<custom>"

    with logger.operation("stats", args={"path": Path("foo")}) as op:
        op.warning(
            "warned",
            warnings=("note",),
            errors=("err",),
            changed=1,
            context={"path": Path("/var/lib"), "obj": Custom()},
        )

    (record,) = _records(logger)
    result = record["result"]
    assert record["args"] == {"path": "foo"}
    assert result["status"] == "warning"
    assert result["warnings"] == ["note"]
    assert result["errors"] == ["err"]
    assert result["context"] == {"path": "/var/lib", "obj": "<custom>"}


def test_operation_scope_error_defaults_error_list(tmp_path: Path) -> None:
    """Errors should default to the message when not provided."""
    logger = StructuredLogger(tmp_path / "logs")

    with logger.operation("stats") as op:
        op.error("boom", errors=None, context={"value": {1, 2}})

    (record,) = _records(logger)
    result = record["result"]
    assert result["status"] == "error"
    assert result["errors"] == ["boom"]
    assert result["rc"] == 1
    assert result["context"] == {"value": "{1, 2}"}


def test_operation_records_escaping_exception(tmp_path: Path) -> None:
    """Exceptions leaving the scope are logged as errors and re-raised."""
    logger = StructuredLogger(tmp_path / "logs")

    with pytest.raises(ValueError, match="bad"):
        with logger.operation("stats"):
            raise ValueError("bad")

    (record,) = _records(logger)
    assert record["result"]["status"] == "error"
    assert record["result"]["message"] == "Unhandled ValueError: bad"


def test_operation_without_result_defaults_to_success(tmp_path: Path) -> None:
    """Scopes closed without an outcome are recorded as completed."""
    logger = StructuredLogger(tmp_path / "logs")

    with logger.operation("help"):
        pass

    (record,) = _records(logger)
    assert record["result"]["status"] == "success"
    assert record["result"]["message"] == "Operation completed."
