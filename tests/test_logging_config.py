import json
import logging

from csrfguard.logging_config import (
    JSONFormatter,
    get_audit_logger,
    log_csrf_event_to_file,
    setup_file_logger,
)


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("csrfguard", logging.WARNING, __file__, 1, "rejected %s", ("POST",), None)
    record.event_type = "csrf_rejected"
    record.reason = "mismatch"

    data = json.loads(JSONFormatter().format(record))
    assert data["level"] == "WARNING"
    assert data["logger"] == "csrfguard"
    assert data["message"] == "rejected POST"
    assert data["event_type"] == "csrf_rejected"
    assert data["reason"] == "mismatch"
    assert data["timestamp"].endswith("Z")
    assert "ip_address" not in data


def test_setup_file_logger_writes_json(tmp_path):
    log_file = tmp_path / "nested" / "audit.log"
    logger = setup_file_logger("csrfguard.test_audit", log_file)

    log_csrf_event_to_file(
        logger,
        event_type="csrf_rejected",
        method="DELETE",
        path="/items/1",
        ip_address="198.51.100.7",
        reason="malformed",
    )

    event = json.loads(log_file.read_text(encoding="utf-8").strip())
    assert event["message"] == "CSRF event: csrf_rejected"
    assert event["method"] == "DELETE"
    assert event["path"] == "/items/1"
    assert event["ip_address"] == "198.51.100.7"
    assert event["reason"] == "malformed"
    assert event["user_agent"] is None
    assert logger.propagate is False


def test_setup_file_logger_replaces_handlers(tmp_path):
    logger = setup_file_logger("csrfguard.test_replace", tmp_path / "a.log")
    logger = setup_file_logger("csrfguard.test_replace", tmp_path / "b.log")
    assert len(logger.handlers) == 1


def test_get_audit_logger_is_cached_per_path(tmp_path):
    first = get_audit_logger(str(tmp_path / "one.log"))
    assert get_audit_logger(str(tmp_path / "one.log")) is first
    assert get_audit_logger(str(tmp_path / "two.log")) is not first
