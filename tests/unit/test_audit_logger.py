"""Tests for the audit logger."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

from fanvoice.audit.logger import AuditLogger, validate_audit_chain
from fanvoice.models import AuditEvent, AuditEventType, RiskLevel


def _make_event(**kwargs: object) -> AuditEvent:
    defaults: dict[str, object] = {
        "event_type": AuditEventType.REPLY_FAILED,
        "chat_id": "c1",
        "action": "reply",
        "result": "failure",
        "risk_level": RiskLevel.MEDIUM,
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)  # type: ignore[arg-type]


def test_log_appends_json_line(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(_make_event())

    lines = log_file.read_text().strip().split("\n")
    assert len(lines) == 1
    parsed = json.loads(lines[0])
    assert parsed["event_type"] == "reply_failed"
    assert parsed["chat_id"] == "c1"
    assert parsed["prev_hash"] is None


def test_creates_parent_directory(tmp_path: Path) -> None:
    log_file = tmp_path / "nested" / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(_make_event())
    assert log_file.exists()


def test_hash_chain_links_lines(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file))
    for i in range(3):
        logger.log(_make_event(action=f"action_{i}"))

    lines = log_file.read_text().strip().split("\n")
    for prev, line in zip(lines, lines[1:]):
        assert json.loads(line)["prev_hash"] == hashlib.sha256(prev.encode()).hexdigest()
    assert validate_audit_chain(log_file).valid


def test_chain_continues_across_instances(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(_make_event(action="first"))
    AuditLogger(log_path=str(log_file)).log(_make_event(action="second"))
    assert validate_audit_chain(log_file).valid


def test_tampering_detected(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file))
    for i in range(3):
        logger.log(_make_event(action=f"action_{i}"))

    lines = log_file.read_text().strip().split("\n")
    lines[1] = lines[1].replace("action_1", "edited")
    log_file.write_text("\n".join(lines) + "\n")

    result = validate_audit_chain(log_file)
    assert result.valid is False
    assert result.broken_at_line == 3


def test_empty_log_is_valid(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    log_file.write_text("")
    assert validate_audit_chain(log_file).valid


def test_rotation(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file), max_bytes=200, backup_count=2)
    for i in range(10):
        logger.log(_make_event(action=f"action_{i}"))

    assert (tmp_path / "audit.jsonl.1").exists()
    assert (tmp_path / "audit.jsonl.2").exists()
    assert not (tmp_path / "audit.jsonl.3").exists()


def test_chain_valid_after_rotation(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file), max_bytes=200, backup_count=2)
    for i in range(5):
        logger.log(_make_event(action=f"action_{i}"))

    assert (tmp_path / "audit.jsonl.1").exists()
    assert validate_audit_chain(log_file).valid
    assert validate_audit_chain(tmp_path / "audit.jsonl.1").valid
    first = json.loads(log_file.read_text().splitlines()[0])
    assert first["prev_hash"] is None

