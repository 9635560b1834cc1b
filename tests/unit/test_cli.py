"""Tests for the fanvoice CLI."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from fanvoice.audit.logger import AuditLogger
from fanvoice.cli import cli
from fanvoice.models import AuditEvent, AuditEventType, RiskLevel
from fanvoice.webhook.signature import compute_signature

ENV = {
    "FANVUE_WEBHOOK_SIGNING_SECRET": "whsec",
    "OPENAI_API_KEY": "sk-test",
    "ELEVENLABS_API_KEY": "el-test",
    "ELEVENLABS_VOICE_ID": "voice-1",
}


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV:
        monkeypatch.delenv(name, raising=False)


def test_check_config_prints_redacted_settings(clean_env: None) -> None:
    result = CliRunner().invoke(cli, ["check-config"], env=ENV)
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["voice_id"] == "voice-1"
    assert data["openai_api_key"] == "***"


def test_check_config_fails_on_missing_env(clean_env: None) -> None:
    result = CliRunner().invoke(cli, ["check-config"])
    assert result.exit_code == 1
    assert "FANVUE_WEBHOOK_SIGNING_SECRET" in result.output


def test_sign_prints_signature(tmp_path: Path) -> None:
    body_file = tmp_path / "body.json"
    body_file.write_bytes(b'{"type":"message.created"}')

    result = CliRunner().invoke(cli, ["sign", str(body_file), "--secret", "whsec"])
    assert result.exit_code == 0
    assert result.output.strip() == compute_signature("whsec", body_file.read_bytes())


def test_serve_runs_uvicorn_factory(clean_env: None) -> None:
    with patch("uvicorn.run") as mock_run:
        result = CliRunner().invoke(cli, ["serve", "--port", "9001"], env=ENV)

    assert result.exit_code == 0
    args, kwargs = mock_run.call_args
    assert args[0] == "fanvoice.server.app:create_app_from_env"
    assert kwargs["factory"] is True
    assert kwargs["port"] == 9001


def _write_audit_log(path: Path, count: int = 3) -> None:
    audit = AuditLogger(str(path))
    for i in range(count):
        audit.log(AuditEvent(
            event_type=AuditEventType.WEBHOOK_RECEIVED,
            chat_id=f"c{i}",
            action="webhook",
            result="success",
            risk_level=RiskLevel.INFO,
        ))


def test_verify_audit_accepts_intact_log(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    _write_audit_log(log_file)

    result = CliRunner().invoke(cli, ["verify-audit", str(log_file)])
    assert result.exit_code == 0
    assert "valid" in result.output


def test_verify_audit_reads_path_from_env(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    _write_audit_log(log_file)

    result = CliRunner().invoke(cli, ["verify-audit"], env={"AUDIT_LOG_PATH": str(log_file)})
    assert result.exit_code == 0


def test_verify_audit_reports_tampering(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    _write_audit_log(log_file)
    lines = log_file.read_text().splitlines()
    lines[0] = lines[0].replace('"c0"', '"edited"')
    log_file.write_text("\n".join(lines) + "\n")

    result = CliRunner().invoke(cli, ["verify-audit", str(log_file)])
    assert result.exit_code == 1
    assert "line 2" in result.output
