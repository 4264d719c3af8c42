"""Tests for preflight doctor checks."""

from __future__ import annotations

from scripts.doctor import run_doctor


def test_doctor_fails_without_backends() -> None:
    result = run_doctor({})
    assert result.ok is False
    joined = "\n".join(result.messages)
    assert "No backends configured" in joined
    assert "OPENAI_API_KEY" in joined


def test_doctor_passes_in_stub_mode() -> None:
    result = run_doctor({"GENROUTER_USE_STUBS": "true"})
    assert result.ok is True
    assert result.messages[0] == "Doctor checks passed."


def test_doctor_reports_parse_errors() -> None:
    result = run_doctor({"GENROUTER_USE_STUBS": "true", "GENROUTER_MAX_RETRIES": "lots"})
    assert result.ok is False
    assert result.messages[0] == "Doctor found configuration issues:"
    assert "GENROUTER_MAX_RETRIES" in result.messages[1]


def test_doctor_fails_when_all_backends_disabled() -> None:
    result = run_doctor({"OPENAI_API_KEY": "sk-1", "OPENAI_ENABLED": "false"})
    assert result.ok is False
    assert "disabled" in "\n".join(result.messages)


def test_doctor_rejects_bad_base_url() -> None:
    result = run_doctor({"GENROUTER_USE_STUBS": "true", "LOCAL_BASE_URL": "localhost:8000"})
    assert result.ok is False
    assert "LOCAL_BASE_URL" in "\n".join(result.messages)


def test_doctor_warns_on_unknown_key() -> None:
    result = run_doctor({"GENROUTER_USE_STUBS": "true", "GENROUTER_MAX_RETRY": "2"})
    assert result.ok is True
    assert "Warnings:" in result.messages
    assert any("GENROUTER_MAX_RETRY" in m for m in result.messages)


def test_doctor_warns_on_single_backend_with_fallback() -> None:
    result = run_doctor({"OPENAI_API_KEY": "sk-1"})
    assert result.ok is True
    assert any("fallback" in m for m in result.messages)


def test_doctor_warns_on_priority_without_hints() -> None:
    result = run_doctor({"GENROUTER_USE_STUBS": "true", "GENROUTER_STRATEGY": "priority"})
    assert result.ok is True
    assert any("_PRIORITY" in m for m in result.messages)


def test_doctor_warns_when_base_delay_exceeds_max() -> None:
    result = run_doctor({
        "GENROUTER_USE_STUBS": "true",
        "GENROUTER_RETRY_BASE_DELAY": "20",
        "GENROUTER_RETRY_MAX_DELAY": "5",
    })
    assert result.ok is True
    assert any("RETRY_BASE_DELAY" in m for m in result.messages)
