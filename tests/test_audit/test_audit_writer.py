"""Tests for the audit writer and its redaction helpers."""

import json
from datetime import date

import pytest

from dzdoc_ai.audit.writer import (
    SKILL_MONTHLY_QUOTAS,
    AuditWriter,
    current_period_start,
    hash_input,
    masked_input_repr,
    summarize_output,
)
from dzdoc_ai.models import AuditLogEntry, TokenUsage


@pytest.fixture
def audit_writer(mock_firestore):
    return AuditWriter(mock_firestore)


def _entry(**overrides) -> AuditLogEntry:
    values = {
        "user_id": "user-001",
        "user_role": "patient",
        "skill": "summarize_lab",
        "provider": "ollama",
        "model": "llama3.1",
        "tokens": TokenUsage(input=120, output=80),
        "latency_ms": 900,
        "input_hash": "abc123",
        "success": True,
    }
    values.update(overrides)
    return AuditLogEntry(**values)


class TestHashInput:
    def test_deterministic_and_short(self):
        value = {"freeText": "headache", "age": 30}
        assert hash_input(value) == hash_input({"age": 30, "freeText": "headache"})
        assert len(hash_input(value)) == 16

    def test_pii_never_reaches_the_hashed_form(self):
        value = {
            "freeText": "call me on 0555 12 34 56 or amina@example.dz",
            "password": "hunter2",
        }
        serialized = masked_input_repr(value)
        assert "0555" not in serialized
        assert "amina@example.dz" not in serialized
        assert "hunter2" not in serialized

    def test_inputs_differing_only_in_pii_hash_alike(self):
        assert hash_input({"email": "a@b.com"}) == hash_input({"email": "c@d.org"})

    def test_non_string_keys_are_hashable(self):
        value = {"labResult": {"results": [{"test_name": "Glucose", 1: "x"}]}}
        assert len(hash_input(value)) == 16
        assert '"1": "x"' in masked_input_repr(value)


class TestSummarizeOutput:
    def test_shape_only(self, lab_summary_response):
        summary = json.loads(summarize_output(lab_summary_response))
        assert summary == {
            "highlights": "array(1)",
            "recommendations": "array(1)",
            "summary": "string",
            "urgentFlags": "array(0)",
        }

    def test_scalars_and_nesting(self):
        summary = json.loads(
            summarize_output({"a": {"b": 1, "c": True, "d": None}, "e": 2.5})
        )
        assert summary == {"a": {"b": "number", "c": "boolean", "d": "null"}, "e": "number"}

    def test_none(self):
        assert summarize_output(None) is None


def test_current_period_start():
    assert current_period_start(date(2026, 3, 17)) == "2026-03-01"


class TestLogAudit:
    @pytest.mark.asyncio
    async def test_success_writes_and_tracks_usage(self, audit_writer, mock_firestore):
        audit_id = await audit_writer.log_audit(_entry())

        assert audit_id == "audit-001"
        written = mock_firestore.write_audit_log.call_args.args[0]
        assert written["skill"] == "summarize_lab"
        assert written["tokens"] == {"input": 120, "output": 80}
        mock_firestore.increment_usage.assert_awaited_once()
        args = mock_firestore.increment_usage.call_args.args
        assert args[0] == "user-001"
        assert args[1] == "summarize_lab"
        assert args[3] == 200

    @pytest.mark.asyncio
    async def test_failure_is_not_counted_as_usage(self, audit_writer, mock_firestore):
        await audit_writer.log_audit(_entry(success=False, error_message="boom"))

        mock_firestore.write_audit_log.assert_awaited_once()
        mock_firestore.increment_usage.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_failure_returns_empty_id(self, audit_writer, mock_firestore):
        mock_firestore.write_audit_log.side_effect = RuntimeError("firestore down")

        assert await audit_writer.log_audit(_entry()) == ""

    @pytest.mark.asyncio
    async def test_usage_failure_is_swallowed(self, audit_writer, mock_firestore):
        mock_firestore.increment_usage.side_effect = RuntimeError("firestore down")

        assert await audit_writer.log_audit(_entry()) == "audit-001"


class TestUsageAndFeedback:
    @pytest.mark.asyncio
    async def test_get_user_usage_aggregates(self, audit_writer, mock_firestore):
        mock_firestore.get_usage.return_value = [
            {"skill": "summarize_lab", "usage_count": 3, "tokens_used": 900},
            {"skill": "triage_message", "usage_count": 1, "tokens_used": 150},
        ]

        usage = await audit_writer.get_user_usage("user-001")

        assert usage.user_id == "user-001"
        assert usage.period_start == current_period_start()
        assert usage.skills["summarize_lab"].usage_count == 3
        assert usage.total_requests == 4
        assert usage.total_tokens == 1050

    @pytest.mark.asyncio
    async def test_log_feedback(self, audit_writer, mock_firestore):
        assert await audit_writer.log_feedback("audit-001", "user-001", 4, "useful") is True
        written = mock_firestore.write_feedback.call_args.args[0]
        assert written["audit_id"] == "audit-001"
        assert written["rating"] == 4

    @pytest.mark.asyncio
    async def test_log_feedback_failure(self, audit_writer, mock_firestore):
        mock_firestore.write_feedback.side_effect = RuntimeError("firestore down")
        assert await audit_writer.log_feedback("audit-001", "user-001", 4) is False


class TestCanUseSkill:
    @pytest.mark.asyncio
    async def test_unlimited_skill_skips_usage_read(self, audit_writer, mock_firestore):
        assert await audit_writer.can_use_skill("user-001", "summarize_lab") is True
        mock_firestore.get_usage.assert_not_called()

    @pytest.mark.asyncio
    async def test_quota_is_enforced_when_configured(
        self, audit_writer, mock_firestore, monkeypatch
    ):
        monkeypatch.setitem(SKILL_MONTHLY_QUOTAS, "summarize_lab", 3)
        mock_firestore.get_usage.return_value = [
            {"skill": "summarize_lab", "usage_count": 3, "tokens_used": 900},
        ]

        assert await audit_writer.can_use_skill("user-001", "summarize_lab") is False

        mock_firestore.get_usage.return_value = []
        assert await audit_writer.can_use_skill("user-001", "summarize_lab") is True
