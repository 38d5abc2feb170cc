"""Tests for the Cloud Monitoring usage metrics."""

import threading
from unittest.mock import MagicMock

import pytest

from dzdoc_ai.services import metrics


@pytest.fixture
def live_metrics(monkeypatch):
    monkeypatch.setattr(metrics, "_client", None)
    monkeypatch.setattr(metrics, "_disabled", False)
    monkeypatch.setattr(metrics, "_project_path", "projects/dzdoc-test")


def test_failed_client_init_is_not_retried(live_metrics, monkeypatch):
    build = MagicMock(side_effect=RuntimeError("no credentials"))
    monkeypatch.setattr(metrics, "_build_client", build)

    for _ in range(3):
        metrics.record_skill_usage("ollama", "llama3.1", "summarize_lab", 10, 5)

    assert build.call_count == 1


def test_no_project_means_no_client(monkeypatch):
    monkeypatch.setattr(metrics, "_project_path", "")
    build = MagicMock()
    monkeypatch.setattr(metrics, "_build_client", build)

    metrics.record_skill_usage("ollama", "llama3.1", "summarize_lab", 10, 5)

    build.assert_not_called()


@pytest.mark.asyncio
async def test_async_write_runs_off_the_event_loop(live_metrics, monkeypatch):
    calls = []

    def _record(*args):
        calls.append((args, threading.get_ident()))

    monkeypatch.setattr(metrics, "record_skill_usage", _record)

    await metrics.record_skill_usage_async("claude", "claude-haiku", "triage_message", 40, 12)

    [(args, thread_id)] = calls
    assert args == ("claude", "claude-haiku", "triage_message", 40, 12)
    assert thread_id != threading.get_ident()


@pytest.mark.asyncio
async def test_async_write_skipped_once_disabled(live_metrics, monkeypatch):
    monkeypatch.setattr(metrics, "_disabled", True)
    record = MagicMock()
    monkeypatch.setattr(metrics, "record_skill_usage", record)

    await metrics.record_skill_usage_async("ollama", "llama3.1", "summarize_lab", 10, 5)

    record.assert_not_called()
