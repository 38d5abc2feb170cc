from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dzdoc_ai.api import ai
from dzdoc_ai.main import app
from dzdoc_ai.models import AIResponseEnvelope, ResponseMetadata, SkillUsage, UsageSummary
from dzdoc_ai.skills.registry import SkillRegistry


@pytest.fixture
def mock_orchestrator(lab_summary_response):
    orchestrator = AsyncMock()
    orchestrator.execute_ai.return_value = AIResponseEnvelope(
        success=True,
        data=lab_summary_response,
        disclaimer="AI-generated summary",
        metadata=ResponseMetadata(
            provider="ollama", model="llama3.1", latency_ms=420, audit_id="audit-001"
        ),
    )
    return orchestrator


@pytest.fixture
def api_audit_writer():
    writer = AsyncMock()
    writer.get_user_usage.return_value = UsageSummary(
        user_id="user-001",
        period_start="2026-10-01",
        skills={"summarize_lab": SkillUsage(usage_count=2, tokens_used=600)},
        total_requests=2,
        total_tokens=600,
    )
    writer.log_feedback.return_value = True
    return writer


@pytest_asyncio.fixture
async def client(mock_orchestrator, api_audit_writer):
    ai.set_dependencies(mock_orchestrator, SkillRegistry(), api_audit_writer)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    ai.set_dependencies(None, None, None)
