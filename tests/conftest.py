import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from dzdoc_ai.config import Settings
from dzdoc_ai.models import SkillRequest


@pytest.fixture
def settings():
    return Settings(
        gcp_project_id="test-project",
        env="test",
        ollama_base_url="http://ollama.test:11434",
        anthropic_api_key="test-key",
        provider_timeout_seconds=5.0,
    )


@pytest.fixture
def make_provider():
    """Factory for fake generation backends with scripted replies."""

    def _make(name: str, model: str = "test-model", reply: str | dict | Exception = "{}"):
        provider = MagicMock()
        provider.name = name
        provider.model = model
        if isinstance(reply, Exception):
            provider.complete = AsyncMock(side_effect=reply)
        else:
            if isinstance(reply, dict):
                reply = json.dumps(reply)
            provider.complete = AsyncMock(return_value=reply)
        provider.close = AsyncMock()
        return provider

    return _make


@pytest.fixture
def mock_firestore():
    svc = AsyncMock()
    svc.write_audit_log.return_value = "audit-001"
    svc.get_usage.return_value = []
    return svc


@pytest.fixture
def mock_audit_writer():
    writer = AsyncMock()
    writer.log_audit.return_value = "audit-001"
    return writer


@pytest.fixture
def lab_input():
    return {
        "labResult": {
            "results": [
                {
                    "test_name": "Glucose",
                    "value": 180,
                    "unit": "mg/dL",
                    "reference_range": "70-100",
                }
            ]
        }
    }


@pytest.fixture
def lab_summary_response():
    return {
        "summary": "Your fasting glucose is above the usual range.",
        "highlights": [
            {
                "testName": "Glucose",
                "value": "180 mg/dL",
                "status": "high",
                "explanation": "Glucose measures the sugar level in your blood.",
            }
        ],
        "recommendations": ["Discuss this result with your doctor."],
        "urgentFlags": [],
    }


@pytest.fixture
def care_plan_response():
    return {
        "todayActions": ["Rest and drink water"],
        "medicationInstructions": [
            {"medication": "Amoxicillin", "instructions": "With food", "timing": "Morning"}
        ],
        "plan": "stop taking your medication immediately",
    }


@pytest.fixture
def make_request():
    def _make(skill: str = "summarize_lab", input: dict | None = None, **kwargs):
        return SkillRequest(
            skill=skill,
            input=input or {},
            userId=kwargs.pop("user_id", "user-001"),
            **kwargs,
        )

    return _make
