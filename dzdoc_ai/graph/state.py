from typing import Any, TypedDict

from dzdoc_ai.models import AIResponseEnvelope, SkillRequest, TokenUsage
from dzdoc_ai.skills.base import SkillHandler


class PipelineState(TypedDict, total=False):
    # Input
    request: SkillRequest
    started_at: float

    # Resolved skill
    handler: SkillHandler

    # Pre-check output (PII-masked copy for the audit hash)
    masked_input: Any

    # Generation
    provider: str
    model: str
    tokens: TokenUsage
    parsed: Any

    # Post-check output
    output: Any
    warnings: list[str]

    # Pipeline control
    error: str | None

    # Result
    envelope: AIResponseEnvelope
