import logging
from typing import Any

from dzdoc_ai.errors import NoProviderConfiguredError, UnknownSkillError
from dzdoc_ai.graph.state import PipelineState
from dzdoc_ai.services.generation import ProviderFallbackClient
from dzdoc_ai.skills.registry import SkillRegistry

logger = logging.getLogger(__name__)


async def check_provider_node(
    state: PipelineState, *, generator: ProviderFallbackClient
) -> dict[str, Any]:
    """Fail fast when no generation backend is configured."""
    if not generator.has_providers:
        logger.error("No AI provider configured; rejecting skill %s", state["request"].skill)
        return {"error": str(NoProviderConfiguredError())}
    return {}


async def resolve_skill_node(state: PipelineState, *, registry: SkillRegistry) -> dict[str, Any]:
    try:
        handler = registry.get_handler(state["request"].skill)
    except UnknownSkillError as exc:
        logger.info("Rejected request for unknown skill %r", state["request"].skill)
        return {"error": str(exc)}
    return {"handler": handler}


async def validate_input_node(state: PipelineState) -> dict[str, Any]:
    request = state["request"]
    validation = state["handler"].validate_input(request.input)
    if not validation.valid:
        logger.info("Input validation failed for skill %s: %s", request.skill, validation.error)
        return {"error": validation.error or "Invalid input"}
    return {}
