import logging
import math
from typing import Any

from dzdoc_ai.graph.state import PipelineState
from dzdoc_ai.models import TokenUsage
from dzdoc_ai.services.generation import ProviderFallbackClient
from dzdoc_ai.services.metrics import record_skill_usage_async

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Rough token count; neither backend is relied on to report usage."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


async def generate_node(
    state: PipelineState, *, generator: ProviderFallbackClient
) -> dict[str, Any]:
    """Build prompts, call the first healthy backend and parse its reply.

    AllProvidersFailedError is left to propagate to the orchestrator.
    """
    request = state["request"]
    handler = state["handler"]

    system_prompt = handler.get_system_prompt(request.language)
    user_prompt = handler.build_user_prompt(request.input, request.context)

    result = await generator.generate(
        prompt=user_prompt,
        system_prompt=system_prompt,
        max_tokens=handler.max_tokens,
        temperature=handler.temperature,
    )

    tokens = TokenUsage(
        input=estimate_tokens(system_prompt + user_prompt),
        output=estimate_tokens(result.text),
    )

    try:
        parsed = handler.parse_response(result.text)
    except Exception as exc:
        logger.warning(
            "Failed to parse %s response from %s: %s", request.skill, result.provider, exc
        )
        parsed = {"text": result.text, "parseError": True}

    await record_skill_usage_async(
        provider=result.provider,
        model=result.model,
        skill=request.skill,
        input_tokens=tokens.input,
        output_tokens=tokens.output,
    )

    return {
        "provider": result.provider,
        "model": result.model,
        "tokens": tokens,
        "parsed": parsed,
    }
