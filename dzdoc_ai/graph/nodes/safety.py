from typing import Any

from dzdoc_ai.graph.state import PipelineState
from dzdoc_ai.safety.post_check import run_post_checks
from dzdoc_ai.safety.pre_check import run_pre_checks

POST_CHECK_FAILED = "Response failed safety check"
PRE_CHECK_FAILED = "Request blocked by safety check"


async def pre_check_node(state: PipelineState) -> dict[str, Any]:
    """Input gate. An emergency yields the localized emergency message as the error."""
    result = run_pre_checks(state["request"])
    if result.safe:
        return {"masked_input": result.sanitized_input}

    if result.emergency_detected:
        return {"error": result.emergency_message or result.reason}
    return {"error": result.reason or PRE_CHECK_FAILED}


async def post_check_node(state: PipelineState) -> dict[str, Any]:
    result = run_post_checks(state["parsed"], state["request"].skill)
    if not result.safe:
        return {"error": POST_CHECK_FAILED, "warnings": result.warnings}
    return {"output": result.sanitized, "warnings": result.warnings}
