import logging

from fastapi import APIRouter, HTTPException, Request

from dzdoc_ai.middleware.rate_limit import (
    AI_EXECUTE_RATE_LIMIT,
    AI_READ_RATE_LIMIT,
    FEEDBACK_RATE_LIMIT,
    limiter,
)
from dzdoc_ai.models import AIResponseEnvelope, FeedbackRequest, SkillRequest, UsageSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai")

# These are set by main.py at startup
_orchestrator = None
_registry = None
_audit_writer = None


def set_dependencies(orchestrator, registry, audit_writer) -> None:
    global _orchestrator, _registry, _audit_writer
    _orchestrator = orchestrator
    _registry = registry
    _audit_writer = audit_writer


@router.post("/execute", response_model=AIResponseEnvelope)
@limiter.limit(AI_EXECUTE_RATE_LIMIT)
async def execute_skill(request: Request, body: SkillRequest) -> AIResponseEnvelope:
    """Run one skill. Pipeline failures come back as success=false with HTTP 200."""
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="AI pipeline not initialized")
    return await _orchestrator.execute_ai(body)


@router.get("/skills")
@limiter.limit(AI_READ_RATE_LIMIT)
async def list_skills(request: Request) -> dict[str, list[str]]:
    if _registry is None:
        raise HTTPException(status_code=503, detail="AI pipeline not initialized")
    return {"skills": _registry.list_supported()}


@router.get("/usage/{user_id}", response_model=UsageSummary)
@limiter.limit(AI_READ_RATE_LIMIT)
async def get_usage(request: Request, user_id: str) -> UsageSummary:
    if _audit_writer is None:
        raise HTTPException(status_code=503, detail="AI pipeline not initialized")
    try:
        return await _audit_writer.get_user_usage(user_id)
    except Exception:
        logger.exception("Failed to load AI usage for user %s", user_id)
        raise HTTPException(status_code=502, detail="Usage data unavailable")


@router.post("/feedback", status_code=201)
@limiter.limit(FEEDBACK_RATE_LIMIT)
async def submit_feedback(request: Request, body: FeedbackRequest) -> dict[str, bool]:
    if _audit_writer is None:
        raise HTTPException(status_code=503, detail="AI pipeline not initialized")
    recorded = await _audit_writer.log_feedback(
        body.audit_id, body.user_id, body.rating, body.comment
    )
    if not recorded:
        raise HTTPException(status_code=502, detail="Feedback could not be recorded")
    return {"recorded": True}
