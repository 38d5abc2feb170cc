import logging

from fastapi import APIRouter, Request

from dzdoc_ai.config import get_settings
from dzdoc_ai.middleware.rate_limit import HEALTH_RATE_LIMIT, limiter
from dzdoc_ai.models import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_firestore = None
_generator = None


def set_dependencies(firestore, generator) -> None:
    global _firestore, _generator
    _firestore = firestore
    _generator = generator


@router.get("/health", response_model=HealthResponse)
@limiter.limit(HEALTH_RATE_LIMIT)
async def health_check(request: Request) -> HealthResponse:
    settings = get_settings()
    checks: dict[str, str] = {}
    status = "healthy"

    # Firestore (audit store; writes are best-effort so a failure only degrades)
    if _firestore is not None:
        try:
            ok = await _firestore.health_check()
            checks["firestore"] = "ok" if ok else "fail"
        except Exception:
            logger.warning("Firestore health check failed", exc_info=True)
            checks["firestore"] = "fail"
    else:
        checks["firestore"] = "not_configured"

    # Generation backends (critical)
    if _generator is not None:
        checks["providers"] = ",".join(_generator.provider_names) or "none"
    else:
        checks["providers"] = "not_configured"

    if checks["providers"] == "none":
        status = "unhealthy"
    elif checks["firestore"] == "fail":
        status = "degraded"

    return HealthResponse(
        status=status,
        environment=settings.env,
        checks=checks,
    )
