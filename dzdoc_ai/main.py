import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from dzdoc_ai.api import ai, health
from dzdoc_ai.audit.writer import AuditWriter
from dzdoc_ai.config import get_settings
from dzdoc_ai.logging_config import configure_logging
from dzdoc_ai.middleware.error_handler import generic_exception_handler
from dzdoc_ai.middleware.rate_limit import limiter
from dzdoc_ai.orchestrator import AIOrchestrator
from dzdoc_ai.services.firestore import FirestoreService
from dzdoc_ai.services.generation import ProviderFallbackClient, build_providers
from dzdoc_ai.services.metrics import init_metrics
from dzdoc_ai.skills.registry import SkillRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services at startup, clean up at shutdown."""
    settings = get_settings()
    configure_logging("ai-pipeline", settings.env)
    init_metrics(settings.gcp_project_id)

    # Initialize services
    generator = ProviderFallbackClient(
        build_providers(settings), timeout_seconds=settings.provider_timeout_seconds
    )
    if not generator.has_providers:
        logger.warning("No AI provider configured; every skill request will be rejected")
    firestore = FirestoreService(settings)
    audit_writer = AuditWriter(firestore)
    registry = SkillRegistry()

    orchestrator = AIOrchestrator(registry, generator, audit_writer)

    # Wire dependencies into API modules
    ai.set_dependencies(orchestrator, registry, audit_writer)
    health.set_dependencies(firestore, generator)

    logger.info(
        "AI pipeline started (env=%s, providers=%s)",
        settings.env,
        ",".join(generator.provider_names) or "none",
    )
    yield

    # Cleanup
    await generator.close()
    await firestore.close()
    logger.info("AI pipeline shut down")


app = FastAPI(
    title="DzDoc AI Pipeline",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# CORS
_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
)

app.include_router(health.router)
app.include_router(ai.router)
