"""Single entry point for running an AI skill end to end."""

import logging
import time
from typing import Any

from pydantic import ValidationError

from dzdoc_ai.audit.writer import AuditWriter
from dzdoc_ai.graph.nodes.finalize import build_audit_entry, elapsed_ms
from dzdoc_ai.graph.pipeline import build_pipeline
from dzdoc_ai.models import AIResponseEnvelope, ResponseMetadata, SkillRequest
from dzdoc_ai.services.generation import ProviderFallbackClient
from dzdoc_ai.skills.registry import SkillRegistry

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "AI service temporarily unavailable. Please try again."
INVALID_REQUEST_MESSAGE = "Invalid request"


class AIOrchestrator:
    def __init__(
        self,
        registry: SkillRegistry,
        generator: ProviderFallbackClient,
        audit_writer: AuditWriter,
    ) -> None:
        self._registry = registry
        self._audit_writer = audit_writer
        self._pipeline = build_pipeline(registry, generator, audit_writer)

    async def execute_ai(self, request: SkillRequest) -> AIResponseEnvelope:
        """Run one request through the pipeline. Never raises.

        Backend failures and unexpected errors are logged and audited with
        their cause, and returned to the caller as a generic envelope.
        """
        started_at = time.monotonic()
        try:
            result = await self._pipeline.ainvoke(
                {"request": request, "started_at": started_at, "warnings": []}
            )
            return result["envelope"]
        except Exception as exc:
            logger.exception(
                "AI pipeline failed for skill %s (user=%s)", request.skill, request.user_id
            )
            cause = f"{type(exc).__name__}: {exc}"

        latency_ms = elapsed_ms(started_at)
        audit_id = ""
        if self._registry.is_supported(request.skill):
            try:
                audit_id = await self._audit_writer.log_audit(
                    build_audit_entry(
                        request,
                        success=False,
                        latency_ms=latency_ms,
                        error_message=cause,
                    )
                )
            except Exception:
                logger.exception("Failed to audit pipeline failure for skill %s", request.skill)

        return AIResponseEnvelope(
            success=False,
            error=UNAVAILABLE_MESSAGE,
            metadata=ResponseMetadata(latency_ms=latency_ms, audit_id=audit_id),
        )

    async def quick_ai(
        self,
        skill: str,
        input: dict[str, Any],
        user_id: str,
        user_role: str = "patient",
        language: str = "fr",
    ) -> AIResponseEnvelope:
        """Shorthand for callers that have no context or ticket to attach.

        Never raises: arguments that do not form a valid request come back as
        a failed envelope.
        """
        try:
            request = SkillRequest(
                skill=skill,
                input=input,
                user_id=user_id,
                user_role=user_role,
                language=language,
            )
        except ValidationError as exc:
            logger.warning("Rejected quick_ai call for skill %s: %s", skill, exc)
            return AIResponseEnvelope(success=False, error=INVALID_REQUEST_MESSAGE)
        return await self.execute_ai(request)
