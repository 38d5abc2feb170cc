import logging
import time
from typing import Any

from dzdoc_ai.audit.writer import AuditWriter, hash_input, hash_masked, summarize_output
from dzdoc_ai.graph.state import PipelineState
from dzdoc_ai.models import (
    AIResponseEnvelope,
    AuditLogEntry,
    ResponseMetadata,
    SkillRequest,
    TokenUsage,
)

logger = logging.getLogger(__name__)


def elapsed_ms(started_at: float) -> int:
    return int((time.monotonic() - started_at) * 1000)


def build_audit_entry(
    request: SkillRequest,
    *,
    success: bool,
    latency_ms: int,
    provider: str = "none",
    model: str = "none",
    tokens: TokenUsage | None = None,
    output: Any = None,
    error_message: str | None = None,
    masked_input: Any = None,
) -> AuditLogEntry:
    """Redacted audit row: input is hashed, output reduced to its shape.

    Pass masked_input when the pre-check already produced the masked copy.
    """
    return AuditLogEntry(
        user_id=request.user_id,
        user_role=request.user_role,
        skill=request.skill,
        provider=provider,
        model=model,
        tokens=tokens or TokenUsage(),
        latency_ms=latency_ms,
        input_hash=(
            hash_masked(masked_input) if masked_input is not None else hash_input(request.input)
        ),
        output_summary=summarize_output(output),
        ticket_id=request.ticket_id,
        appointment_id=request.appointment_id,
        success=success,
        error_message=error_message,
        language=request.language,
    )


async def finalize_node(state: PipelineState, *, audit_writer: AuditWriter) -> dict[str, Any]:
    """Audit the run (once the skill is known) and build the response envelope."""
    request = state["request"]
    handler = state.get("handler")
    error = state.get("error")
    output = state.get("output")
    warnings = list(state.get("warnings") or [])
    tokens = state.get("tokens") or TokenUsage()
    provider = state.get("provider", "none")
    model = state.get("model", "none")
    latency_ms = elapsed_ms(state["started_at"])

    # Nothing worth correlating before the skill is resolved.
    audit_id = ""
    if handler is not None:
        audit_id = await audit_writer.log_audit(
            build_audit_entry(
                request,
                success=error is None,
                latency_ms=latency_ms,
                provider=provider,
                model=model,
                tokens=tokens,
                output=output if error is None else None,
                error_message=error,
                masked_input=state.get("masked_input"),
            )
        )

    metadata = ResponseMetadata(
        provider=provider,
        model=model,
        tokens=tokens,
        latency_ms=latency_ms,
        audit_id=audit_id,
    )

    if error is not None:
        envelope = AIResponseEnvelope(
            success=False, error=error, warnings=warnings, metadata=metadata
        )
    else:
        envelope = AIResponseEnvelope(
            success=True,
            data=output,
            disclaimer=handler.get_disclaimer(request.language),
            warnings=warnings,
            metadata=metadata,
        )

    return {"envelope": envelope}
