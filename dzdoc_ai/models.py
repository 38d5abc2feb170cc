from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

Language = Literal["ar", "fr", "en"]
UserRole = Literal["patient", "doctor", "lab", "pharmacy", "admin"]
ProviderName = Literal["ollama", "claude", "none"]

SUPPORTED_LANGUAGES: tuple[str, ...] = ("ar", "fr", "en")
DEFAULT_LANGUAGE = "en"


def normalize_language(value: Any) -> str:
    """Map any unknown or missing locale to English."""
    if isinstance(value, str) and value.lower() in SUPPORTED_LANGUAGES:
        return value.lower()
    return DEFAULT_LANGUAGE


class PatientHistory(BaseModel):
    profile: dict[str, Any] | None = None
    appointments: list[dict[str, Any]] = Field(default_factory=list)
    prescriptions: list[dict[str, Any]] = Field(default_factory=list)
    lab_results: list[dict[str, Any]] = Field(default_factory=list, alias="labResults")
    allergies: list[str] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}


class RequestContext(BaseModel):
    """Read-only enrichment supplied by the caller."""

    patient_id: str | None = Field(default=None, alias="patientId")
    provider_id: str | None = Field(default=None, alias="providerId")
    previous_results: list[Any] = Field(default_factory=list, alias="previousResults")
    protocols: list[str] = Field(default_factory=list)
    custom_instructions: str | None = Field(default=None, alias="customInstructions")
    patient_history: PatientHistory | None = Field(default=None, alias="patientHistory")

    model_config = {"populate_by_name": True, "frozen": True}


class SkillRequest(BaseModel):
    # Plain string: unknown skill ids must reach the registry and fail there.
    skill: str
    input: dict[str, Any] = Field(default_factory=dict)
    context: RequestContext | None = None
    user_id: str = Field(..., alias="userId", min_length=1)
    user_role: UserRole = Field(default="patient", alias="userRole")
    language: str = DEFAULT_LANGUAGE
    ticket_id: str | None = Field(default=None, alias="ticketId")
    appointment_id: str | None = Field(default=None, alias="appointmentId")

    model_config = {"populate_by_name": True}

    @field_validator("language", mode="before")
    @classmethod
    def fallback_language(cls, v: Any) -> str:
        return normalize_language(v)


class TokenUsage(BaseModel):
    input: int = 0
    output: int = 0


class ResponseMetadata(BaseModel):
    provider: ProviderName = "none"
    model: str = "none"
    tokens: TokenUsage = Field(default_factory=TokenUsage)
    latency_ms: int = Field(default=0, serialization_alias="latencyMs")
    cached: bool = False
    audit_id: str = Field(default="", serialization_alias="auditId")


class AIResponseEnvelope(BaseModel):
    """The only object handed back to a caller of the pipeline."""

    success: bool
    data: Any = None
    error: str | None = None
    disclaimer: str | None = None
    warnings: list[str] = Field(default_factory=list)
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class AuditLogEntry(BaseModel):
    user_id: str
    user_role: str
    skill: str
    provider: ProviderName = "none"
    model: str = "none"
    tokens: TokenUsage = Field(default_factory=TokenUsage)
    latency_ms: int = 0
    input_hash: str
    output_summary: str | None = None
    ticket_id: str | None = None
    appointment_id: str | None = None
    success: bool
    error_message: str | None = None
    language: str = DEFAULT_LANGUAGE
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


class FeedbackRequest(BaseModel):
    audit_id: str = Field(..., alias="auditId", min_length=1)
    user_id: str = Field(..., alias="userId", min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2_000)

    model_config = {"populate_by_name": True}


class SkillUsage(BaseModel):
    usage_count: int = 0
    tokens_used: int = 0


class UsageSummary(BaseModel):
    user_id: str
    period_start: str
    skills: dict[str, SkillUsage] = Field(default_factory=dict)
    total_requests: int = 0
    total_tokens: int = 0


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = "0.1.0"
    environment: str
    checks: dict[str, str] = Field(default_factory=dict)
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
