import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # GCP
    gcp_project_id: str = "dzdoc-dev"
    env: str = "dev"

    # Local / free backend
    ollama_base_url: str = ""  # e.g. http://localhost:11434
    ollama_model: str = "llama3.1"

    # Paid backend
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-haiku-4-5-20241022"

    # Generation
    provider_timeout_seconds: float = 60.0

    # Firestore (privileged service-account access)
    audit_collection: str = "ai_audit_logs"
    usage_collection: str = "ai_usage"
    feedback_collection: str = "ai_feedback"

    # CORS
    cors_allowed_origins: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    @property
    def has_provider(self) -> bool:
        return bool(self.ollama_base_url or self.anthropic_api_key)

    model_config = {"env_prefix": "", "case_sensitive": False, "frozen": True}

    @model_validator(mode="after")
    def _validate_required_in_production(self) -> "Settings":
        if self.env in ("staging", "prod") and not self.has_provider:
            raise ValueError(
                f"OLLAMA_BASE_URL or ANTHROPIC_API_KEY is required in {self.env} environment"
            )
        if self.provider_timeout_seconds <= 0:
            raise ValueError("PROVIDER_TIMEOUT_SECONDS must be positive")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
