from __future__ import annotations

import hashlib
import json
import logging
from datetime import date, datetime, timezone
from typing import Any

from dzdoc_ai.models import AuditLogEntry, SkillUsage, UsageSummary
from dzdoc_ai.safety.pii import mask_pii
from dzdoc_ai.services.firestore import FirestoreService

logger = logging.getLogger(__name__)

INPUT_HASH_LENGTH = 16

# Monthly request caps per skill; every skill is unlimited for now.
SKILL_MONTHLY_QUOTAS: dict[str, int] = {}


def _string_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): _string_keys(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_string_keys(item) for item in value]
    return value


def canonical_json(value: Any) -> str:
    """Key-sorted serialization; non-string keys are stringified first."""
    return json.dumps(_string_keys(value), ensure_ascii=False, sort_keys=True, default=str)


def masked_input_repr(input: Any) -> str:
    """PII-masked, key-sorted serialization of a request input."""
    return canonical_json(mask_pii(input))


def hash_masked(masked: Any) -> str:
    digest = hashlib.sha256(canonical_json(masked).encode("utf-8")).hexdigest()
    return digest[:INPUT_HASH_LENGTH]


def hash_input(input: Any) -> str:
    """Short opaque token for correlating duplicate requests.

    Truncated, so it identifies repeats; it is not a security control.
    """
    return hash_masked(mask_pii(input))


def _shape(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): _shape(item) for key, item in value.items()}
    if isinstance(value, list):
        return f"array({len(value)})"
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if value is None:
        return "null"
    return type(value).__name__


def summarize_output(output: Any) -> str | None:
    """Key names and container sizes/types only, never values."""
    if output is None:
        return None
    return json.dumps(_shape(output), sort_keys=True)


def current_period_start(today: date | None = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return today.replace(day=1).isoformat()


class AuditWriter:
    def __init__(self, firestore: FirestoreService) -> None:
        self._firestore = firestore

    async def log_audit(self, entry: AuditLogEntry) -> str:
        """Persist one audit row; best-effort.

        Returns the audit id, or "" when the write failed. Never raises.
        """
        audit_id = ""
        try:
            audit_id = await self._firestore.write_audit_log(entry.model_dump())
        except Exception:
            logger.exception(
                "Failed to write AI audit log (skill=%s, user=%s)",
                entry.skill,
                entry.user_id,
            )

        if entry.success:
            await self._track_usage(
                entry.user_id, entry.skill, entry.tokens.input + entry.tokens.output
            )

        return audit_id

    async def _track_usage(self, user_id: str, skill: str, tokens: int) -> None:
        try:
            await self._firestore.increment_usage(
                user_id, skill, current_period_start(), tokens
            )
        except Exception:
            logger.exception("Failed to track AI usage (skill=%s, user=%s)", skill, user_id)

    async def get_user_usage(self, user_id: str) -> UsageSummary:
        """Current-month usage for a user, per skill."""
        period_start = current_period_start()
        rows = await self._firestore.get_usage(user_id, period_start)

        skills: dict[str, SkillUsage] = {}
        for row in rows:
            usage = SkillUsage(
                usage_count=int(row.get("usage_count", 0)),
                tokens_used=int(row.get("tokens_used", 0)),
            )
            skills[row.get("skill", "unknown")] = usage

        return UsageSummary(
            user_id=user_id,
            period_start=period_start,
            skills=skills,
            total_requests=sum(s.usage_count for s in skills.values()),
            total_tokens=sum(s.tokens_used for s in skills.values()),
        )

    async def can_use_skill(self, user_id: str, skill: str) -> bool:
        """Whether the user still has monthly quota for a skill.

        Skills without an entry in SKILL_MONTHLY_QUOTAS are unlimited and
        need no usage read.
        """
        quota = SKILL_MONTHLY_QUOTAS.get(skill)
        if quota is None:
            return True
        usage = await self.get_user_usage(user_id)
        used = usage.skills.get(skill)
        return used is None or used.usage_count < quota

    async def log_feedback(
        self, audit_id: str, user_id: str, rating: int, comment: str | None = None
    ) -> bool:
        """Attach user feedback to an audit id; best-effort."""
        try:
            await self._firestore.write_feedback(
                {
                    "audit_id": audit_id,
                    "user_id": user_id,
                    "rating": rating,
                    "comment": comment,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                }
            )
            return True
        except Exception:
            logger.exception("Failed to record AI feedback for audit %s", audit_id)
            return False
