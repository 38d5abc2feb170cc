from datetime import datetime, timezone
from typing import Any

from google.cloud.firestore_v1 import AsyncClient, Increment
from google.cloud.firestore_v1.base_query import FieldFilter

from dzdoc_ai.config import Settings


class FirestoreService:
    """Privileged (service-account) access to the audit, usage and feedback stores."""

    def __init__(self, settings: Settings) -> None:
        self._client = AsyncClient(project=settings.gcp_project_id)
        self._audit_collection = settings.audit_collection
        self._usage_collection = settings.usage_collection
        self._feedback_collection = settings.feedback_collection

    async def write_audit_log(self, data: dict[str, Any]) -> str:
        """Append one audit row. Returns the generated document id."""
        doc_ref = self._client.collection(self._audit_collection).document()
        await doc_ref.create(data)
        return doc_ref.id

    async def increment_usage(
        self, user_id: str, skill: str, period_start: str, tokens: int
    ) -> None:
        """Accumulate usage for (user, skill, month) atomically."""
        doc_ref = self._client.collection(self._usage_collection).document(
            f"{user_id}_{skill}_{period_start}"
        )
        await doc_ref.set(
            {
                "user_id": user_id,
                "skill": skill,
                "period_start": period_start,
                "usage_count": Increment(1),
                "tokens_used": Increment(tokens),
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            merge=True,
        )

    async def get_usage(self, user_id: str, period_start: str) -> list[dict[str, Any]]:
        query = (
            self._client.collection(self._usage_collection)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("period_start", "==", period_start))
        )
        return [doc.to_dict() async for doc in query.stream()]

    async def write_feedback(self, data: dict[str, Any]) -> str:
        doc_ref = self._client.collection(self._feedback_collection).document()
        await doc_ref.create(data)
        return doc_ref.id

    async def health_check(self) -> bool:
        """Verify Firestore connectivity with a lightweight read."""
        try:
            query = self._client.collection(self._audit_collection).limit(1)
            async for _ in query.stream():
                pass
            return True
        except Exception:
            return False

    async def close(self) -> None:
        self._client.close()
