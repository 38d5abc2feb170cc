import logging

import httpx

from dzdoc_ai.config import Settings

logger = logging.getLogger(__name__)


class OllamaClient:
    """Local, free text-generation backend (Ollama chat API)."""

    name = "ollama"

    def __init__(self, settings: Settings) -> None:
        self.model = settings.ollama_model
        self._client = httpx.AsyncClient(
            base_url=settings.ollama_base_url,
            timeout=httpx.Timeout(settings.provider_timeout_seconds, connect=2.0),
        )

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> str:
        payload = {
            "model": self.model,
            "stream": False,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "options": {"num_predict": max_tokens, "temperature": temperature},
        }
        response = await self._client.post("/api/chat", json=payload)
        response.raise_for_status()
        return response.json()["message"]["content"]

    async def close(self) -> None:
        await self._client.aclose()
