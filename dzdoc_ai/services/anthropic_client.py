from anthropic import AsyncAnthropic

from dzdoc_ai.config import Settings


class AnthropicClient:
    """Paid, API-key-gated text-generation backend."""

    name = "claude"

    def __init__(self, settings: Settings) -> None:
        self.model = settings.anthropic_model
        # One attempt per backend; fallback ordering handles failures
        self._client = AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.provider_timeout_seconds,
            max_retries=0,
        )

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> str:
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_message}],
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

    async def close(self) -> None:
        await self._client.close()
