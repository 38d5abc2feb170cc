"""Ordered provider fallback: local backend first, paid backend second."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from dzdoc_ai.config import Settings
from dzdoc_ai.errors import AllProvidersFailedError, NoProviderConfiguredError
from dzdoc_ai.services.anthropic_client import AnthropicClient
from dzdoc_ai.services.ollama_client import OllamaClient

logger = logging.getLogger(__name__)


class TextProvider(Protocol):
    name: str
    model: str

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: int = ...,
        temperature: float = ...,
    ) -> str: ...

    async def close(self) -> None: ...


@dataclass(frozen=True)
class GenerationResult:
    text: str
    provider: str
    model: str


def build_providers(settings: Settings) -> list[TextProvider]:
    """Configured backends in fixed priority order (never shuffled)."""
    providers: list[TextProvider] = []
    if settings.ollama_base_url:
        providers.append(OllamaClient(settings))
    if settings.anthropic_api_key:
        providers.append(AnthropicClient(settings))
    return providers


class ProviderFallbackClient:
    def __init__(self, providers: Sequence[TextProvider], timeout_seconds: float = 60.0) -> None:
        self._providers = list(providers)
        self._timeout = timeout_seconds

    @property
    def has_providers(self) -> bool:
        return bool(self._providers)

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    async def generate(
        self,
        prompt: str,
        system_prompt: str,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> GenerationResult:
        """Return the first successful generation, one attempt per provider.

        Each attempt is bounded by the per-provider timeout and cancelled
        when it expires.
        """
        if not self._providers:
            raise NoProviderConfiguredError()

        failures: list[str] = []
        for provider in self._providers:
            try:
                text = await asyncio.wait_for(
                    provider.complete(
                        system_prompt=system_prompt,
                        user_message=prompt,
                        max_tokens=max_tokens,
                        temperature=temperature,
                    ),
                    timeout=self._timeout,
                )
            except Exception as exc:
                logger.warning(
                    "Provider %s (%s) failed, trying next provider",
                    provider.name,
                    provider.model,
                    exc_info=True,
                )
                failures.append(f"{provider.name}: {type(exc).__name__}")
                continue

            if not text or not text.strip():
                logger.warning("Provider %s returned an empty response", provider.name)
                failures.append(f"{provider.name}: empty response")
                continue

            return GenerationResult(text=text, provider=provider.name, model=provider.model)

        logger.error("All providers failed: %s", "; ".join(failures))
        raise AllProvidersFailedError(failures)

    async def close(self) -> None:
        for provider in self._providers:
            try:
                await provider.close()
            except Exception:
                logger.warning("Failed to close provider %s", provider.name, exc_info=True)
