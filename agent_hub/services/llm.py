# =============================================================================
# LLM Providers — Vendor SDKs Behind One Chat-Completion Shape
# =============================================================================
#
# Every generation backend is wrapped so that it satisfies the same
# `complete()` contract and returns the same LLMResponse. Vendor-specific
# envelopes (Anthropic content blocks, OpenAI choices) are normalised here,
# at the boundary, so the provider chain never sees them.
#
# ARCHITECTURE:
#   LLMProvider (Protocol)
#   ├── AnthropicProvider        — Claude via native Anthropic SDK
#   ├── OpenAICompatibleProvider — any OpenAI-compatible API (KwaaiNet,
#   │                              OpenAI, Phala Cloud)
#   ├── ProviderTier             — one ranked entry of the fallback chain
#   └── build_provider_tiers()   — builds the ordered tiers from settings
#
# Each SDK client is created with the tier timeout and max_retries=0:
# a tier gets exactly one bounded attempt per request.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from agent_hub.config import Settings
from agent_hub.exceptions import ProviderUnavailable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """Standardised response from any LLM provider."""

    content: str           # The generated text
    model: str             # Model identifier reported by the upstream
    input_tokens: int      # Tokens consumed by the prompt
    output_tokens: int     # Tokens generated in the response


class LLMProvider(Protocol):
    """
    Protocol defining the chat-completion interface.

    Implementations raise on any upstream failure; the provider chain is
    responsible for turning those failures into fall-through.
    """

    name: str
    model: str

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Generate a completion.

        Args:
            messages: Conversation messages as dicts with "role" and "content".
            system: System prompt. Anthropic takes it as a top-level kwarg,
                OpenAI-compatible APIs as a leading "system" message.
            temperature: Override sampling temperature.
            max_tokens: Override max output tokens.
        """
        ...


# ---------------------------------------------------------------------------
# Implementation 1: Anthropic (Claude)
# ---------------------------------------------------------------------------


class AnthropicProvider:
    """Anthropic Claude provider using the native async SDK."""

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        name: str = "anthropic",
    ) -> None:
        from anthropic import AsyncAnthropic

        if not api_key:
            raise ValueError("No Anthropic API key configured. Set ANTHROPIC_API_KEY in .env")

        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self.name = name
        self.model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

        logger.info("Initialized AnthropicProvider (tier=%s, model=%s)", name, model)

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion using Claude."""
        kwargs: dict = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": self._temperature if temperature is None else temperature,
        }

        # Anthropic: system prompt is a top-level kwarg, not a message
        if system:
            kwargs["system"] = system

        response = await self._client.messages.create(**kwargs)

        content = ""
        for block in response.content or []:
            if block.type == "text":
                content = block.text
                break

        if not content.strip():
            raise ProviderUnavailable(self.name, "malformed response: no text content")

        return LLMResponse(
            content=content,
            model=response.model or self.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


# ---------------------------------------------------------------------------
# Implementation 2: OpenAI-Compatible (KwaaiNet, OpenAI, Phala Cloud)
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider:
    """
    Provider for any API that follows the OpenAI chat-completions shape.

    One implementation serves every OpenAI-compatible tier; only base_url,
    api_key and model differ between them.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        name: str = "openai",
    ) -> None:
        from openai import AsyncOpenAI

        if not api_key:
            raise ValueError(
                f"No API key configured for provider '{name}'. "
                "Set the matching *_API_KEY in .env"
            )

        client_kwargs: dict = {
            "api_key": api_key,
            "timeout": timeout,
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self.name = name
        self.model = model
        self.base_url = base_url
        self._temperature = temperature
        self._max_tokens = max_tokens

        logger.info(
            "Initialized OpenAICompatibleProvider (tier=%s, model=%s, base_url=%s)",
            name,
            model,
            base_url or "https://api.openai.com/v1",
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion using an OpenAI-compatible API."""
        all_messages: list[dict[str, str]] = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        response = await self._client.chat.completions.create(
            model=self.model,
            messages=all_messages,
            max_tokens=max_tokens or self._max_tokens,
            temperature=self._temperature if temperature is None else temperature,
        )

        if not response.choices:
            raise ProviderUnavailable(self.name, "malformed response: no choices")

        content = response.choices[0].message.content or ""
        if not content.strip():
            raise ProviderUnavailable(self.name, "malformed response: empty content")

        usage = response.usage
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        return LLMResponse(
            content=content,
            model=response.model or self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )


# ---------------------------------------------------------------------------
# Provider Tiers
# ---------------------------------------------------------------------------


@dataclass
class ProviderTier:
    """
    One ranked entry of the fallback chain.

    `provider` is None when the tier has no credentials; such a tier is
    still listed (so /status can report it) but fails fast when attempted.
    `healthy` records the outcome of the most recent attempt and is the
    only field that changes after startup.
    """

    name: str
    priority: int
    model: str
    confidence: float
    provider: LLMProvider | None = None
    base_url: str | None = None
    healthy: bool | None = None

    @property
    def configured(self) -> bool:
        return self.provider is not None


def _tier_definitions(cfg: Settings) -> dict[str, dict]:
    """Static per-tier wiring: SDK family, endpoint, credentials, model."""
    return {
        "kwaainet": {
            "kind": "openai_compatible",
            "base_url": cfg.kwaai_endpoint,
            "api_key": cfg.kwaai_api_key,
            "model": cfg.kwaai_model,
            "confidence": cfg.kwaai_confidence,
        },
        "openai": {
            "kind": "openai_compatible",
            "base_url": cfg.openai_base_url,
            "api_key": cfg.openai_api_key,
            "model": cfg.openai_model,
            "confidence": cfg.openai_confidence,
        },
        "phala": {
            "kind": "openai_compatible",
            "base_url": cfg.phala_endpoint,
            "api_key": cfg.phala_api_key,
            "model": cfg.phala_model,
            "confidence": cfg.phala_confidence,
        },
        "anthropic": {
            "kind": "anthropic",
            "base_url": None,
            "api_key": cfg.anthropic_api_key,
            "model": cfg.anthropic_model,
            "confidence": cfg.anthropic_confidence,
        },
    }


def build_provider_tiers(cfg: Settings) -> list[ProviderTier]:
    """
    Build the ordered fallback tiers from settings.

    Tier priority follows `provider_order` (1 = tried first). Unknown names
    are logged and skipped; tiers without an API key are kept unconfigured.
    """
    definitions = _tier_definitions(cfg)
    tiers: list[ProviderTier] = []

    for name in cfg.provider_order:
        definition = definitions.get(name)
        if definition is None:
            logger.warning("Ignoring unknown provider tier '%s'", name)
            continue

        provider: LLMProvider | None = None
        if definition["api_key"]:
            common = {
                "api_key": definition["api_key"],
                "model": definition["model"],
                "timeout": cfg.provider_timeout_seconds,
                "temperature": cfg.llm_temperature,
                "max_tokens": cfg.llm_max_tokens,
                "name": name,
            }
            if definition["kind"] == "anthropic":
                provider = AnthropicProvider(**common)
            else:
                provider = OpenAICompatibleProvider(
                    base_url=definition["base_url"], **common,
                )
        else:
            logger.info("Provider tier '%s' has no API key; it will be skipped", name)

        tiers.append(
            ProviderTier(
                name=name,
                priority=len(tiers) + 1,
                model=definition["model"],
                confidence=definition["confidence"],
                provider=provider,
                base_url=definition["base_url"],
            )
        )

    return tiers
