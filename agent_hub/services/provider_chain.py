# =============================================================================
# Provider Chain — Ordered Fallback Across Generation Backends
# =============================================================================
#
# Attempts provider tiers strictly in priority order and stops at the first
# success. Failures of a single tier are recovered locally by advancing to
# the next tier; exhaustion of the whole chain is a normal outcome that
# resolves to a static, persona-keyed answer with llm_used=False.
#
# FLOW (per request):
#   resolve persona prompt
#     → tier 1: one bounded attempt ──ok──▶ ChainSuccess
#         │ fail (timeout / auth / network / malformed / unconfigured)
#     → tier 2: one bounded attempt ──ok──▶ ChainSuccess
#         │ fail
#     → ...
#     → ChainExhausted ──▶ static fallback answer
#
# Calls are sequential; nothing is raced or merged. Worst-case latency is
# the sum of the per-tier timeouts.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from agent_hub.agents import personas
from agent_hub.config import Settings
from agent_hub.exceptions import ProviderUnavailable
from agent_hub.services.llm import LLMResponse, ProviderTier, build_provider_tiers

logger = logging.getLogger(__name__)

FALLBACK_TIER = "fallback"
FALLBACK_MODEL = "fallback"

_PROBE_PROMPT = "Respond with 'OK' to confirm the service is working."


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class AttemptRecord:
    """Diagnostic record of one tier attempt (never shown to end users)."""

    tier: str
    ok: bool
    elapsed_ms: int
    error: str | None = None


@dataclass
class ChainSuccess:
    """A tier produced a usable completion."""

    response: LLMResponse
    tier: ProviderTier
    attempts: list[AttemptRecord] = field(default_factory=list)


@dataclass
class ChainExhausted:
    """Every tier failed; the caller serves its own static content."""

    attempts: list[AttemptRecord] = field(default_factory=list)


ChainOutcome = ChainSuccess | ChainExhausted


@dataclass
class ChatResult:
    """Normalised chat answer, identical in shape for real and fallback paths."""

    content: str
    confidence: float
    sources: int
    processing_time_ms: int
    llm_used: bool
    model: str
    tier: str
    attempts: list[AttemptRecord] = field(default_factory=list)


@dataclass
class ProbeResult:
    """Reachability of one tier, as reported by /status/probe."""

    tier: str
    priority: int
    model: str
    configured: bool
    reachable: bool
    latency_ms: int | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Attempt Combinator
# ---------------------------------------------------------------------------


async def attempt_tier(
    tier: ProviderTier,
    messages: list[dict[str, str]],
    system: str | None,
    timeout: float,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> LLMResponse:
    """
    Make exactly one bounded attempt against a tier.

    Every failure mode is normalised to ProviderUnavailable so the chain
    has a single thing to catch.
    """
    if tier.provider is None:
        raise ProviderUnavailable(tier.name, "not configured")

    try:
        return await asyncio.wait_for(
            tier.provider.complete(
                messages=messages,
                system=system,
                temperature=temperature,
                max_tokens=max_tokens,
            ),
            timeout=timeout,
        )
    except ProviderUnavailable:
        raise
    except asyncio.TimeoutError as e:
        raise ProviderUnavailable(tier.name, f"timed out after {timeout:.1f}s") from e
    except Exception as e:
        # SDK auth, connection, status and decoding errors
        raise ProviderUnavailable(tier.name, f"{type(e).__name__}: {e}") from e


async def attempt_chain(
    tiers: list[ProviderTier],
    messages: list[dict[str, str]],
    system: str | None,
    timeout: float,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> ChainOutcome:
    """Try tiers in priority order; first success wins."""
    attempts: list[AttemptRecord] = []

    for tier in sorted(tiers, key=lambda t: t.priority):
        start = time.monotonic()
        try:
            response = await attempt_tier(
                tier, messages, system, timeout, temperature, max_tokens,
            )
        except ProviderUnavailable as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            if tier.configured:
                tier.healthy = False
            attempts.append(
                AttemptRecord(tier=tier.name, ok=False, elapsed_ms=elapsed_ms, error=e.reason)
            )
            logger.warning(
                "Provider tier '%s' (priority %d) failed after %dms: %s",
                tier.name, tier.priority, elapsed_ms, e.reason,
            )
            continue

        elapsed_ms = int((time.monotonic() - start) * 1000)
        tier.healthy = True
        attempts.append(AttemptRecord(tier=tier.name, ok=True, elapsed_ms=elapsed_ms))
        logger.info(
            "Provider tier '%s' answered (model=%s, %dms, tokens=%d+%d)",
            tier.name, response.model, elapsed_ms,
            response.input_tokens, response.output_tokens,
        )
        return ChainSuccess(response=response, tier=tier, attempts=attempts)

    logger.error(
        "All %d provider tiers failed; serving static fallback", len(attempts),
    )
    return ChainExhausted(attempts=attempts)


# ---------------------------------------------------------------------------
# Provider Chain
# ---------------------------------------------------------------------------


class ProviderChain:
    """The deployment's ordered list of tiers plus the terminal static answer."""

    def __init__(
        self,
        tiers: list[ProviderTier],
        timeout: float,
        fallback_confidence: float = 0.6,
    ) -> None:
        self._tiers = sorted(tiers, key=lambda t: t.priority)
        self.timeout = timeout
        self.fallback_confidence = fallback_confidence

    @property
    def tiers(self) -> list[ProviderTier]:
        return list(self._tiers)

    async def complete(
        self,
        system: str | None,
        messages: list[dict[str, str]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChainOutcome:
        """Run the chain for an arbitrary prompt and return the tagged outcome."""
        return await attempt_chain(
            self._tiers, messages, system, self.timeout, temperature, max_tokens,
        )

    async def generate(
        self,
        message: str,
        agent_type: str | None,
        session_type: str,
        is_multi_agent: bool = False,
    ) -> ChatResult:
        """
        Answer a chat message as the resolved persona.

        Never raises for provider failures: exhaustion resolves to the
        persona's static answer with llm_used=False and reduced confidence.
        """
        start = time.monotonic()
        system_prompt = personas.resolve(agent_type, session_type, is_multi_agent)

        outcome = await self.complete(
            system=system_prompt,
            messages=[{"role": "user", "content": message}],
        )
        processing_time_ms = int((time.monotonic() - start) * 1000)

        if isinstance(outcome, ChainSuccess):
            return ChatResult(
                content=outcome.response.content,
                confidence=outcome.tier.confidence,
                sources=0,
                processing_time_ms=processing_time_ms,
                llm_used=True,
                model=outcome.response.model,
                tier=outcome.tier.name,
                attempts=outcome.attempts,
            )

        return ChatResult(
            content=personas.fallback_content(
                message, agent_type, session_type, is_multi_agent,
            ),
            confidence=self.fallback_confidence,
            sources=0,
            processing_time_ms=processing_time_ms,
            llm_used=False,
            model=FALLBACK_MODEL,
            tier=FALLBACK_TIER,
            attempts=outcome.attempts,
        )

    def status(self) -> list[dict]:
        """Configured tiers in priority order, without touching the network."""
        return [
            {
                "tier": tier.name,
                "priority": tier.priority,
                "model": tier.model,
                "base_url": tier.base_url,
                "configured": tier.configured,
                "healthy": tier.healthy,
                "default_confidence": tier.confidence,
            }
            for tier in self._tiers
        ]

    async def probe(self) -> list[ProbeResult]:
        """Send one short completion to every configured tier, sequentially."""
        results: list[ProbeResult] = []
        for tier in self._tiers:
            if not tier.configured:
                results.append(
                    ProbeResult(
                        tier=tier.name, priority=tier.priority, model=tier.model,
                        configured=False, reachable=False, error="not configured",
                    )
                )
                continue

            start = time.monotonic()
            try:
                await attempt_tier(
                    tier,
                    [{"role": "user", "content": _PROBE_PROMPT}],
                    system=None,
                    timeout=self.timeout,
                    max_tokens=10,
                )
            except ProviderUnavailable as e:
                tier.healthy = False
                results.append(
                    ProbeResult(
                        tier=tier.name, priority=tier.priority, model=tier.model,
                        configured=True, reachable=False,
                        latency_ms=int((time.monotonic() - start) * 1000),
                        error=e.reason,
                    )
                )
                logger.warning("Probe of tier '%s' failed: %s", tier.name, e.reason)
                continue

            tier.healthy = True
            results.append(
                ProbeResult(
                    tier=tier.name, priority=tier.priority, model=tier.model,
                    configured=True, reachable=True,
                    latency_ms=int((time.monotonic() - start) * 1000),
                )
            )
        return results


def build_provider_chain(cfg: Settings) -> ProviderChain:
    """Assemble the deployment's chain from settings."""
    return ProviderChain(
        tiers=build_provider_tiers(cfg),
        timeout=cfg.provider_timeout_seconds,
        fallback_confidence=cfg.fallback_confidence,
    )
