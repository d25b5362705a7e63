# =============================================================================
# Status API — Health, Agent Catalogue and Provider Diagnostics
# =============================================================================
#
# ENDPOINTS:
#   GET /health        — liveness, no dependencies touched
#   GET /agents        — persona catalogue
#   GET /status        — configured provider tiers (no network)
#   GET /status/probe  — one short completion per configured tier
#
# The probe is sequential and bounded by the chain's per-tier timeout, so
# its worst case is the sum of the timeouts of the configured tiers.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from agent_hub.agents.personas import list_personas
from agent_hub.api.deps import get_provider_chain
from agent_hub.config import settings
from agent_hub.models.responses import (
    AgentInfo,
    HealthResponse,
    ProbeEntry,
    ProbeResponse,
    ProviderStatus,
    StatusResponse,
)
from agent_hub.services.provider_chain import ProviderChain

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Status"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.app_version, service=settings.app_name)


@router.get("/agents", response_model=list[AgentInfo], summary="List agent personas")
async def list_agents_endpoint() -> list[AgentInfo]:
    return [
        AgentInfo(
            id=p.id,
            name=p.name,
            description=p.description,
            capabilities=list(p.capabilities),
        )
        for p in list_personas()
    ]


@router.get("/status", response_model=StatusResponse, summary="Provider chain configuration")
async def status_endpoint(
    chain: ProviderChain = Depends(get_provider_chain),
) -> StatusResponse:
    return StatusResponse(
        service=settings.app_name,
        version=settings.app_version,
        storage_backend=settings.storage_backend,
        retrieval_strategy=settings.retrieval_strategy,
        timeout_seconds=chain.timeout,
        providers=[ProviderStatus(**entry) for entry in chain.status()],
    )


@router.get(
    "/status/probe",
    response_model=ProbeResponse,
    summary="Check provider reachability",
)
async def probe_endpoint(
    chain: ProviderChain = Depends(get_provider_chain),
) -> ProbeResponse:
    results = await chain.probe()
    reachable = [r.tier for r in results if r.reachable]
    logger.info(
        "Provider probe: %d/%d reachable (%s)",
        len(reachable), len(results), ", ".join(reachable) or "none",
    )
    return ProbeResponse(
        providers=[
            ProbeEntry(
                tier=r.tier, priority=r.priority, model=r.model,
                configured=r.configured, reachable=r.reachable,
                latency_ms=r.latency_ms, error=r.error,
            )
            for r in results
        ],
        any_reachable=bool(reachable),
    )
