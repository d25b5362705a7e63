# =============================================================================
# Service Dependencies — FastAPI Dependency Injection
# =============================================================================
#
# Builds the service graph once per process and hands it to route handlers
# through Depends(). Every provider is an lru_cache'd zero-argument
# function, so:
# - the provider chain, repositories and engines are process singletons
# - tests replace any of them via app.dependency_overrides[get_x] = ...
#
# WIRING:
#   storage_backend = "sql"    → Sql* stores on the shared async engine
#   storage_backend = "memory" → InMemory* stores (lost on restart)
#
#   get_registry ─────────┐
#   get_document_repo ────┼──▶ get_ingestion_pipeline
#   get_scorer ───────────┘
#   get_registry, get_document_repo, get_provider_chain,
#   get_retriever, get_scorer ──▶ get_query_engine
# =============================================================================

from __future__ import annotations

import logging
from functools import lru_cache

from agent_hub.agents.orchestrator import QueryEngine
from agent_hub.config import get_settings
from agent_hub.services.ingestion import DocumentIngestionPipeline
from agent_hub.services.provider_chain import ProviderChain, build_provider_chain
from agent_hub.services.registry import WorkingGroupRegistry
from agent_hub.services.repositories import (
    DocumentRepository,
    InMemoryDocumentRepository,
    InMemoryWorkingGroupRepository,
    SqlDocumentRepository,
    SqlWorkingGroupRepository,
    WorkingGroupRepository,
)
from agent_hub.services.retrieval import Retriever, build_retriever
from agent_hub.services.scoring import HeuristicScorer, Scorer
from agent_hub.services.transcripts import (
    InMemoryTranscriptStore,
    SqlTranscriptStore,
    TranscriptStore,
)

logger = logging.getLogger(__name__)


def _use_sql() -> bool:
    backend = get_settings().storage_backend
    if backend not in ("sql", "memory"):
        raise ValueError(f"Unknown storage_backend '{backend}' (expected 'sql' or 'memory')")
    return backend == "sql"


@lru_cache
def get_provider_chain() -> ProviderChain:
    chain = build_provider_chain(get_settings())
    logger.info(
        "Provider chain: %s",
        " → ".join(f"{t.name}{'' if t.configured else ' (unconfigured)'}" for t in chain.tiers)
        or "(no tiers, static fallback only)",
    )
    return chain


@lru_cache
def get_transcript_store() -> TranscriptStore:
    if _use_sql():
        from agent_hub.db.engine import async_session_factory

        return SqlTranscriptStore(async_session_factory)
    return InMemoryTranscriptStore()


@lru_cache
def get_group_repository() -> WorkingGroupRepository:
    if _use_sql():
        from agent_hub.db.engine import async_session_factory

        return SqlWorkingGroupRepository(async_session_factory)
    return InMemoryWorkingGroupRepository()


@lru_cache
def get_document_repository() -> DocumentRepository:
    if _use_sql():
        from agent_hub.db.engine import async_session_factory

        return SqlDocumentRepository(async_session_factory)
    return InMemoryDocumentRepository()


@lru_cache
def get_scorer() -> Scorer:
    return HeuristicScorer()


@lru_cache
def get_retriever() -> Retriever:
    return build_retriever(get_settings().retrieval_strategy)


@lru_cache
def get_registry() -> WorkingGroupRegistry:
    return WorkingGroupRegistry(
        groups=get_group_repository(),
        documents=get_document_repository(),
        settings=get_settings(),
    )


@lru_cache
def get_ingestion_pipeline() -> DocumentIngestionPipeline:
    return DocumentIngestionPipeline(
        registry=get_registry(),
        documents=get_document_repository(),
        scorer=get_scorer(),
    )


@lru_cache
def get_query_engine() -> QueryEngine:
    cfg = get_settings()
    return QueryEngine(
        registry=get_registry(),
        documents=get_document_repository(),
        chain=get_provider_chain(),
        retriever=get_retriever(),
        scorer=get_scorer(),
        excerpt_chars=cfg.excerpt_chars,
    )
