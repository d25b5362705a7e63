# =============================================================================
# LangGraph Orchestrator — Working-Group Query Graph
# =============================================================================
#
# Answers a query against one working group by running four nodes over a
# shared state:
#
# GRAPH TOPOLOGY:
#   START ──▶ resolve ──▶ retrieve ──▶ generate ──▶ assemble ──▶ END
#
#   resolve   look up the working group (WorkingGroupNotFound propagates
#             out of ainvoke), pick the requested model
#   retrieve  rank the group's completed documents (Retriever)
#   generate  analyst answer through the provider chain
#   assemble  sources, confidence, disclosure, metadata → QueryResult
#
# Each node appends one ProcessingStep; the `steps` key uses an additive
# reducer so nodes only return their own step.
#
# State holds service objects and Pydantic models; that is fine because the
# graph runs without a checkpointer.
# =============================================================================

from __future__ import annotations

import logging
import operator
import time
from typing import Annotated

from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from agent_hub.agents.analyst import AnalysisResult, analyse
from agent_hub.models.domain import (
    ProcessingStatus,
    ProcessingStep,
    QueryMetadata,
    QueryResult,
    QuerySource,
    SourceAttribution,
    WorkingGroup,
)
from agent_hub.services.disclosure import build_disclosure
from agent_hub.services.provider_chain import ProviderChain
from agent_hub.services.registry import WorkingGroupRegistry
from agent_hub.services.repositories import DocumentRepository
from agent_hub.services.retrieval import RankedDocument, Retriever
from agent_hub.services.scoring import Scorer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Query State Schema
# ---------------------------------------------------------------------------


class QueryState(TypedDict, total=False):
    # --- Input (set by caller) ---
    working_group_id: str
    query: str
    model_override: str | None
    include_disclosure: bool
    max_results: int | None
    similarity_threshold: float | None
    started_at: float

    # --- Intermediate (set by nodes) ---
    group: WorkingGroup
    model_used: str
    ranked: list[RankedDocument]
    analysis: AnalysisResult
    steps: Annotated[list[ProcessingStep], operator.add]

    # --- Output (set by assemble) ---
    result: QueryResult


def _elapsed_ms(since: float) -> int:
    return int((time.monotonic() - since) * 1000)


def _excerpt(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


# ---------------------------------------------------------------------------
# Query Engine
# ---------------------------------------------------------------------------


class QueryEngine:
    """Compiles the query graph once and runs it per request."""

    def __init__(
        self,
        registry: WorkingGroupRegistry,
        documents: DocumentRepository,
        chain: ProviderChain,
        retriever: Retriever,
        scorer: Scorer,
        excerpt_chars: int = 500,
    ) -> None:
        self._registry = registry
        self._documents = documents
        self._chain = chain
        self._retriever = retriever
        self._scorer = scorer
        self._excerpt_chars = excerpt_chars
        self.graph = self._build_graph()

    def _build_graph(self):
        builder = StateGraph(QueryState)
        builder.add_node("resolve", self._resolve_node)
        builder.add_node("retrieve", self._retrieve_node)
        builder.add_node("generate", self._generate_node)
        builder.add_node("assemble", self._assemble_node)

        builder.add_edge(START, "resolve")
        builder.add_edge("resolve", "retrieve")
        builder.add_edge("retrieve", "generate")
        builder.add_edge("generate", "assemble")
        builder.add_edge("assemble", END)
        return builder.compile()

    # --- Nodes ---

    async def _resolve_node(self, state: QueryState) -> dict:
        start = time.monotonic()
        group = await self._registry.get(state["working_group_id"])
        model_used = (
            state.get("model_override")
            or group.configuration.model_settings.primary_model
        )
        return {
            "group": group,
            "model_used": model_used,
            "steps": [
                ProcessingStep(
                    step="resolve", model=model_used,
                    duration_ms=_elapsed_ms(start),
                    detail=f"working group {group.id}",
                )
            ],
        }

    async def _retrieve_node(self, state: QueryState) -> dict:
        start = time.monotonic()
        group = state["group"]
        documents = await self._documents.list_for_group(
            group.id, status=ProcessingStatus.COMPLETED,
        )
        max_results = (
            state.get("max_results") or group.configuration.rag_container.max_results
        )
        threshold = state.get("similarity_threshold")
        if threshold is None:
            threshold = group.configuration.rag_container.similarity_threshold

        ranked = self._retriever.rank(state["query"], documents, max_results, threshold)
        logger.info(
            "Retrieved %d of %d documents for %s (strategy=%s, max_results=%d)",
            len(ranked), len(documents), group.id, self._retriever.name, max_results,
        )
        return {
            "ranked": ranked,
            "steps": [
                ProcessingStep(
                    step="retrieve",
                    duration_ms=_elapsed_ms(start),
                    detail=f"{self._retriever.name}: {len(ranked)}/{len(documents)} documents",
                )
            ],
        }

    async def _generate_node(self, state: QueryState) -> dict:
        start = time.monotonic()
        analysis = await analyse(
            query=state["query"],
            group=state["group"],
            ranked=state["ranked"],
            chain=self._chain,
            excerpt_chars=self._excerpt_chars,
            fallback_confidence=self._chain.fallback_confidence,
        )
        return {
            "analysis": analysis,
            "steps": [
                ProcessingStep(
                    step="generate",
                    model=analysis.served_model,
                    status="completed" if analysis.llm_used else "failed",
                    duration_ms=_elapsed_ms(start),
                    detail=f"served by {analysis.served_by}",
                )
            ],
        }

    async def _assemble_node(self, state: QueryState) -> dict:
        group = state["group"]
        ranked = state["ranked"]
        analysis = state["analysis"]

        sources = [
            QuerySource(
                id=item.document.id,
                title=item.document.metadata.title,
                excerpt=_excerpt(item.document.content, self._excerpt_chars),
                relevance_score=item.relevance,
            )
            for item in ranked
        ]
        attributions = [
            SourceAttribution(
                source_id=item.document.id,
                source_type="document",
                relevance_score=item.relevance,
                contribution=item.document.metadata.title,
            )
            for item in ranked
        ]
        confidence = self._scorer.confidence(
            analysis.generation_confidence, [item.relevance for item in ranked],
        )
        disclosure = build_disclosure(
            group,
            state["model_used"],
            requested=state.get("include_disclosure", True),
            served_by=analysis.served_by,
            served_model=analysis.served_model,
            sources=attributions,
            confidence=confidence,
            steps=state.get("steps", []),
        )

        result = QueryResult(
            response=analysis.answer,
            sources=sources,
            intelligence_disclosure=disclosure,
            metadata=QueryMetadata(
                working_group_id=group.id,
                model_used=state["model_used"],
                served_by=analysis.served_by,
                llm_used=analysis.llm_used,
                processing_time_ms=_elapsed_ms(state["started_at"]),
                confidence=confidence.overall,
                retrieval_count=len(ranked),
                retrieval_strategy=self._retriever.name,
            ),
        )
        return {"result": result}

    # --- Public API ---

    async def query(
        self,
        working_group_id: str,
        query: str,
        model_override: str | None = None,
        include_disclosure: bool = True,
        max_results: int | None = None,
        similarity_threshold: float | None = None,
    ) -> QueryResult:
        """
        Answer a query against one working group.

        Raises:
            WorkingGroupNotFound: unknown working group id.
        """
        initial_state: QueryState = {
            "working_group_id": working_group_id,
            "query": query,
            "model_override": model_override,
            "include_disclosure": include_disclosure,
            "max_results": max_results,
            "similarity_threshold": similarity_threshold,
            "started_at": time.monotonic(),
            "steps": [],
        }

        logger.info(
            "Invoking query graph: group=%s, query='%s', model_override=%s",
            working_group_id, query[:80], model_override,
        )

        final = await self.graph.ainvoke(initial_state)
        result: QueryResult = final["result"]

        logger.info(
            "Query graph complete: group=%s, served_by=%s, sources=%d, %dms",
            working_group_id, result.metadata.served_by,
            len(result.sources), result.metadata.processing_time_ms,
        )
        return result
