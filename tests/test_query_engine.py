# =============================================================================
# Unit Tests — Working-Group Query Graph
# =============================================================================
#
# Runs the compiled LangGraph end to end with in-memory repositories and a
# provider chain of fake tiers.
# =============================================================================

from __future__ import annotations

import asyncio

import pytest

from agent_hub.agents.analyst import fallback_answer, format_context
from agent_hub.agents.orchestrator import QueryEngine
from agent_hub.config import Settings
from agent_hub.exceptions import WorkingGroupNotFound
from agent_hub.services.ingestion import DocumentIngestionPipeline
from agent_hub.services.llm import LLMResponse, ProviderTier
from agent_hub.services.provider_chain import ProviderChain
from agent_hub.services.registry import WorkingGroupRegistry
from agent_hub.services.repositories import (
    InMemoryDocumentRepository,
    InMemoryWorkingGroupRepository,
)
from agent_hub.services.retrieval import AllDocumentsRetriever, LexicalRetriever
from agent_hub.services.scoring import HeuristicScorer


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


class FakeProvider:
    def __init__(self, content="Grounded answer [1]", error=None):
        self.model = "fake-model"
        self.content = content
        self.error = error
        self.calls = []

    async def complete(self, messages, system=None, temperature=None, max_tokens=None):
        self.calls.append(
            {"messages": messages, "system": system,
             "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.content, model=self.model, input_tokens=20, output_tokens=8)


def _chain(provider=None, confidence=0.9):
    tiers = [ProviderTier(name="openai", priority=1, model="fake-model",
                          confidence=confidence, provider=provider)]
    return ProviderChain(tiers, timeout=1.0, fallback_confidence=0.6)


def _setup(provider=None, retriever=None):
    documents = InMemoryDocumentRepository()
    registry = WorkingGroupRegistry(
        InMemoryWorkingGroupRepository(), documents, Settings(_env_file=None),
    )
    scorer = HeuristicScorer()
    engine = QueryEngine(
        registry, documents, _chain(provider),
        retriever or AllDocumentsRetriever(), scorer,
    )
    pipeline = DocumentIngestionPipeline(registry, documents, scorer)
    return engine, registry, pipeline


PRIVACY_NOTES = (
    b"Privacy notes\n\nData subjects may request erasure of personal data. "
    b"Controllers must answer within one month."
)


# ---------------------------------------------------------------------------
# Test: end-to-end scenario
# ---------------------------------------------------------------------------


class TestQueryScenario:
    def test_privacy_group_query(self):
        provider = FakeProvider()
        engine, registry, pipeline = _setup(provider)

        async def scenario():
            group = await registry.create(
                "Privacy Research", "GDPR analysis", "privacy-rights", "alice",
                {"model_settings": {"primary_model": "model-A"}},
            )
            await pipeline.upload(group.id, "notes.txt", PRIVACY_NOTES, "text/plain")
            return group, await engine.query(group.id, "summary")

        group, result = _run(scenario())

        assert len(result.sources) == 1
        assert result.sources[0].title == "notes.txt"
        assert result.sources[0].relevance_score == 0.8
        assert result.intelligence_disclosure.model_info.primary_model == "model-A"
        assert result.metadata.working_group_id == group.id
        assert result.metadata.model_used == "model-A"
        assert result.metadata.served_by == "openai"
        assert result.metadata.llm_used is True
        assert result.metadata.retrieval_count == 1
        assert result.response == "Grounded answer [1]"

        # The group's own model settings reach the provider call
        call = provider.calls[0]
        assert call["temperature"] == 0.3
        assert call["max_tokens"] == 4000
        assert "Privacy Research" in call["system"]
        assert "[1] notes.txt" in call["messages"][0]["content"]

    def test_confidence_combines_tier_and_sources(self):
        engine, registry, pipeline = _setup(FakeProvider())

        async def scenario():
            group = await registry.create("g", "", "d", "x")
            await pipeline.upload(group.id, "a.txt", PRIVACY_NOTES, "text/plain")
            return await engine.query(group.id, "erasure")

        result = _run(scenario())
        # (0.9 tier confidence + 0.8 fixed relevance) / 2
        assert result.metadata.confidence == 0.85
        assert result.intelligence_disclosure.confidence_scores.overall == 0.85

    def test_model_override(self):
        engine, registry, _ = _setup(FakeProvider())

        async def scenario():
            group = await registry.create("g", "", "d", "x")
            return await engine.query(group.id, "q", model_override="claude-3-haiku")

        result = _run(scenario())
        assert result.metadata.model_used == "claude-3-haiku"
        assert result.intelligence_disclosure.model_info.primary_model == "claude-3-haiku"

    def test_empty_group_has_no_sources(self):
        engine, registry, _ = _setup(FakeProvider())

        async def scenario():
            group = await registry.create("g", "", "d", "x")
            return await engine.query(group.id, "anything")

        result = _run(scenario())
        assert result.sources == []
        assert result.metadata.retrieval_count == 0
        assert result.metadata.confidence == 0.45


# ---------------------------------------------------------------------------
# Test: fallbacks and options
# ---------------------------------------------------------------------------


class TestQueryOptions:
    def test_exhausted_chain_gives_static_answer(self):
        engine, registry, pipeline = _setup(FakeProvider(error=ConnectionError("refused")))

        async def scenario():
            group = await registry.create("Privacy Research", "", "privacy-rights", "alice")
            await pipeline.upload(group.id, "notes.txt", PRIVACY_NOTES, "text/plain")
            return await engine.query(group.id, "summary")

        result = _run(scenario())

        assert result.metadata.llm_used is False
        assert result.metadata.served_by == "fallback"
        assert result.response.startswith("**Privacy Research Response** (Fallback Mode)")
        assert "[1] notes.txt" in result.response
        # Sources are still reported
        assert len(result.sources) == 1

    def test_unconfigured_chain_still_answers(self):
        engine, registry, _ = _setup(provider=None)

        async def scenario():
            group = await registry.create("g", "", "d", "x")
            return await engine.query(group.id, "q")

        result = _run(scenario())
        assert result.metadata.llm_used is False
        assert result.response

    def test_disclosure_can_be_declined(self):
        engine, registry, _ = _setup(FakeProvider())

        async def scenario():
            group = await registry.create("g", "", "d", "x")
            return await engine.query(group.id, "q", include_disclosure=False)

        assert _run(scenario()).intelligence_disclosure is None

    def test_full_disclosure_lists_graph_steps(self):
        engine, registry, _ = _setup(FakeProvider())

        async def scenario():
            group = await registry.create(
                "g", "", "d", "x",
                {"intelligence_disclosure": {"disclosure_level": "full"}},
            )
            return await engine.query(group.id, "q")

        steps = _run(scenario()).intelligence_disclosure.processing_steps
        assert [s.step for s in steps] == ["resolve", "retrieve", "generate"]

    def test_max_results_limits_sources(self):
        engine, registry, pipeline = _setup(FakeProvider())

        async def scenario():
            group = await registry.create("g", "", "d", "x")
            for i in range(4):
                await pipeline.upload(group.id, f"{i}.txt", PRIVACY_NOTES, "text/plain")
            return (
                await engine.query(group.id, "q"),
                await engine.query(group.id, "q", max_results=2),
            )

        default, limited = _run(scenario())
        assert len(default.sources) == 4
        assert len(limited.sources) == 2

    def test_default_limit_is_group_rag_max_results(self):
        engine, registry, pipeline = _setup(FakeProvider())

        async def scenario():
            group = await registry.create("g", "", "d", "x")
            small = await registry.create("s", "", "d", "x", {"rag_container": {"max_results": 3}})
            for i in range(6):
                await pipeline.upload(group.id, f"{i}.txt", PRIVACY_NOTES, "text/plain")
                await pipeline.upload(small.id, f"{i}.txt", PRIVACY_NOTES, "text/plain")
            return (
                group,
                await engine.query(group.id, "summary"),
                await engine.query(small.id, "summary"),
            )

        group, result, capped = _run(scenario())
        assert group.configuration.rag_container.max_results == 20
        assert len(result.sources) == 6
        assert len(capped.sources) == 3

    def test_long_content_is_excerpted(self):
        engine, registry, pipeline = _setup(FakeProvider())

        async def scenario():
            group = await registry.create("g", "", "d", "x")
            await pipeline.upload(group.id, "long.txt", b"a" * 800, "text/plain")
            return await engine.query(group.id, "q")

        excerpt = _run(scenario()).sources[0].excerpt
        assert excerpt == "a" * 500 + "..."

    def test_lexical_strategy_filters(self):
        engine, registry, pipeline = _setup(FakeProvider(), LexicalRetriever())

        async def scenario():
            group = await registry.create("g", "", "d", "x")
            await pipeline.upload(group.id, "privacy.txt", PRIVACY_NOTES, "text/plain")
            await pipeline.upload(group.id, "other.txt", b"Cookie banner design", "text/plain")
            return await engine.query(group.id, "erasure", similarity_threshold=0.5)

        result = _run(scenario())
        assert [s.title for s in result.sources] == ["privacy.txt"]
        assert result.metadata.retrieval_strategy == "lexical"

    def test_unknown_group(self):
        engine, _, _ = _setup(FakeProvider())
        with pytest.raises(WorkingGroupNotFound):
            _run(engine.query("wg_missing", "q"))


class TestAnalystHelpers:
    def test_context_without_documents(self):
        assert "no documents" in format_context([], 500)

    def test_fallback_without_sources(self):
        engine, registry, _ = _setup()
        group = _run(registry.create("Tech", "", "technical-standards", "x"))
        text = fallback_answer("what changed?", group, [])
        assert '"what changed?"' in text
        assert "No documents in this working group match the query." in text
