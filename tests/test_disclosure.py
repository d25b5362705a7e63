# =============================================================================
# Unit Tests — Intelligence Disclosure Policy
# =============================================================================

from __future__ import annotations

import asyncio

import pytest

from agent_hub.config import Settings
from agent_hub.models.domain import (
    ConfidenceScores,
    DisclosureSettings,
    ProcessingStep,
    SourceAttribution,
)
from agent_hub.services.disclosure import allowed_sections, build_disclosure
from agent_hub.services.registry import WorkingGroupRegistry
from agent_hub.services.repositories import (
    InMemoryDocumentRepository,
    InMemoryWorkingGroupRepository,
)


def _group(**disclosure):
    registry = WorkingGroupRegistry(
        InMemoryWorkingGroupRepository(), InMemoryDocumentRepository(),
        Settings(_env_file=None),
    )
    overrides = {
        "model_settings": {"primary_model": "model-A", "temperature": 0.1},
        "intelligence_disclosure": disclosure,
    }
    return asyncio.run(registry.create("Privacy Research", "", "privacy-rights", "alice", overrides))


SOURCES = [SourceAttribution(source_id="doc_1", relevance_score=0.8, contribution="Notes")]
CONFIDENCE = ConfidenceScores(overall=0.7)
STEPS = [ProcessingStep(step="retrieve"), ProcessingStep(step="generate")]


def _build(group, **kwargs):
    return build_disclosure(
        group, "model-A", served_by="openai", served_model="gpt-4o-mini",
        sources=SOURCES, confidence=CONFIDENCE, steps=STEPS, **kwargs,
    )


class TestLevels:
    def test_minimal(self):
        disclosure = _build(_group(disclosure_level="minimal"))

        assert disclosure.model_info.primary_model == "model-A"
        assert disclosure.source_attribution == []
        assert disclosure.confidence_scores is None
        assert disclosure.processing_steps == []

    def test_partial(self):
        disclosure = _build(_group(disclosure_level="partial"))

        assert disclosure.model_info is not None
        assert [s.source_id for s in disclosure.source_attribution] == ["doc_1"]
        assert disclosure.confidence_scores.overall == 0.7
        assert disclosure.processing_steps == []

    def test_full(self):
        disclosure = _build(_group(disclosure_level="full"))

        assert [s.step for s in disclosure.processing_steps] == ["retrieve", "generate"]
        assert disclosure.source_attribution
        assert disclosure.confidence_scores is not None
        assert disclosure.metadata.disclosure_level == "full"

    def test_reasoning_chain_always_empty(self):
        assert _build(_group(disclosure_level="full")).reasoning_chain == []


class TestSuppression:
    def test_disabled_policy_gives_none(self):
        assert _build(_group(enabled=False)) is None

    def test_not_requested_gives_none(self):
        assert _build(_group(disclosure_level="full"), requested=False) is None

    def test_include_flags_suppress_sections(self):
        disclosure = _build(_group(
            disclosure_level="full",
            include_source_attribution=False,
            include_processing_steps=False,
        ))

        assert disclosure.source_attribution == []
        assert disclosure.processing_steps == []
        assert disclosure.confidence_scores is not None

    def test_model_info_can_be_hidden(self):
        disclosure = _build(_group(include_model_info=False))
        assert disclosure.model_info is None
        assert disclosure.metadata.working_group_id.startswith("wg_")

    @pytest.mark.parametrize(
        "level,expected",
        [
            ("minimal", {"model_info"}),
            ("partial", {"model_info", "source_attribution", "confidence_scores"}),
            ("full", {"model_info", "source_attribution", "confidence_scores", "processing_steps"}),
        ],
    )
    def test_allowed_sections(self, level, expected):
        assert allowed_sections(DisclosureSettings(disclosure_level=level)) == expected


class TestModelInfo:
    def test_served_tier_and_parameters(self):
        info = _build(_group()).model_info

        assert info.served_by == "openai"
        assert info.served_model == "gpt-4o-mini"
        assert info.parameters["temperature"] == 0.1
        assert info.parameters["max_tokens"] == 4000
