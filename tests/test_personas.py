# =============================================================================
# Unit Tests — Agent Personas
# =============================================================================

from __future__ import annotations

import pytest

from agent_hub.agents import personas
from agent_hub.agents.personas import (
    BASE_PROMPT,
    MULTI_AGENT,
    fallback_content,
    get_persona,
    list_personas,
    resolve,
)


class TestGetPersona:
    @pytest.mark.parametrize("agent_type", ["archive", "codex", "discourse"])
    def test_known_types(self, agent_type):
        assert get_persona(agent_type).id == agent_type

    def test_lookup_is_case_insensitive(self):
        assert get_persona("  Codex ").id == "codex"

    def test_unknown_type_maps_to_multi(self):
        assert get_persona("oracle").id == MULTI_AGENT

    def test_missing_type_maps_to_multi(self):
        assert get_persona(None).id == MULTI_AGENT
        assert get_persona("").id == MULTI_AGENT

    def test_multi_flag_wins(self):
        assert get_persona("archive", is_multi_agent=True).id == MULTI_AGENT


class TestResolve:
    def test_prompt_contains_preamble_and_session(self):
        prompt = resolve("archive", "regulatory")
        assert prompt.startswith(BASE_PROMPT)
        assert "Archive Agent - Knowledge & RAG Systems" in prompt
        assert "**Current Session**: regulatory" in prompt

    def test_specialist_lists_specialties(self):
        prompt = resolve("codex", "standards")
        assert "You specialize in:" in prompt
        assert "- Compliance checking and verification" in prompt

    def test_multi_prompt_describes_coordination(self):
        prompt = resolve("archive", "general", is_multi_agent=True)
        assert "Multi-Agent Collaboration Hub" in prompt
        assert "You coordinate between Archive, Codex, and Discourse" in prompt
        assert "You specialize in:" not in prompt

    def test_deterministic(self):
        assert resolve("discourse", "forum") == resolve("discourse", "forum")

    def test_distinct_personas_give_distinct_prompts(self):
        prompts = {resolve(p.id, "s") for p in list_personas()}
        assert len(prompts) == 4


class TestFallbackContent:
    def test_mentions_message_and_session(self):
        text = fallback_content("test", "archive", "regulatory")
        assert text.startswith("**Archive Agent Response** (Fallback Mode)")
        assert '"test"' in text
        assert "regulatory session" in text
        assert "This is a fallback response" in text

    def test_unknown_type_uses_multi_text(self):
        text = fallback_content("hi", "unknown", "general")
        assert text.startswith("**Multi-Agent Collaboration Response**")


class TestListPersonas:
    def test_display_order(self):
        assert [p.id for p in list_personas()] == ["archive", "codex", "discourse", "multi"]

    def test_registry_is_immutable(self):
        persona = personas.PERSONAS["archive"]
        with pytest.raises(AttributeError):
            persona.name = "changed"
