# =============================================================================
# Agent Personas — Declarative Prompt Registry
# =============================================================================
#
# Maps an agent type + session label to the system prompt used for chat
# generation, and to the static answer served when every provider fails.
#
# PERSONAS:
#   archive   — knowledge synthesis, document analysis, cross-session search
#   codex     — policy analysis, compliance, standards development
#   discourse — community engagement, consensus building, collaboration
#   multi     — cross-agent coordination (also the default for unknown types)
#
# Every prompt follows the same pattern:
# 1. Shared network preamble
# 2. Persona heading + specialties
# 3. Current session label + focus line
# 4. Closing instruction
#
# Everything here is pure: no I/O, no clock, no randomness.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

BASE_PROMPT = (
    "You are operating as part of the BGIN (Blockchain Governance Initiative "
    "Network) Multi-Agent System. You provide intelligent, helpful responses "
    "for blockchain governance research and analysis."
)

MULTI_AGENT = "multi"


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AgentPersona:
    """An immutable agent role with its prompt and fallback templates."""

    id: str
    name: str
    description: str
    heading: str
    capabilities: tuple[str, ...]
    specialties: tuple[str, ...]
    focus: str
    closing: str
    fallback_role: str
    fallback_capabilities: tuple[str, ...]

    def build_prompt(self, session_type: str) -> str:
        """Render the system prompt for a given session label."""
        if self.specialties:
            body = "You specialize in:\n" + "\n".join(
                f"- {item}" for item in self.specialties
            )
        else:
            body = (
                "You coordinate between Archive, Codex, and Discourse agents "
                "to provide comprehensive blockchain governance research "
                "support."
            )
        return (
            f"{BASE_PROMPT}\n\n"
            f"**{self.heading}**\n"
            f"{body}\n\n"
            f"**Current Session**: {session_type}\n"
            f"**Focus**: {self.focus}\n\n"
            f"{self.closing}"
        )

    def fallback_response(self, message: str, session_type: str) -> str:
        """Static answer used when the whole provider chain is exhausted."""
        capabilities = "\n".join(f"• {c}" for c in self.fallback_capabilities)
        return (
            f"**{self.name} Response** (Fallback Mode)\n\n"
            f'I understand you\'re asking about "{message}" in the '
            f"{session_type} session. {self.fallback_role}\n\n"
            f"**Current Capabilities**:\n{capabilities}\n\n"
            "**Note**: This is a fallback response. No language-model "
            "provider could be reached, so this answer was not generated "
            "by a model."
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PERSONAS: dict[str, AgentPersona] = {
    "archive": AgentPersona(
        id="archive",
        name="Archive Agent",
        description="Knowledge & RAG Systems",
        heading="Archive Agent - Knowledge & RAG Systems",
        capabilities=(
            "Document Analysis",
            "Knowledge Synthesis",
            "Cross-Session Search",
        ),
        specialties=(
            "Document analysis and knowledge synthesis",
            "Cross-session search and retrieval",
            "Privacy-preserving knowledge management",
            "Research correlation and discovery",
        ),
        focus="Research synthesis, document processing, knowledge correlation",
        closing=(
            "Provide comprehensive, accurate analysis with actionable "
            "insights while maintaining privacy awareness."
        ),
        fallback_role=(
            "As the Archive Agent, I specialize in knowledge synthesis and "
            "document analysis. I can help you find relevant research, "
            "analyze documents, and discover correlations across different "
            "sessions."
        ),
        fallback_capabilities=(
            "Document processing and analysis",
            "Cross-session knowledge discovery",
            "Research correlation and synthesis",
            "Privacy-preserving knowledge management",
        ),
    ),
    "codex": AgentPersona(
        id="codex",
        name="Codex Agent",
        description="Policy & Standards Management",
        heading="Codex Agent - Policy & Standards Management",
        capabilities=(
            "Policy Analysis",
            "Compliance Check",
            "Standards Development",
        ),
        specialties=(
            "Policy analysis and standards development",
            "Compliance checking and verification",
            "Regulatory framework analysis",
            "Stakeholder impact assessment",
        ),
        focus="Policy frameworks, compliance, governance modeling",
        closing=(
            "Provide detailed policy analysis with compliance "
            "recommendations."
        ),
        fallback_role=(
            "As the Codex Agent, I specialize in policy analysis and "
            "standards management. I can help you analyze regulatory "
            "frameworks, assess compliance, and develop governance standards."
        ),
        fallback_capabilities=(
            "Policy framework analysis",
            "Compliance assessment",
            "Standards development",
            "Regulatory impact analysis",
        ),
    ),
    "discourse": AgentPersona(
        id="discourse",
        name="Discourse Agent",
        description="Communications & Collaboration",
        heading="Discourse Agent - Communications & Collaboration",
        capabilities=(
            "Forum Integration",
            "Consensus Building",
            "Community Management",
        ),
        specialties=(
            "Community engagement and consensus building",
            "Forum integration and discussion facilitation",
            "Trust network establishment",
            "Collaboration coordination",
        ),
        focus="Community building, consensus, collaboration",
        closing=(
            "Provide community-focused analysis with collaboration "
            "recommendations."
        ),
        fallback_role=(
            "As the Discourse Agent, I specialize in community engagement "
            "and consensus building. I can help you facilitate discussions, "
            "build consensus, and manage community interactions."
        ),
        fallback_capabilities=(
            "Community engagement",
            "Consensus building",
            "Discussion facilitation",
            "Trust network establishment",
        ),
    ),
    MULTI_AGENT: AgentPersona(
        id=MULTI_AGENT,
        name="Multi-Agent Collaboration",
        description="Cross-Agent Coordination",
        heading="Multi-Agent Collaboration Hub",
        capabilities=(
            "Integrated Analysis",
            "Cross-Agent Synthesis",
            "Multi-Perspective Research",
        ),
        specialties=(),
        focus="Integrated analysis across all agent capabilities",
        closing="Provide comprehensive multi-agent analysis.",
        fallback_role=(
            "As the Multi-Agent System, I coordinate between Archive, Codex, "
            "and Discourse agents to provide comprehensive blockchain "
            "governance research support."
        ),
        fallback_capabilities=(
            "Integrated analysis across all agent capabilities",
            "Cross-agent knowledge synthesis",
            "Comprehensive governance insights",
            "Multi-perspective research analysis",
        ),
    ),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_persona(agent_type: str | None, is_multi_agent: bool = False) -> AgentPersona:
    """
    Look up a persona by agent type.

    Unknown or empty agent types resolve to the multi-agent persona.
    The multi-agent flag always wins over the requested type.
    """
    if is_multi_agent:
        return PERSONAS[MULTI_AGENT]

    key = (agent_type or "").strip().lower()
    persona = PERSONAS.get(key)
    if persona is None:
        logger.debug("Unknown agent type '%s', using multi-agent persona", agent_type)
        return PERSONAS[MULTI_AGENT]
    return persona


def resolve(agent_type: str | None, session_type: str, is_multi_agent: bool = False) -> str:
    """Return the system prompt for (agent type, session label, multi flag)."""
    return get_persona(agent_type, is_multi_agent).build_prompt(session_type)


def fallback_content(
    message: str,
    agent_type: str | None,
    session_type: str,
    is_multi_agent: bool = False,
) -> str:
    """Deterministic static answer keyed by persona and session label."""
    persona = get_persona(agent_type, is_multi_agent)
    return persona.fallback_response(message, session_type)


def list_personas() -> list[AgentPersona]:
    """Personas in display order (specialists first, multi last)."""
    return [PERSONAS[key] for key in ("archive", "codex", "discourse", MULTI_AGENT)]
