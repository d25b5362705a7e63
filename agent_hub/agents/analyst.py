# =============================================================================
# Analyst Agent — Working-Group Answer Generation
# =============================================================================
#
# Generates the answer to a working-group query from the ranked documents,
# through the provider chain.
#
# The system prompt frames the answer with the group's name and domain;
# the user message carries the query plus numbered excerpts [1], [2], ...
# so the model can cite sources.
#
# When every provider tier fails, the answer is a deterministic summary
# listing the group's available sources, with llm_used=False.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from agent_hub.agents.personas import BASE_PROMPT
from agent_hub.models.domain import WorkingGroup
from agent_hub.services.provider_chain import (
    FALLBACK_MODEL,
    FALLBACK_TIER,
    AttemptRecord,
    ChainSuccess,
    ProviderChain,
)
from agent_hub.services.retrieval import RankedDocument

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Result from the analyst agent."""

    answer: str
    llm_used: bool
    served_by: str
    served_model: str
    generation_confidence: float
    input_tokens: int = 0
    output_tokens: int = 0
    attempts: list[AttemptRecord] = field(default_factory=list)


def build_system_prompt(group: WorkingGroup) -> str:
    return (
        f"{BASE_PROMPT}\n\n"
        f"You are the research analyst for the working group "
        f"\"{group.name}\" (domain: {group.domain}).\n"
        f"{group.description}\n\n"
        "Rules:\n"
        "- Answer from the provided working-group documents\n"
        "- Cite sources using [1], [2], etc. matching the document numbers\n"
        "- If the documents do not cover the question, say so explicitly\n"
        f"- Frame your analysis for the {group.domain} domain"
    )


def format_context(ranked: list[RankedDocument], excerpt_chars: int) -> str:
    """Numbered document excerpts for the user message."""
    if not ranked:
        return "(no documents are available in this working group)"

    parts = []
    for i, item in enumerate(ranked, 1):
        doc = item.document
        parts.append(
            f"[{i}] {doc.metadata.title} (relevance {item.relevance:.2f})\n"
            f"{doc.content[:excerpt_chars]}"
        )
    return "\n\n---\n\n".join(parts)


def fallback_answer(query: str, group: WorkingGroup, ranked: list[RankedDocument]) -> str:
    """Static answer used when the provider chain is exhausted."""
    if ranked:
        listing = "\n".join(
            f"[{i}] {item.document.metadata.title}" for i, item in enumerate(ranked, 1)
        )
        sources = f"{len(ranked)} document(s) in this working group match the query:\n{listing}"
    else:
        sources = "No documents in this working group match the query."

    return (
        f"**{group.name} Response** (Fallback Mode)\n\n"
        f'Query: "{query}" (domain: {group.domain})\n\n'
        f"{sources}\n\n"
        "**Note**: No language-model provider could be reached, so this "
        "answer was not generated by a model. Review the listed sources "
        "directly."
    )


async def analyse(
    query: str,
    group: WorkingGroup,
    ranked: list[RankedDocument],
    chain: ProviderChain,
    excerpt_chars: int = 500,
    fallback_confidence: float = 0.6,
) -> AnalysisResult:
    """
    Generate an answer for a working-group query.

    Never raises for provider failures; see fallback_answer().
    """
    user_message = (
        f"Question: {query}\n\n"
        f"Context ({len(ranked)} documents):\n\n{format_context(ranked, excerpt_chars)}"
    )
    model_settings = group.configuration.model_settings

    logger.info(
        "Analyst generating answer: group=%s, documents=%d",
        group.id, len(ranked),
    )

    outcome = await chain.complete(
        system=build_system_prompt(group),
        messages=[{"role": "user", "content": user_message}],
        temperature=model_settings.temperature,
        max_tokens=model_settings.max_tokens,
    )

    if isinstance(outcome, ChainSuccess):
        return AnalysisResult(
            answer=outcome.response.content,
            llm_used=True,
            served_by=outcome.tier.name,
            served_model=outcome.response.model,
            generation_confidence=outcome.tier.confidence,
            input_tokens=outcome.response.input_tokens,
            output_tokens=outcome.response.output_tokens,
            attempts=outcome.attempts,
        )

    return AnalysisResult(
        answer=fallback_answer(query, group, ranked),
        llm_used=False,
        served_by=FALLBACK_TIER,
        served_model=FALLBACK_MODEL,
        generation_confidence=fallback_confidence,
        attempts=outcome.attempts,
    )
