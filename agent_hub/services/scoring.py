# =============================================================================
# Scoring — Quality, Keywords and Confidence
# =============================================================================
#
# Every number the ingestion pipeline and the query engine attach to a
# record comes from a Scorer, so real scoring can replace the heuristics
# without touching either flow.
#
# HeuristicScorer:
#   quality_score   0.0 for empty text, otherwise QUALITY_SCORE (0.8)
#   keywords        the caller's tags, else the most frequent content words
#   confidence      derived from the serving tier's confidence and the mean
#                   relevance of the retrieved sources (see confidence())
# =============================================================================

from __future__ import annotations

import re
from collections import Counter
from typing import Protocol

from agent_hub.models.domain import ConfidenceScores

QUALITY_SCORE = 0.8
DOCUMENT_CONFIDENCE = 0.8
TEMPORAL_CONFIDENCE = 0.8
MAX_KEYWORDS = 10

_WORD = re.compile(r"[a-z][a-z0-9'-]+")

STOPWORDS = frozenset(
    """
    about above after again against also because been before being below
    between both could does doing down during each from further have having
    here into itself just more most other over same should some such than
    that their theirs them then there these they this those through under
    until very were what when where which while will with would your yours
    """.split()
)


def tokenize(text: str) -> list[str]:
    """Lower-cased word tokens; used by keyword extraction and lexical retrieval."""
    return _WORD.findall(text.lower())


class Scorer(Protocol):
    def quality_score(self, text: str) -> float: ...

    def keywords(self, text: str, tags: list[str]) -> list[str]: ...

    def summary(self, text: str) -> str: ...

    def document_confidence(self) -> ConfidenceScores: ...

    def confidence(
        self, generation_confidence: float, relevances: list[float],
    ) -> ConfidenceScores: ...


class HeuristicScorer:
    """Deterministic scoring with no model calls."""

    def quality_score(self, text: str) -> float:
        return QUALITY_SCORE if text.strip() else 0.0

    def keywords(self, text: str, tags: list[str]) -> list[str]:
        if tags:
            return list(tags)
        counts = Counter(
            word for word in tokenize(text)
            if len(word) > 3 and word not in STOPWORDS
        )
        # Ties keep first-seen order (Counter preserves insertion order)
        return [word for word, _ in counts.most_common(MAX_KEYWORDS)]

    def summary(self, text: str, limit: int = 200) -> str:
        """First non-empty line, cut at `limit` characters."""
        for line in text.splitlines():
            line = line.strip().lstrip("#").strip()
            if line:
                return line if len(line) <= limit else line[:limit].rstrip() + "..."
        return ""

    def document_confidence(self) -> ConfidenceScores:
        value = DOCUMENT_CONFIDENCE
        return ConfidenceScores(
            overall=value, factual=value, contextual=value,
            temporal=value, source=value, reasoning=value,
        )

    def confidence(
        self, generation_confidence: float, relevances: list[float],
    ) -> ConfidenceScores:
        """
        Combine generation and retrieval confidence.

        With sources, the overall score is the mean of the generation
        confidence and the mean source relevance. Without sources the
        answer is ungrounded and scores are halved.
        """
        if relevances:
            source = sum(relevances) / len(relevances)
            overall = (generation_confidence + source) / 2
            factual = min(generation_confidence, source)
        else:
            source = 0.0
            overall = generation_confidence * 0.5
            factual = generation_confidence * 0.5

        return ConfidenceScores(
            overall=round(overall, 4),
            factual=round(factual, 4),
            contextual=round(source, 4),
            temporal=TEMPORAL_CONFIDENCE,
            source=round(source, 4),
            reasoning=round(generation_confidence, 4),
        )
