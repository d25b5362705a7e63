# =============================================================================
# Retrieval — Ranking a Working Group's Documents for a Query
# =============================================================================
#
# Retrieval is an explicit step with its own contract, so the strategy can
# be swapped and tested on its own:
#
#   rank(query, documents, max_results, similarity_threshold)
#       → list[RankedDocument]   (best first, at most max_results)
#
# STRATEGIES:
#   AllDocumentsRetriever ("all", default)
#       Every completed document, in upload order, with a fixed relevance
#       of 0.8. The similarity threshold is accepted and ignored.
#   LexicalRetriever ("lexical")
#       Scores each document by the fraction of distinct query terms it
#       contains, drops documents below the threshold, best first.
#
# Neither strategy computes embeddings; rag_container settings such as
# vector_database and embedding_model are declarative only.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from agent_hub.models.domain import DocumentUpload, ProcessingStatus
from agent_hub.services.scoring import STOPWORDS, tokenize

logger = logging.getLogger(__name__)

FIXED_RELEVANCE = 0.8


@dataclass
class RankedDocument:
    document: DocumentUpload
    relevance: float


class Retriever(Protocol):
    name: str

    def rank(
        self,
        query: str,
        documents: list[DocumentUpload],
        max_results: int,
        similarity_threshold: float | None = None,
    ) -> list[RankedDocument]: ...


def _completed(documents: list[DocumentUpload]) -> list[DocumentUpload]:
    return [d for d in documents if d.processing_status == ProcessingStatus.COMPLETED]


class AllDocumentsRetriever:
    name = "all"

    def rank(
        self,
        query: str,
        documents: list[DocumentUpload],
        max_results: int,
        similarity_threshold: float | None = None,
    ) -> list[RankedDocument]:
        return [
            RankedDocument(document=d, relevance=FIXED_RELEVANCE)
            for d in _completed(documents)[:max(max_results, 0)]
        ]


class LexicalRetriever:
    name = "lexical"

    def rank(
        self,
        query: str,
        documents: list[DocumentUpload],
        max_results: int,
        similarity_threshold: float | None = None,
    ) -> list[RankedDocument]:
        terms = {t for t in tokenize(query) if t not in STOPWORDS}
        if not terms:
            return []

        threshold = similarity_threshold or 0.0
        ranked: list[RankedDocument] = []
        for document in _completed(documents):
            haystack = set(tokenize(f"{document.metadata.title}\n{document.content}"))
            relevance = len(terms & haystack) / len(terms)
            if relevance > 0 and relevance >= threshold:
                ranked.append(RankedDocument(document=document, relevance=round(relevance, 4)))

        # Stable sort keeps upload order among equal scores
        ranked.sort(key=lambda r: r.relevance, reverse=True)
        return ranked[:max(max_results, 0)]


_STRATEGIES: dict[str, type] = {
    AllDocumentsRetriever.name: AllDocumentsRetriever,
    LexicalRetriever.name: LexicalRetriever,
}


def build_retriever(strategy: str) -> Retriever:
    """Instantiate a retriever by name ("all" or "lexical")."""
    try:
        return _STRATEGIES[strategy]()
    except KeyError:
        raise ValueError(
            f"Unknown retrieval strategy '{strategy}'. "
            f"Choose from: {', '.join(sorted(_STRATEGIES))}"
        ) from None
