# =============================================================================
# Chat API — Persona Chat and Transcript Persistence
# =============================================================================
#
# ENDPOINTS:
#   POST   /chat                                         — answer as a persona
#   POST   /chat/transcripts                             — save a snapshot
#   GET    /chat/transcripts                             — list saved records
#   GET    /chat/transcripts/{project_id}/{session_id}   — load latest snapshot
#   DELETE /chat/transcripts/{record_id}                 — delete one record
#
# POST /chat never fails because a provider is down: the provider chain
# resolves exhaustion to the persona's static answer (llm_used=false).
# =============================================================================

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from agent_hub.agents.personas import get_persona
from agent_hub.api.deps import get_provider_chain, get_transcript_store
from agent_hub.exceptions import SessionNotFound, TranscriptConflict
from agent_hub.models.domain import ChatTranscript, TranscriptSummary
from agent_hub.models.requests import ChatRequest, SaveTranscriptRequest
from agent_hub.models.responses import ChatResponse
from agent_hub.services.provider_chain import ProviderChain
from agent_hub.services.transcripts import TranscriptStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Chat with an agent persona",
)
async def chat_endpoint(
    request: ChatRequest,
    chain: ProviderChain = Depends(get_provider_chain),
) -> ChatResponse:
    persona = get_persona(request.agent_type, request.multi_agent)
    logger.info(
        "Chat request: agent=%s (resolved %s), session=%s, multi=%s",
        request.agent_type, persona.id, request.session_type, request.multi_agent,
    )

    result = await chain.generate(
        message=request.message,
        agent_type=request.agent_type,
        session_type=request.session_type,
        is_multi_agent=request.multi_agent,
    )

    return ChatResponse(
        content=result.content,
        agent_type=persona.id,
        session_type=request.session_type,
        multi_agent=request.multi_agent,
        timestamp=datetime.now(UTC),
        confidence=result.confidence,
        sources=result.sources,
        processing_time_ms=result.processing_time_ms,
        llm_used=result.llm_used,
        model=result.model,
        tier=result.tier,
    )


# ---------------------------------------------------------------------------
# Transcripts
# ---------------------------------------------------------------------------


@router.post(
    "/chat/transcripts",
    response_model=ChatTranscript,
    status_code=201,
    summary="Save a chat transcript snapshot",
)
async def save_transcript_endpoint(
    request: SaveTranscriptRequest,
    store: TranscriptStore = Depends(get_transcript_store),
) -> ChatTranscript:
    try:
        return await store.save(
            project_id=request.project_id,
            session_id=request.session_id,
            messages=request.messages,
            metadata=request.metadata,
            expected_revision=request.expected_revision,
        )
    except TranscriptConflict as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


@router.get(
    "/chat/transcripts",
    response_model=list[TranscriptSummary],
    summary="List saved transcripts, newest first",
)
async def list_transcripts_endpoint(
    project_id: str | None = Query(default=None, description="Only this project's records"),
    store: TranscriptStore = Depends(get_transcript_store),
) -> list[TranscriptSummary]:
    return await store.list(project_id=project_id)


@router.get(
    "/chat/transcripts/{project_id}/{session_id}",
    response_model=ChatTranscript,
    summary="Load the latest transcript for a session",
    description="Returns an empty transcript (revision 0) when nothing was saved.",
)
async def load_transcript_endpoint(
    project_id: str,
    session_id: str,
    store: TranscriptStore = Depends(get_transcript_store),
) -> ChatTranscript:
    return await store.load(project_id, session_id)


@router.delete(
    "/chat/transcripts/{record_id}",
    status_code=204,
    summary="Delete one saved transcript record",
)
async def delete_transcript_endpoint(
    record_id: int,
    store: TranscriptStore = Depends(get_transcript_store),
) -> None:
    try:
        await store.delete(record_id)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
