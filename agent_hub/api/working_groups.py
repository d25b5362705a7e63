# =============================================================================
# Working Groups API — Registry, Uploads and Queries
# =============================================================================
#
# ENDPOINTS:
#   POST /working-groups                       — create (config deep-merged)
#   GET  /working-groups                       — list
#   GET  /working-groups/{id}                  — get
#   POST /working-groups/{id}/documents        — upload one file (multipart)
#   GET  /working-groups/{id}/documents        — list uploads
#   POST /working-groups/{id}/query            — answer with sources + disclosure
#   GET  /working-groups/{id}/models           — configured and known models
#
# ERROR MAPPING:
#   WorkingGroupNotFound      → 404
#   UnsupportedDocumentFormat → 415
#   DocumentTooLarge          → 413
#   invalid config overrides  → 422
#
# Uploads are ingested synchronously: the response already carries the
# final processing status (completed, or failed when text extraction fails).
# =============================================================================

import json
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import ValidationError

from agent_hub.agents.orchestrator import QueryEngine
from agent_hub.api.deps import (
    get_ingestion_pipeline,
    get_provider_chain,
    get_query_engine,
    get_registry,
)
from agent_hub.config import settings
from agent_hub.exceptions import (
    DocumentTooLarge,
    UnsupportedDocumentFormat,
    WorkingGroupNotFound,
)
from agent_hub.models.domain import DocumentMetadata, ProcessingStatus, QueryResult, WorkingGroup
from agent_hub.models.requests import CreateWorkingGroupRequest, QueryRequest
from agent_hub.models.responses import (
    AvailableModel,
    DocumentListResponse,
    DocumentUploadResponse,
    WorkingGroupModelsResponse,
)
from agent_hub.services.ingestion import DocumentIngestionPipeline
from agent_hub.services.provider_chain import ProviderChain
from agent_hub.services.registry import WorkingGroupRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/working-groups", tags=["Working Groups"])

# Models a working group may name in model_settings, independent of which
# provider tiers this deployment has configured.
MODEL_CATALOGUE: list[AvailableModel] = [
    AvailableModel(id="gpt-3.5-turbo", name="GPT-3.5 Turbo", provider="openai",
                   capabilities=["text", "chat"]),
    AvailableModel(id="gpt-4", name="GPT-4", provider="openai",
                   capabilities=["text", "chat", "reasoning"]),
    AvailableModel(id="claude-3-haiku", name="Claude 3 Haiku", provider="anthropic",
                   capabilities=["text", "chat", "analysis"]),
    AvailableModel(id="claude-3-sonnet", name="Claude 3 Sonnet", provider="anthropic",
                   capabilities=["text", "chat", "analysis", "reasoning"]),
    AvailableModel(id="llama2", name="Llama 2", provider="ollama",
                   capabilities=["text", "chat"]),
    AvailableModel(id="phala-gpt", name="Phala Confidential GPT", provider="phala",
                   capabilities=["text", "chat", "confidential"]),
]


def _not_found(e: WorkingGroupNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=WorkingGroup,
    status_code=201,
    summary="Create a working group",
)
async def create_working_group_endpoint(
    request: CreateWorkingGroupRequest,
    registry: WorkingGroupRegistry = Depends(get_registry),
) -> WorkingGroup:
    try:
        return await registry.create(
            name=request.name,
            description=request.description,
            domain=request.domain,
            created_by=request.created_by,
            config_overrides=request.config,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False),
        ) from e


@router.get("", response_model=list[WorkingGroup], summary="List working groups")
async def list_working_groups_endpoint(
    registry: WorkingGroupRegistry = Depends(get_registry),
) -> list[WorkingGroup]:
    return await registry.list()


@router.get(
    "/{working_group_id}",
    response_model=WorkingGroup,
    summary="Get a working group",
)
async def get_working_group_endpoint(
    working_group_id: str,
    registry: WorkingGroupRegistry = Depends(get_registry),
) -> WorkingGroup:
    try:
        return await registry.get(working_group_id)
    except WorkingGroupNotFound as e:
        raise _not_found(e) from e


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/{working_group_id}/documents",
    response_model=DocumentUploadResponse,
    status_code=201,
    summary="Upload a document into a working group",
)
async def upload_document_endpoint(
    working_group_id: str,
    document: UploadFile = File(..., description="pdf, txt, md, docx or html file"),
    title: str | None = Form(default=None),
    author: str | None = Form(default=None),
    source: str | None = Form(default=None),
    tags: str | None = Form(default=None, description="Comma-separated tags"),
    language: str = Form(default="en"),
    category: str = Form(default="general"),
    version: str = Form(default="1.0.0"),
    license: str | None = Form(default=None),
    custom_fields: str | None = Form(default=None, description="JSON object"),
    model_override: str | None = Form(default=None),
    pipeline: DocumentIngestionPipeline = Depends(get_ingestion_pipeline),
) -> DocumentUploadResponse:
    file_name = document.filename or "upload"

    try:
        extra = json.loads(custom_fields) if custom_fields else {}
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"custom_fields is not valid JSON: {e}") from e
    if not isinstance(extra, dict):
        raise HTTPException(status_code=400, detail="custom_fields must be a JSON object")

    data = await document.read()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Upload exceeds the {settings.max_upload_bytes} byte limit",
        )

    metadata = DocumentMetadata(
        title=title or file_name,
        author=author,
        source=source,
        tags=[t.strip() for t in (tags or "").split(",") if t.strip()],
        language=language,
        category=category,
        version=version,
        license=license,
        custom_fields=extra,
    )

    try:
        uploaded = await pipeline.upload(
            working_group_id=working_group_id,
            file_name=file_name,
            data=data,
            declared_mime_type=document.content_type,
            metadata=metadata,
            model_override=model_override or None,
        )
    except WorkingGroupNotFound as e:
        raise _not_found(e) from e
    except UnsupportedDocumentFormat as e:
        raise HTTPException(status_code=415, detail=str(e)) from e
    except DocumentTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e)) from e

    return DocumentUploadResponse.from_domain(uploaded)


@router.get(
    "/{working_group_id}/documents",
    response_model=DocumentListResponse,
    summary="List a working group's documents",
)
async def list_documents_endpoint(
    working_group_id: str,
    status: ProcessingStatus | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    pipeline: DocumentIngestionPipeline = Depends(get_ingestion_pipeline),
) -> DocumentListResponse:
    try:
        documents = await pipeline.list_documents(
            working_group_id, status=status, limit=limit, offset=offset,
        )
    except WorkingGroupNotFound as e:
        raise _not_found(e) from e

    return DocumentListResponse(
        working_group_id=working_group_id,
        documents=[DocumentUploadResponse.from_domain(d) for d in documents],
        count=len(documents),
        limit=limit,
        offset=offset,
    )


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


@router.post(
    "/{working_group_id}/query",
    response_model=QueryResult,
    summary="Query a working group's documents",
)
async def query_working_group_endpoint(
    working_group_id: str,
    request: QueryRequest,
    engine: QueryEngine = Depends(get_query_engine),
) -> QueryResult:
    try:
        return await engine.query(
            working_group_id=working_group_id,
            query=request.query,
            model_override=request.model_override,
            include_disclosure=request.include_disclosure,
            max_results=request.max_results,
            similarity_threshold=request.similarity_threshold,
        )
    except WorkingGroupNotFound as e:
        raise _not_found(e) from e
    except Exception as e:
        # Storage or graph errors; provider failures never reach here
        logger.exception("Query graph failed for %s: %s", working_group_id, e)
        raise HTTPException(status_code=500, detail=f"Query failed: {e}") from e


@router.get(
    "/{working_group_id}/models",
    response_model=WorkingGroupModelsResponse,
    summary="Models configured for a working group",
)
async def working_group_models_endpoint(
    working_group_id: str,
    registry: WorkingGroupRegistry = Depends(get_registry),
    chain: ProviderChain = Depends(get_provider_chain),
) -> WorkingGroupModelsResponse:
    try:
        group = await registry.get(working_group_id)
    except WorkingGroupNotFound as e:
        raise _not_found(e) from e

    known = {m.id for m in MODEL_CATALOGUE}
    served = [
        AvailableModel(id=tier.model, name=tier.model, provider=tier.name,
                       capabilities=["text", "chat"])
        for tier in chain.tiers
        if tier.configured and tier.model not in known
    ]

    model_settings = group.configuration.model_settings
    return WorkingGroupModelsResponse(
        working_group_id=group.id,
        primary_model=model_settings.primary_model,
        fallback_models=model_settings.fallback_models,
        model_provider=model_settings.model_provider,
        available_models=MODEL_CATALOGUE + served,
    )
