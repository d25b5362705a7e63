# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API. Domain
# records that are already client-shaped (WorkingGroup, QueryResult,
# ChatTranscript) are returned as-is; the models here cover the rest.
#
# DocumentUploadResponse leaves out the extracted `content`, which can be
# megabytes; clients see it through query excerpts instead.
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from agent_hub.models.domain import (
    DocumentMetadata,
    DocumentUpload,
    IntelligenceDisclosure,
    ProcessingResults,
    ProcessingStatus,
)


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class AgentInfo(BaseModel):
    id: str
    name: str
    description: str
    capabilities: list[str]


class ChatResponse(BaseModel):
    """
    Response for POST /chat.

    The shape is identical whether a model answered or the static fallback
    did; `llm_used` and `tier` tell them apart.
    """

    content: str
    agent_type: str
    session_type: str
    multi_agent: bool
    timestamp: datetime
    confidence: float
    sources: int
    processing_time_ms: int
    llm_used: bool
    model: str
    tier: str = Field(description="Provider tier that served the answer, or 'fallback'")


class DocumentUploadResponse(BaseModel):
    id: str
    working_group_id: str
    file_name: str
    original_name: str
    file_size: int
    mime_type: str
    metadata: DocumentMetadata
    processing_status: ProcessingStatus
    processing_results: ProcessingResults
    intelligence_disclosure: IntelligenceDisclosure | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, document: DocumentUpload) -> "DocumentUploadResponse":
        return cls.model_validate(document.model_dump(exclude={"content"}))


class DocumentListResponse(BaseModel):
    working_group_id: str
    documents: list[DocumentUploadResponse]
    count: int
    limit: int | None
    offset: int


class AvailableModel(BaseModel):
    id: str
    name: str
    provider: str
    capabilities: list[str]


class WorkingGroupModelsResponse(BaseModel):
    working_group_id: str
    primary_model: str
    fallback_models: list[str]
    model_provider: str
    available_models: list[AvailableModel]

    model_config = ConfigDict(protected_namespaces=())


class ProviderStatus(BaseModel):
    tier: str
    priority: int
    model: str
    base_url: str | None = None
    configured: bool
    healthy: bool | None = None
    default_confidence: float


class StatusResponse(BaseModel):
    """Response for GET /status: configuration only, no network calls."""

    service: str
    version: str
    storage_backend: str
    retrieval_strategy: str
    timeout_seconds: float
    providers: list[ProviderStatus]


class ProbeEntry(BaseModel):
    tier: str
    priority: int
    model: str
    configured: bool
    reachable: bool
    latency_ms: int | None = None
    error: str | None = None


class ProbeResponse(BaseModel):
    """Response for GET /status/probe: one live completion per configured tier."""

    providers: list[ProbeEntry]
    any_reachable: bool
