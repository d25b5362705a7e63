# =============================================================================
# Domain Models — Pydantic V2
# =============================================================================
#
# The records the service layer reads and writes: chat transcripts,
# working groups with their nested configuration, document uploads,
# intelligence disclosures and query results.
#
# These are separate from the ORM rows in agent_hub/db/models.py. SQL
# repositories store them as JSON via model_dump(mode="json") and
# rebuild them with model_validate().
#
# WORKING GROUP CONFIGURATION TREE:
#   configuration
#   ├── rag_container              — declared retrieval backing store
#   ├── model_settings             — primary/fallback models + sampling
#   ├── privacy_settings           — privacy level, retention, sharing
#   ├── intelligence_disclosure    — what a disclosure may reveal
#   └── document_processing        — allowed formats, size limit, flags
# =============================================================================

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Chat Transcripts
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    """
    One message of a chat transcript.

    Extra keys sent by clients are preserved so a save/load round trip
    returns exactly what was saved.
    """

    id: str
    role: str
    content: str
    timestamp: datetime | None = None
    agent_type: str | None = None
    session_id: str | None = None
    project_id: str | None = None

    model_config = ConfigDict(extra="allow")


class ChatTranscript(BaseModel):
    """A full snapshot of the messages for one (project, session) pair."""

    project_id: str
    session_id: str
    messages: list[ChatMessage] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    record_id: int | None = None
    revision: int = 0
    saved_at: datetime | None = None


class TranscriptSummary(BaseModel):
    """Listing entry for one saved transcript record."""

    record_id: int
    project_id: str
    session_id: str
    revision: int
    message_count: int
    saved_at: datetime
    title: str | None = None


# ---------------------------------------------------------------------------
# Working Group Configuration
# ---------------------------------------------------------------------------


class RagContainerConfig(BaseModel):
    """Declared vector-retrieval backing store. Not wired to a real index."""

    container_id: str = ""
    vector_database: Literal["qdrant", "pinecone", "weaviate", "chroma"] = "qdrant"
    embedding_model: str = "text-embedding-3-small"
    chunk_size: int = 1000
    chunk_overlap: int = 200
    similarity_threshold: float = 0.75
    max_results: int = 20
    cross_group_search: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class ModelSettings(BaseModel):
    primary_model: str
    fallback_models: list[str] = Field(default_factory=list)
    model_provider: str = "openai"
    temperature: float = 0.3
    max_tokens: int = 4000
    top_p: float = 0.9
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    custom_parameters: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(protected_namespaces=())


class PrivacySettings(BaseModel):
    privacy_level: Literal["maximum", "high", "selective", "minimal"] = "selective"
    data_retention: int = 365  # days
    anonymization_required: bool = False
    encryption_required: bool = True
    cross_group_sharing: bool = False
    audit_logging: bool = True


class DisclosureSettings(BaseModel):
    """
    What an intelligence disclosure may reveal for this working group.

    disclosure_level:
        minimal — model info only
        partial — model info, source attribution, confidence scores
        full    — everything, including processing steps
    """

    enabled: bool = True
    disclosure_level: Literal["full", "partial", "minimal"] = "partial"
    include_model_info: bool = True
    include_processing_steps: bool = True
    include_source_attribution: bool = True
    include_confidence_scores: bool = True
    include_reasoning_chain: bool = True


# Short format names accepted in document_processing.supported_formats
DEFAULT_SUPPORTED_FORMATS = ["pdf", "txt", "md", "docx", "html"]


class DocumentProcessingSettings(BaseModel):
    # duplicate_detection and version_control are declared but not enforced
    supported_formats: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_FORMATS)
    )
    max_file_size: int = 50 * 1024 * 1024  # bytes
    auto_processing: bool = True
    quality_threshold: float = 0.7
    duplicate_detection: bool = True
    version_control: bool = True
    metadata_extraction: bool = True
    content_validation: bool = True


class WorkingGroupConfiguration(BaseModel):
    rag_container: RagContainerConfig
    model_settings: ModelSettings
    privacy_settings: PrivacySettings = Field(default_factory=PrivacySettings)
    intelligence_disclosure: DisclosureSettings = Field(default_factory=DisclosureSettings)
    document_processing: DocumentProcessingSettings = Field(
        default_factory=DocumentProcessingSettings
    )

    model_config = ConfigDict(protected_namespaces=())


class WorkingGroupMetadata(BaseModel):
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    created_by: str
    document_count: int = 0
    participant_count: int = 0
    last_activity: datetime = Field(default_factory=utcnow)


class WorkingGroup(BaseModel):
    """An isolated knowledge container with its own configuration and documents."""

    id: str
    name: str
    description: str
    domain: str
    status: Literal["active", "inactive", "archived"] = "active"
    configuration: WorkingGroupConfiguration
    metadata: WorkingGroupMetadata


# ---------------------------------------------------------------------------
# Intelligence Disclosure
# ---------------------------------------------------------------------------


class ModelInfo(BaseModel):
    primary_model: str
    fallback_models: list[str] = Field(default_factory=list)
    model_provider: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)
    served_by: str | None = None      # provider tier that produced the text
    served_model: str | None = None   # model reported by that tier
    version: str = "1.0.0"
    capabilities: list[str] = Field(default_factory=lambda: ["text", "chat", "analysis"])

    model_config = ConfigDict(protected_namespaces=())


class ProcessingStep(BaseModel):
    step: str
    model: str | None = None
    status: Literal["completed", "failed", "skipped"] = "completed"
    duration_ms: int = 0
    detail: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)


class SourceAttribution(BaseModel):
    source_id: str
    source_type: Literal["document", "chunk", "external"] = "document"
    relevance_score: float
    contribution: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class ConfidenceScores(BaseModel):
    overall: float = 0.0
    factual: float = 0.0
    contextual: float = 0.0
    temporal: float = 0.0
    source: float = 0.0
    reasoning: float = 0.0


class DisclosureMetadata(BaseModel):
    generated_at: datetime = Field(default_factory=utcnow)
    disclosure_level: str
    working_group_id: str


class IntelligenceDisclosure(BaseModel):
    """Which model, sources and confidence values produced an answer."""

    model_info: ModelInfo | None = None
    processing_steps: list[ProcessingStep] = Field(default_factory=list)
    source_attribution: list[SourceAttribution] = Field(default_factory=list)
    confidence_scores: ConfidenceScores | None = None
    reasoning_chain: list[dict[str, Any]] = Field(default_factory=list)
    metadata: DisclosureMetadata

    # model_info would otherwise trip pydantic's protected "model_" namespace
    model_config = ConfigDict(protected_namespaces=())


# ---------------------------------------------------------------------------
# Document Uploads
# ---------------------------------------------------------------------------


class ProcessingStatus(str, enum.Enum):
    """
    Ingestion state of a document upload.

        PENDING → PROCESSING → COMPLETED
                             → FAILED

    COMPLETED and FAILED are terminal.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class DocumentMetadata(BaseModel):
    title: str
    author: str | None = None
    source: str | None = None
    tags: list[str] = Field(default_factory=list)
    language: str = "en"
    category: str = "general"
    version: str = "1.0.0"
    license: str | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class ProcessingResults(BaseModel):
    summary: str = ""
    keywords: list[str] = Field(default_factory=list)
    entities: list[dict[str, Any]] = Field(default_factory=list)
    quality_score: float = 0.0
    character_count: int = 0
    processing_time_ms: int = 0
    model_used: str = ""
    processing_steps: list[ProcessingStep] = Field(default_factory=list)

    model_config = ConfigDict(protected_namespaces=())


class DocumentUpload(BaseModel):
    """A document accepted into a working group, with its processing record."""

    id: str
    working_group_id: str
    file_name: str
    original_name: str
    file_size: int
    mime_type: str
    content: str = ""
    metadata: DocumentMetadata
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    processing_results: ProcessingResults = Field(default_factory=ProcessingResults)
    intelligence_disclosure: IntelligenceDisclosure | None = None
    error_message: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Query Results
# ---------------------------------------------------------------------------


class QuerySource(BaseModel):
    id: str
    title: str
    excerpt: str
    relevance_score: float
    access_level: str = "full"


class QueryMetadata(BaseModel):
    working_group_id: str
    model_used: str
    served_by: str
    llm_used: bool
    processing_time_ms: int
    confidence: float
    retrieval_count: int
    retrieval_strategy: str

    model_config = ConfigDict(protected_namespaces=())


class QueryResult(BaseModel):
    response: str
    sources: list[QuerySource] = Field(default_factory=list)
    intelligence_disclosure: IntelligenceDisclosure | None = None
    metadata: QueryMetadata
