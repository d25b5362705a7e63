# =============================================================================
# Database Models — SQLAlchemy ORM
# =============================================================================
#
# SCHEMA OVERVIEW:
#
# ┌───────────────────────────┐   ┌──────────────────┐   ┌──────────────────────────┐
# │  chat_transcripts         │   │  working_groups  │   │  document_uploads        │
# ├───────────────────────────┤   ├──────────────────┤   ├──────────────────────────┤
# │ id (PK)                   │   │ id (PK, wg_…)    │──▶│ id (PK, doc_…)           │
# │ project_id, session_id    │   │ name, domain     │1:N│ working_group_id (FK)    │
# │ revision                  │   │ status           │   │ processing_status        │
# │ messages (json)           │   │ configuration    │   │ record (json)            │
# │ metadata_ (json)          │   │ metadata_ (json) │   │ created_at               │
# │ saved_at                  │   │ created_at       │   └──────────────────────────┘
# └───────────────────────────┘   └──────────────────┘
#
# chat_transcripts is append-only: every save inserts a new row with
# revision = latest + 1 for its (project_id, session_id) pair, and the
# latest row is the current transcript.
#
# Nested domain objects are stored as JSON (generic JSON type, so the
# same schema works on SQLite and PostgreSQL). The Pydantic models in
# agent_hub/models/domain.py are the source of truth for their shape.
# =============================================================================

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


class ChatTranscriptRecord(Base):
    """One saved snapshot of a chat session."""

    __tablename__ = "chat_transcripts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(String(255), nullable=False)
    session_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Optimistic-concurrency token, 1 for the first save of a session
    revision: Mapped[int] = mapped_column(Integer, nullable=False)

    messages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # `metadata_` avoids the declarative `.metadata` attribute
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)

    saved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ChatTranscriptRecord(id={self.id}, project='{self.project_id}', "
            f"session='{self.session_id}', revision={self.revision})>"
        )


class WorkingGroupRecord(Base):
    __tablename__ = "working_groups"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    configuration: Mapped[dict] = mapped_column(JSON, nullable=False)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<WorkingGroupRecord(id='{self.id}', name='{self.name}')>"


class DocumentUploadRecord(Base):
    """
    A document upload and its processing record.

    The full DocumentUpload (metadata, results, disclosure snapshot, text)
    lives in `record`; the indexed columns exist for filtering.
    """

    __tablename__ = "document_uploads"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    working_group_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("working_groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    processing_status: Mapped[str] = mapped_column(String(32), nullable=False)
    record: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<DocumentUploadRecord(id='{self.id}', group='{self.working_group_id}', "
            f"status={self.processing_status})>"
        )


transcript_session_idx = Index(
    "idx_transcript_session",
    ChatTranscriptRecord.project_id,
    ChatTranscriptRecord.session_id,
    ChatTranscriptRecord.revision,
    unique=True,
)

document_group_idx = Index(
    "idx_document_working_group",
    DocumentUploadRecord.working_group_id,
    DocumentUploadRecord.processing_status,
)
