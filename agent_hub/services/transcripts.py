# =============================================================================
# Chat Transcript Store
# =============================================================================
#
# Persists full snapshots of a chat session keyed by (project_id, session_id).
#
# RECORD MODEL (append-only):
#   save()  → inserts a new record with revision = latest + 1
#   load()  → returns the latest record for the pair, or an empty transcript
#   list()  → one summary per saved record, newest first
#   delete()→ removes one record by id
#
# There is no merge: a save captures the whole transcript, so the latest
# save wins. Callers that edit concurrently pass `expected_revision` (the
# revision they loaded); a mismatch raises TranscriptConflict instead of
# silently dropping the other writer's messages.
#
# IMPLEMENTATIONS:
#   SqlTranscriptStore      — SQLAlchemy async, chat_transcripts table
#   InMemoryTranscriptStore — process-local, for tests and storage_backend=memory
# =============================================================================

from __future__ import annotations

import itertools
import logging
from datetime import UTC, datetime
from typing import Any, Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agent_hub.db.models import ChatTranscriptRecord
from agent_hub.exceptions import SessionNotFound, TranscriptConflict
from agent_hub.models.domain import ChatMessage, ChatTranscript, TranscriptSummary

logger = logging.getLogger(__name__)


class TranscriptStore(Protocol):
    async def save(
        self,
        project_id: str,
        session_id: str,
        messages: list[ChatMessage],
        metadata: dict[str, Any] | None = None,
        expected_revision: int | None = None,
    ) -> ChatTranscript: ...

    async def load(self, project_id: str, session_id: str) -> ChatTranscript: ...

    async def list(self, project_id: str | None = None) -> list[TranscriptSummary]: ...

    async def delete(self, record_id: int) -> None: ...


def _check_revision(expected: int | None, latest: int) -> None:
    if expected is not None and expected != latest:
        raise TranscriptConflict(expected=expected, actual=latest)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _summary(transcript: ChatTranscript) -> TranscriptSummary:
    return TranscriptSummary(
        record_id=transcript.record_id,
        project_id=transcript.project_id,
        session_id=transcript.session_id,
        revision=transcript.revision,
        message_count=len(transcript.messages),
        saved_at=transcript.saved_at,
        title=transcript.metadata.get("title"),
    )


# ---------------------------------------------------------------------------
# In-Memory Store
# ---------------------------------------------------------------------------


class InMemoryTranscriptStore:
    """Process-local transcript records. Not shared between workers."""

    def __init__(self) -> None:
        self._records: dict[int, ChatTranscript] = {}
        self._ids = itertools.count(1)

    def _latest(self, project_id: str, session_id: str) -> ChatTranscript | None:
        matching = [
            r for r in self._records.values()
            if r.project_id == project_id and r.session_id == session_id
        ]
        return max(matching, key=lambda r: r.revision, default=None)

    async def save(
        self,
        project_id: str,
        session_id: str,
        messages: list[ChatMessage],
        metadata: dict[str, Any] | None = None,
        expected_revision: int | None = None,
    ) -> ChatTranscript:
        latest = self._latest(project_id, session_id)
        latest_revision = latest.revision if latest else 0
        _check_revision(expected_revision, latest_revision)

        record = ChatTranscript(
            project_id=project_id,
            session_id=session_id,
            messages=[m.model_copy(deep=True) for m in messages],
            metadata=dict(metadata or {}),
            record_id=next(self._ids),
            revision=latest_revision + 1,
            saved_at=datetime.now(UTC),
        )
        self._records[record.record_id] = record
        logger.info(
            "Saved transcript %s/%s revision %d (%d messages)",
            project_id, session_id, record.revision, len(messages),
        )
        return record.model_copy(deep=True)

    async def load(self, project_id: str, session_id: str) -> ChatTranscript:
        latest = self._latest(project_id, session_id)
        if latest is None:
            return ChatTranscript(project_id=project_id, session_id=session_id)
        return latest.model_copy(deep=True)

    async def list(self, project_id: str | None = None) -> list[TranscriptSummary]:
        records = [
            r for r in self._records.values()
            if project_id is None or r.project_id == project_id
        ]
        records.sort(key=lambda r: (r.saved_at, r.record_id), reverse=True)
        return [_summary(r) for r in records]

    async def delete(self, record_id: int) -> None:
        if self._records.pop(record_id, None) is None:
            raise SessionNotFound(str(record_id))
        logger.info("Deleted transcript record %d", record_id)


# ---------------------------------------------------------------------------
# SQL Store
# ---------------------------------------------------------------------------


class SqlTranscriptStore:
    """Transcript records in the chat_transcripts table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_domain(row: ChatTranscriptRecord) -> ChatTranscript:
        return ChatTranscript(
            project_id=row.project_id,
            session_id=row.session_id,
            messages=[ChatMessage.model_validate(m) for m in row.messages],
            metadata=row.metadata_ or {},
            record_id=row.id,
            revision=row.revision,
            saved_at=_aware(row.saved_at),
        )

    async def save(
        self,
        project_id: str,
        session_id: str,
        messages: list[ChatMessage],
        metadata: dict[str, Any] | None = None,
        expected_revision: int | None = None,
    ) -> ChatTranscript:
        try:
            async with self._session_factory() as session, session.begin():
                latest_revision = await session.scalar(
                    select(func.coalesce(func.max(ChatTranscriptRecord.revision), 0)).where(
                        ChatTranscriptRecord.project_id == project_id,
                        ChatTranscriptRecord.session_id == session_id,
                    )
                )
                _check_revision(expected_revision, latest_revision)

                row = ChatTranscriptRecord(
                    project_id=project_id,
                    session_id=session_id,
                    revision=latest_revision + 1,
                    messages=[m.model_dump(mode="json") for m in messages],
                    metadata_=dict(metadata or {}),
                    saved_at=datetime.now(UTC),
                )
                session.add(row)
                await session.flush()
                transcript = self._to_domain(row)
        except IntegrityError as e:
            # Another writer inserted the same revision between our read and insert
            raise TranscriptConflict(
                expected=expected_revision if expected_revision is not None else latest_revision,
                actual=latest_revision + 1,
            ) from e

        logger.info(
            "Saved transcript %s/%s revision %d (%d messages)",
            project_id, session_id, transcript.revision, len(messages),
        )
        return transcript

    async def load(self, project_id: str, session_id: str) -> ChatTranscript:
        async with self._session_factory() as session:
            row = await session.scalar(
                select(ChatTranscriptRecord)
                .where(
                    ChatTranscriptRecord.project_id == project_id,
                    ChatTranscriptRecord.session_id == session_id,
                )
                .order_by(ChatTranscriptRecord.revision.desc())
                .limit(1)
            )
        if row is None:
            return ChatTranscript(project_id=project_id, session_id=session_id)
        return self._to_domain(row)

    async def list(self, project_id: str | None = None) -> list[TranscriptSummary]:
        stmt = select(ChatTranscriptRecord).order_by(
            ChatTranscriptRecord.saved_at.desc(), ChatTranscriptRecord.id.desc(),
        )
        if project_id is not None:
            stmt = stmt.where(ChatTranscriptRecord.project_id == project_id)

        async with self._session_factory() as session:
            rows = (await session.scalars(stmt)).all()
        return [_summary(self._to_domain(row)) for row in rows]

    async def delete(self, record_id: int) -> None:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(ChatTranscriptRecord).where(ChatTranscriptRecord.id == record_id)
            )
        if result.rowcount == 0:
            raise SessionNotFound(str(record_id))
        logger.info("Deleted transcript record %d", record_id)
