# =============================================================================
# Working Group & Document Repositories
# =============================================================================
#
# Storage seam for working groups and their document uploads. The registry,
# the ingestion pipeline and the query engine depend only on the protocols
# below; which implementation is wired in is decided in agent_hub/api/deps.py
# from `settings.storage_backend`.
#
#   WorkingGroupRepository   add / get / list / update
#   DocumentRepository       add / get / list_for_group / count_completed
#
#   Sql*       — SQLAlchemy async, durable (default)
#   InMemory*  — process-local dicts, used as test doubles
#
# Records cross the boundary as Pydantic domain models; SQL rows hold them
# as JSON.
# =============================================================================

from __future__ import annotations

from datetime import UTC
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agent_hub.db.models import DocumentUploadRecord, WorkingGroupRecord
from agent_hub.exceptions import WorkingGroupNotFound
from agent_hub.models.domain import DocumentUpload, ProcessingStatus, WorkingGroup


class WorkingGroupRepository(Protocol):
    async def add(self, group: WorkingGroup) -> WorkingGroup: ...

    async def get(self, working_group_id: str) -> WorkingGroup | None: ...

    async def list(self) -> list[WorkingGroup]: ...

    async def update(self, group: WorkingGroup) -> WorkingGroup: ...


class DocumentRepository(Protocol):
    async def add(self, document: DocumentUpload) -> DocumentUpload: ...

    async def get(self, document_id: str) -> DocumentUpload | None: ...

    async def list_for_group(
        self,
        working_group_id: str,
        status: ProcessingStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[DocumentUpload]: ...

    async def count_completed(self, working_group_id: str) -> int: ...


# ---------------------------------------------------------------------------
# In-Memory
# ---------------------------------------------------------------------------


class InMemoryWorkingGroupRepository:
    def __init__(self) -> None:
        self._groups: dict[str, WorkingGroup] = {}

    async def add(self, group: WorkingGroup) -> WorkingGroup:
        self._groups[group.id] = group.model_copy(deep=True)
        return group

    async def get(self, working_group_id: str) -> WorkingGroup | None:
        group = self._groups.get(working_group_id)
        return group.model_copy(deep=True) if group else None

    async def list(self) -> list[WorkingGroup]:
        groups = sorted(self._groups.values(), key=lambda g: g.metadata.created_at)
        return [g.model_copy(deep=True) for g in groups]

    async def update(self, group: WorkingGroup) -> WorkingGroup:
        if group.id not in self._groups:
            raise WorkingGroupNotFound(group.id)
        self._groups[group.id] = group.model_copy(deep=True)
        return group


class InMemoryDocumentRepository:
    def __init__(self) -> None:
        self._documents: dict[str, DocumentUpload] = {}

    async def add(self, document: DocumentUpload) -> DocumentUpload:
        self._documents[document.id] = document.model_copy(deep=True)
        return document

    async def get(self, document_id: str) -> DocumentUpload | None:
        document = self._documents.get(document_id)
        return document.model_copy(deep=True) if document else None

    async def list_for_group(
        self,
        working_group_id: str,
        status: ProcessingStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[DocumentUpload]:
        documents = [
            d for d in self._documents.values()
            if d.working_group_id == working_group_id
            and (status is None or d.processing_status == status)
        ]
        documents.sort(key=lambda d: d.created_at)
        end = None if limit is None else offset + limit
        return [d.model_copy(deep=True) for d in documents[offset:end]]

    async def count_completed(self, working_group_id: str) -> int:
        return sum(
            1 for d in self._documents.values()
            if d.working_group_id == working_group_id
            and d.processing_status == ProcessingStatus.COMPLETED
        )


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------


class SqlWorkingGroupRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_domain(row: WorkingGroupRecord) -> WorkingGroup:
        return WorkingGroup.model_validate(
            {
                "id": row.id,
                "name": row.name,
                "description": row.description,
                "domain": row.domain,
                "status": row.status,
                "configuration": row.configuration,
                "metadata": row.metadata_,
            }
        )

    @staticmethod
    def _apply(row: WorkingGroupRecord, group: WorkingGroup) -> None:
        row.name = group.name
        row.description = group.description
        row.domain = group.domain
        row.status = group.status
        row.configuration = group.configuration.model_dump(mode="json")
        row.metadata_ = group.metadata.model_dump(mode="json")

    async def add(self, group: WorkingGroup) -> WorkingGroup:
        row = WorkingGroupRecord(id=group.id, created_at=group.metadata.created_at)
        self._apply(row, group)
        async with self._session_factory() as session, session.begin():
            session.add(row)
        return group

    async def get(self, working_group_id: str) -> WorkingGroup | None:
        async with self._session_factory() as session:
            row = await session.get(WorkingGroupRecord, working_group_id)
        return self._to_domain(row) if row else None

    async def list(self) -> list[WorkingGroup]:
        async with self._session_factory() as session:
            rows = (
                await session.scalars(
                    select(WorkingGroupRecord).order_by(WorkingGroupRecord.created_at)
                )
            ).all()
        return [self._to_domain(row) for row in rows]

    async def update(self, group: WorkingGroup) -> WorkingGroup:
        async with self._session_factory() as session, session.begin():
            row = await session.get(WorkingGroupRecord, group.id)
            if row is None:
                raise WorkingGroupNotFound(group.id)
            self._apply(row, group)
        return group


class SqlDocumentRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_domain(row: DocumentUploadRecord) -> DocumentUpload:
        return DocumentUpload.model_validate(row.record)

    async def add(self, document: DocumentUpload) -> DocumentUpload:
        row = DocumentUploadRecord(
            id=document.id,
            working_group_id=document.working_group_id,
            processing_status=document.processing_status.value,
            record=document.model_dump(mode="json"),
            created_at=document.created_at.astimezone(UTC),
        )
        async with self._session_factory() as session, session.begin():
            session.add(row)
        return document

    async def get(self, document_id: str) -> DocumentUpload | None:
        async with self._session_factory() as session:
            row = await session.get(DocumentUploadRecord, document_id)
        return self._to_domain(row) if row else None

    async def list_for_group(
        self,
        working_group_id: str,
        status: ProcessingStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[DocumentUpload]:
        stmt = (
            select(DocumentUploadRecord)
            .where(DocumentUploadRecord.working_group_id == working_group_id)
            .order_by(DocumentUploadRecord.created_at, DocumentUploadRecord.id)
            .offset(offset)
        )
        if status is not None:
            stmt = stmt.where(DocumentUploadRecord.processing_status == status.value)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._session_factory() as session:
            rows = (await session.scalars(stmt)).all()
        return [self._to_domain(row) for row in rows]

    async def count_completed(self, working_group_id: str) -> int:
        async with self._session_factory() as session:
            return await session.scalar(
                select(func.count())
                .select_from(DocumentUploadRecord)
                .where(
                    DocumentUploadRecord.working_group_id == working_group_id,
                    DocumentUploadRecord.processing_status
                    == ProcessingStatus.COMPLETED.value,
                )
            )
