# =============================================================================
# Document Ingestion Pipeline
# =============================================================================
#
# Validates an upload against its working group, extracts text, attaches
# processing metadata and records the document. Runs synchronously inside
# the request; there is no background stage.
#
# PIPELINE:
#   1. Resolve working group            → WorkingGroupNotFound
#   2. Resolve MIME type, check it
#      against the global allow-list
#      and the group's formats          → UnsupportedDocumentFormat
#   3. Check group max_file_size        → DocumentTooLarge
#      (nothing is stored if 1-3 fail)
#   4. Extract text                     → on failure: FAILED record, not counted
#   5. Score: summary, keywords, quality
#   6. Disclosure snapshot
#   7. Store as COMPLETED, recount the group's documents, advance last_activity
#
# duplicate_detection and version_control are configuration only: the same
# file uploaded twice becomes two documents.
# =============================================================================

from __future__ import annotations

import logging
import time
import uuid
from pathlib import PurePath

from agent_hub.exceptions import DocumentTooLarge, UnsupportedDocumentFormat
from agent_hub.models.domain import (
    DocumentMetadata,
    DocumentUpload,
    ProcessingResults,
    ProcessingStatus,
    ProcessingStep,
    WorkingGroup,
    utcnow,
)
from agent_hub.services import parser
from agent_hub.services.disclosure import build_disclosure
from agent_hub.services.registry import WorkingGroupRegistry
from agent_hub.services.repositories import DocumentRepository
from agent_hub.services.scoring import Scorer

logger = logging.getLogger(__name__)


def new_document_id() -> str:
    return f"doc_{uuid.uuid4().hex}"


def allowed_mime_types(group: WorkingGroup) -> list[str]:
    """Global allow-list narrowed to the group's supported formats."""
    formats = {f.lower().lstrip(".") for f in group.configuration.document_processing.supported_formats}
    return [mime for mime in parser.ALLOWED_MIME_TYPES if parser.format_name(mime) in formats]


class DocumentIngestionPipeline:
    def __init__(
        self,
        registry: WorkingGroupRegistry,
        documents: DocumentRepository,
        scorer: Scorer,
    ) -> None:
        self._registry = registry
        self._documents = documents
        self._scorer = scorer

    async def upload(
        self,
        working_group_id: str,
        file_name: str,
        data: bytes,
        declared_mime_type: str | None = None,
        metadata: DocumentMetadata | None = None,
        model_override: str | None = None,
    ) -> DocumentUpload:
        """
        Ingest one file into a working group.

        Returns the stored DocumentUpload. Extraction failures are recorded
        as FAILED documents rather than raised.

        Raises:
            WorkingGroupNotFound: unknown working group id.
            UnsupportedDocumentFormat: type outside the allow-list.
            DocumentTooLarge: file exceeds the group's max_file_size.
        """
        start = time.monotonic()
        group = await self._registry.get(working_group_id)

        # --- Validation (no state is touched before this passes) ---
        mime_type = parser.detect_mime_type(file_name, declared_mime_type)
        allowed = allowed_mime_types(group)
        if mime_type not in allowed:
            logger.warning(
                "Rejected upload '%s' to %s: type %s not allowed",
                file_name, working_group_id, mime_type,
            )
            raise UnsupportedDocumentFormat(mime_type, allowed)

        limit = group.configuration.document_processing.max_file_size
        if len(data) > limit:
            logger.warning(
                "Rejected upload '%s' to %s: %d bytes exceeds %d",
                file_name, working_group_id, len(data), limit,
            )
            raise DocumentTooLarge(len(data), limit)

        model_used = model_override or group.configuration.model_settings.primary_model
        document_id = new_document_id()
        metadata = metadata or DocumentMetadata(title=file_name)
        steps = [
            ProcessingStep(
                step="validate", status="completed",
                detail=f"{mime_type}, {len(data)} bytes",
            )
        ]

        document = DocumentUpload(
            id=document_id,
            working_group_id=group.id,
            file_name=f"{document_id}{PurePath(file_name).suffix.lower()}",
            original_name=file_name,
            file_size=len(data),
            mime_type=mime_type,
            metadata=metadata,
            processing_status=ProcessingStatus.PROCESSING,
        )

        # --- Extraction ---
        step_start = time.monotonic()
        try:
            extracted = parser.extract_text(data, mime_type, file_name)
        except parser.ExtractionError as e:
            steps.append(
                ProcessingStep(
                    step="extract", status="failed",
                    duration_ms=int((time.monotonic() - step_start) * 1000),
                    detail=str(e),
                )
            )
            document.processing_status = ProcessingStatus.FAILED
            document.error_message = str(e)
            document.processing_results = ProcessingResults(
                processing_time_ms=int((time.monotonic() - start) * 1000),
                model_used=model_used,
                processing_steps=steps,
            )
            document.updated_at = utcnow()
            await self._documents.add(document)
            logger.error("Extraction failed for %s ('%s'): %s", document_id, file_name, e)
            return document

        steps.append(
            ProcessingStep(
                step="extract", status="completed",
                duration_ms=int((time.monotonic() - step_start) * 1000),
                detail=f"{len(extracted.text)} characters, {extracted.element_count} blocks",
            )
        )

        # --- Scoring ---
        step_start = time.monotonic()
        text = extracted.text
        results = ProcessingResults(
            summary=self._scorer.summary(text),
            keywords=self._scorer.keywords(text, metadata.tags),
            quality_score=self._scorer.quality_score(text),
            character_count=len(text),
            model_used=model_used,
        )
        steps.append(
            ProcessingStep(
                step="analyze", model=model_used, status="completed",
                duration_ms=int((time.monotonic() - step_start) * 1000),
            )
        )

        results.processing_time_ms = int((time.monotonic() - start) * 1000)
        results.processing_steps = steps

        document.content = text
        document.processing_results = results
        document.intelligence_disclosure = build_disclosure(
            group,
            model_used,
            confidence=self._scorer.document_confidence(),
            steps=steps,
        )
        document.processing_status = ProcessingStatus.COMPLETED
        document.updated_at = utcnow()

        await self._documents.add(document)
        await self._registry.record_document_added(group.id, at=document.updated_at)

        logger.info(
            "Ingested %s into %s ('%s', %s, %d chars, quality=%.2f, %dms)",
            document_id, group.id, file_name, mime_type, len(text),
            results.quality_score, results.processing_time_ms,
        )
        return document

    async def list_documents(
        self,
        working_group_id: str,
        status: ProcessingStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[DocumentUpload]:
        """Documents of a working group in upload order."""
        await self._registry.get(working_group_id)
        return await self._documents.list_for_group(
            working_group_id, status=status, limit=limit, offset=offset,
        )
