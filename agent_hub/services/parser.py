# =============================================================================
# Document Parser — Text Extraction for Uploads
# =============================================================================
#
# Turns an uploaded file (raw bytes + MIME type) into plain text.
#
#   text/plain, text/markdown   → decoded as UTF-8
#   application/pdf, DOCX, HTML → IBM Docling, items iterated in reading order
#
# Docling is imported on first use of a binary format: the converter loads
# layout models into memory, and plain-text uploads never need it.
#
# The MIME tables below are the global allow-list. A working group can
# narrow it further with document_processing.supported_formats, which uses
# the short format names (pdf, txt, md, docx, html).
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import PurePath

logger = logging.getLogger(__name__)

PDF = "application/pdf"
TEXT = "text/plain"
MARKDOWN = "text/markdown"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
HTML = "text/html"

# MIME type → short format name
FORMAT_NAMES: dict[str, str] = {
    PDF: "pdf",
    TEXT: "txt",
    MARKDOWN: "md",
    DOCX: "docx",
    HTML: "html",
}

ALLOWED_MIME_TYPES: tuple[str, ...] = tuple(FORMAT_NAMES)

_EXTENSIONS: dict[str, str] = {
    ".pdf": PDF,
    ".txt": TEXT,
    ".text": TEXT,
    ".md": MARKDOWN,
    ".markdown": MARKDOWN,
    ".docx": DOCX,
    ".html": HTML,
    ".htm": HTML,
}

_GENERIC_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class ExtractedText:
    """Plain text extracted from one upload."""

    text: str
    page_count: int = 0
    element_count: int = 0
    table_count: int = 0


class ExtractionError(Exception):
    """The file was accepted but its text could not be extracted."""


# ---------------------------------------------------------------------------
# MIME Detection
# ---------------------------------------------------------------------------


def detect_mime_type(file_name: str, declared: str | None) -> str:
    """
    Resolve the MIME type of an upload.

    The declared type wins unless it is missing or generic
    (application/octet-stream); then the file extension decides.
    Parameters such as "; charset=utf-8" are dropped.
    """
    mime = (declared or "").split(";", 1)[0].strip().lower()
    if mime in _GENERIC_TYPES:
        mime = _EXTENSIONS.get(PurePath(file_name).suffix.lower(), mime or "application/octet-stream")
    # Some clients label Markdown as text/x-markdown
    if mime == "text/x-markdown":
        mime = MARKDOWN
    return mime


def format_name(mime_type: str) -> str | None:
    return FORMAT_NAMES.get(mime_type)


# ---------------------------------------------------------------------------
# Docling Converter — Lazy Singleton
# ---------------------------------------------------------------------------

_converter = None


def _get_converter():
    """Lazily initialize and cache the Docling DocumentConverter."""
    global _converter
    if _converter is None:
        from docling.datamodel.base_models import InputFormat
        from docling.datamodel.pipeline_options import PdfPipelineOptions
        from docling.document_converter import DocumentConverter, PdfFormatOption

        logger.info(
            "Initializing Docling DocumentConverter "
            "(first use, may take a few seconds)..."
        )
        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_table_structure = True
        pipeline_options.do_ocr = False

        _converter = DocumentConverter(
            allowed_formats=[InputFormat.PDF, InputFormat.DOCX, InputFormat.HTML],
            format_options={
                InputFormat.PDF: PdfFormatOption(pipeline_options=pipeline_options),
            },
        )
        logger.info("Docling DocumentConverter initialized")
    return _converter


def _extract_with_docling(data: bytes, file_name: str) -> ExtractedText:
    from docling.datamodel.base_models import DocumentStream
    from docling_core.types.doc.labels import DocItemLabel

    converter = _get_converter()
    try:
        result = converter.convert(DocumentStream(name=file_name, stream=BytesIO(data)))
    except Exception as exc:
        raise ExtractionError(f"Docling failed to parse '{file_name}': {exc}") from exc

    blocks: list[str] = []
    tables = 0
    pages: set[int] = set()

    for item, _level in result.document.iterate_items():
        if getattr(item, "prov", None):
            pages.add(item.prov[0].page_no)

        label = getattr(item, "label", None)
        if label == DocItemLabel.TABLE:
            text = item.export_to_markdown(doc=result.document)
            tables += 1
        elif label in (
            DocItemLabel.TITLE, DocItemLabel.SECTION_HEADER, DocItemLabel.TEXT,
            DocItemLabel.LIST_ITEM, DocItemLabel.CAPTION, DocItemLabel.FOOTNOTE,
            DocItemLabel.PARAGRAPH,
        ):
            text = getattr(item, "text", "")
        else:
            continue

        if text and text.strip():
            blocks.append(text.strip())

    return ExtractedText(
        text="\n\n".join(blocks),
        page_count=max(pages) if pages else 0,
        element_count=len(blocks),
        table_count=tables,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_text(data: bytes, mime_type: str, file_name: str) -> ExtractedText:
    """
    Extract plain text from an upload.

    Raises:
        ExtractionError: if the bytes cannot be turned into text.
        ValueError: if the MIME type is not in ALLOWED_MIME_TYPES.
    """
    if mime_type in (TEXT, MARKDOWN):
        text = data.decode("utf-8", errors="replace")
        blocks = [b for b in text.split("\n\n") if b.strip()]
        return ExtractedText(text=text, page_count=1 if text else 0, element_count=len(blocks))

    if mime_type in (PDF, DOCX, HTML):
        extracted = _extract_with_docling(data, file_name)
        logger.info(
            "Parsed '%s': %d elements (%d tables), %d pages",
            file_name, extracted.element_count, extracted.table_count,
            extracted.page_count,
        )
        return extracted

    raise ValueError(f"No extractor for MIME type '{mime_type}'")
