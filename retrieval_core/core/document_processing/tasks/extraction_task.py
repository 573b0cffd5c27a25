"""
Text extraction task.

Turns uploaded bytes into a single LangChain Document holding the full
plain text. Supported content types: text/plain and text/markdown (decoded
with the charset parameter of the content type, UTF-8 when absent) and
application/pdf (pypdf, pages joined by blank lines). Anything else fails
before chunking is attempted.

Dependencies: pypdf, langchain_core
System role: First stage of document ingestion pipeline
"""

import io
import logging

from langchain_core.documents import Document
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from retrieval_core.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPES = frozenset({"text/plain", "text/markdown"})
PDF_CONTENT_TYPE = "application/pdf"
SUPPORTED_CONTENT_TYPES = TEXT_CONTENT_TYPES | {PDF_CONTENT_TYPE}

PAGE_SEPARATOR = "\n\n"
DEFAULT_CHARSET = "utf-8"


def normalize_content_type(content_type: str) -> str:
    """Lowercase a MIME type and drop parameters such as charset."""
    return content_type.split(";", 1)[0].strip().lower()


def content_type_charset(content_type: str) -> str:
    """Return the charset parameter of a MIME type, or UTF-8 when none is given."""
    for parameter in content_type.split(";")[1:]:
        name, _, value = parameter.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"\'').lower()
    return DEFAULT_CHARSET


class ExtractionTask:
    """Extract plain text from supported document formats."""

    def extract(self, data: bytes, content_type: str, source: str | None = None) -> Document:
        """
        Extract text from raw content.

        Args:
            data: Raw uploaded bytes
            content_type: MIME type of the upload
            source: Original file name, stored in metadata

        Returns:
            Document: Full text; PDFs carry "page_starts", the character
            offset at which each page begins

        Raises:
            ExtractionError: When the content type is unsupported or the
                content cannot be decoded
        """
        kind = normalize_content_type(content_type)
        if kind not in SUPPORTED_CONTENT_TYPES:
            raise ExtractionError(f"Unsupported file type: {content_type}", content_type=content_type)

        metadata: dict = {"content_type": kind}
        if source:
            metadata["source"] = source

        if kind in TEXT_CONTENT_TYPES:
            text = self._decode_text(data, content_type)
            return Document(page_content=text, metadata=metadata)

        text, page_starts = self._extract_pdf(data, content_type)
        metadata["page_starts"] = page_starts
        return Document(page_content=text, metadata=metadata)

    def _decode_text(self, data: bytes, content_type: str) -> str:
        charset = content_type_charset(content_type)
        try:
            return data.decode(charset)
        except LookupError as e:
            raise ExtractionError(f"Unknown charset: {charset}", content_type=content_type) from e
        except UnicodeDecodeError as e:
            raise ExtractionError(
                f"Content is not valid {charset} text: {e}", content_type=content_type
            ) from e

    def _extract_pdf(self, data: bytes, content_type: str) -> tuple[str, list[int]]:
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = [page.extract_text() or "" for page in reader.pages]
        except (PyPdfError, ValueError, OSError) as e:
            logger.error(f"{__name__}:_extract_pdf - Failed to read PDF: {e}")
            raise ExtractionError(
                "Failed to extract text from PDF", content_type=content_type,
                details={"error": str(e)},
            ) from e

        page_starts: list[int] = []
        parts: list[str] = []
        offset = 0
        for page_text in pages:
            page_starts.append(offset)
            parts.append(page_text)
            offset += len(page_text) + len(PAGE_SEPARATOR)

        logger.info(f"{__name__}:_extract_pdf - Extracted {len(pages)} pages")
        return PAGE_SEPARATOR.join(parts), page_starts
