"""
Text chunking task using RecursiveCharacterTextSplitter.

Splits extracted text into ordered, overlapping chunks that prefer
paragraph, line, sentence and word boundaries over hard cuts. Separators
stay at the end of the piece they close and whitespace is not stripped, so
every chunk is an exact substring of the source and start_index locates it.
Whitespace-only pieces are folded into the preceding chunk, so chunks minus
their overlaps always rebuild the full text.

Dependencies: langchain_text_splitters
System role: Second stage of document ingestion pipeline
"""

from bisect import bisect_right

from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

from retrieval_core.core.document_processing.models import ChunkMetadata, TextChunk
from retrieval_core.core.exceptions import ValidationError

DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", "! ", "? ", " ", ""]


class ChunkingTask:
    """Split text into chunks using RecursiveCharacterTextSplitter."""

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
    ) -> None:
        """
        Initialize chunking task with splitter configuration.

        Args:
            chunk_size: Maximum chunk size in characters
            chunk_overlap: Overlap between consecutive chunks

        Raises:
            ValidationError: If the geometry is invalid
        """
        if chunk_size < 1:
            raise ValidationError("chunk_size must be >= 1", field="chunk_size")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValidationError(
                "chunk_overlap must be >= 0 and smaller than chunk_size",
                field="chunk_overlap",
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=DEFAULT_SEPARATORS,
            keep_separator="end",
            strip_whitespace=False,
            add_start_index=True,
            length_function=len,
        )

    def chunk_text(
        self,
        text: str,
        source: str | None = None,
        page_starts: list[int] | None = None,
    ) -> list[TextChunk]:
        """
        Split text into chunks.

        Args:
            text: Extracted plain text
            source: Original file name recorded in chunk metadata
            page_starts: Character offsets where pages begin (PDF only)

        Returns:
            list[TextChunk]: Chunks in order; empty for blank text
        """
        if not text.strip():
            return []

        chunks: list[TextChunk] = []
        for start, end in self._spans(text):
            content = text[start:end]
            page = None
            if page_starts:
                # Page of the first visible character, not of a leading separator
                leading = len(content) - len(content.lstrip())
                page = bisect_right(page_starts, start + leading)
            chunks.append(
                TextChunk(
                    chunk_index=len(chunks),
                    content=content,
                    token_count=len(content.split()),
                    metadata=ChunkMetadata(start_index=start, page=page, source=source),
                )
            )
        return chunks

    def _spans(self, text: str) -> list[tuple[int, int]]:
        """
        Character ranges of the chunks with visible content.

        A run of separators longer than chunk_size comes back from the splitter
        as whitespace-only pieces. Those are dropped as chunks, and the gap they
        leave is given to the preceding chunk (or to the first chunk when the
        text starts with them), so no character of the source is lost.
        """
        spans: list[list[int]] = []
        for piece in self._splitter.create_documents([text]):
            content = piece.page_content
            if not content.strip():
                continue
            start = piece.metadata["start_index"]
            if start < 0:
                start = text.find(content, spans[-1][0] if spans else 0)
            spans.append([start, start + len(content)])

        if not spans:
            return []
        if not text[:spans[0][0]].strip():
            spans[0][0] = 0
        for previous, current in zip(spans, spans[1:]):
            gap = text[previous[1]:current[0]]
            if gap and not gap.strip():
                previous[1] = current[0]
        if not text[spans[-1][1]:].strip():
            spans[-1][1] = len(text)
        return [(start, end) for start, end in spans]

    def chunk(self, document: Document) -> list[TextChunk]:
        """
        Split an extracted document into chunks.

        Args:
            document: Output of ExtractionTask

        Returns:
            list[TextChunk]: Chunks carrying source and page metadata
        """
        return self.chunk_text(
            document.page_content,
            source=document.metadata.get("source"),
            page_starts=document.metadata.get("page_starts"),
        )
