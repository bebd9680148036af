"""Paragraph-based chunking for files without a usable syntax tree."""

from typing import Iterator

from codecontext.chunkers.ast_chunker import whole_file_chunk
from codecontext.models import Chunk, SymbolKind

SEPARATOR = "\n\n"


class ParagraphChunker:
    """Language-agnostic chunking: split by blank lines, hard-split >1000, merge <50.

    Paragraph boundaries keep related lines together, very long paragraphs
    are cut at MAX_CHUNK_SIZE characters, and runs of tiny fragments are
    merged until they reach MIN_CHUNK_SIZE so they don't become noise.
    """

    name = "paragraph"

    MAX_CHUNK_SIZE = 1000
    MIN_CHUNK_SIZE = 50

    def chunk(self, text: str, file_path: str) -> list[Chunk]:
        """Split text into `other` chunks with 0-based line spans.

        Returns a single whole-file chunk when nothing substantial is found.
        """
        chunks = [
            Chunk(
                file_path=file_path,
                content=segment,
                start_line=text.count("\n", 0, start),
                end_line=text.count("\n", 0, start + len(segment) - 1),
                symbol_name=None,
                symbol_kind=SymbolKind.OTHER,
            )
            for segment, start in self._segments(text)
            if segment.strip()
        ]
        return chunks or [whole_file_chunk(text, file_path)]

    def _segments(self, text: str) -> Iterator[tuple[str, int]]:
        """Yield (segment, start offset) pairs in document order."""
        pending = ""
        pending_start = 0
        offset = 0

        for paragraph in text.split(SEPARATOR):
            start, offset = offset, offset + len(paragraph) + len(SEPARATOR)

            if len(paragraph) >= self.MIN_CHUNK_SIZE:
                if pending:
                    yield pending, pending_start
                    pending = ""
                for cut in range(0, len(paragraph), self.MAX_CHUNK_SIZE):
                    yield paragraph[cut : cut + self.MAX_CHUNK_SIZE], start + cut
                continue

            if pending:
                pending += SEPARATOR + paragraph
            else:
                pending, pending_start = paragraph, start
            if len(pending) >= self.MIN_CHUNK_SIZE:
                yield pending, pending_start
                pending = ""

        if pending:
            yield pending, pending_start
