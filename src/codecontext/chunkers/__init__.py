"""Chunking strategies for source files."""

from codecontext.chunkers.ast_chunker import AstChunker, whole_file_chunk
from codecontext.chunkers.paragraph_chunker import ParagraphChunker
from codecontext.errors import InvalidArgumentError
from codecontext.protocols import ChunkingStrategy

DEFAULT_SPLITTER = "ast"

_CHUNKERS: dict[str, type] = {
    AstChunker.name: AstChunker,
    ParagraphChunker.name: ParagraphChunker,
}


def get_chunker(splitter: str = DEFAULT_SPLITTER) -> ChunkingStrategy:
    """Return a chunker for a splitter hint ('ast' or 'paragraph').

    Raises:
        InvalidArgumentError: If the hint names no known splitter
    """
    try:
        return _CHUNKERS[splitter]()
    except KeyError:
        known = ", ".join(sorted(_CHUNKERS))
        raise InvalidArgumentError(f"Unknown splitter '{splitter}' (expected one of: {known})") from None


__all__ = ["AstChunker", "ParagraphChunker", "get_chunker", "whole_file_chunk", "DEFAULT_SPLITTER"]
