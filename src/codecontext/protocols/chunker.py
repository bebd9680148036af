"""Protocol for code chunking strategies."""

from typing import Protocol, runtime_checkable

from codecontext.models import Chunk


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Protocol for code chunking strategies.

    Implementations must return a non-empty, ordered list of chunks for any
    non-empty input, and raise on parser failure rather than returning
    partial results.
    """

    @property
    def name(self) -> str:
        """Return the splitter name used in tool arguments (e.g., 'ast')."""
        ...

    def chunk(self, text: str, file_path: str) -> list[Chunk]:
        """Split a file's text into chunks with line-span metadata."""
        ...
