"""Protocol for candidate-file discovery."""

from pathlib import Path
from typing import Iterator, Protocol, runtime_checkable

from codecontext.models import FileMetadata


@runtime_checkable
class Ingester(Protocol):
    """Protocol for enumerating candidate files under a project root.

    Uses structural subtyping - no inheritance required.
    """

    @property
    def source_type(self) -> str:
        """Return identifier for this source type (e.g., 'folder')."""
        ...

    def can_handle(self, source: Path) -> bool:
        """Check if this ingester can enumerate the given source."""
        ...

    def discover(self, source: Path) -> Iterator[FileMetadata]:
        """Yield metadata for every candidate file, without reading content."""
        ...
