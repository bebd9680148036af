"""File-level metadata yielded by ingesters."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FileMetadata:
    """A candidate file discovered under a project root."""

    path: Path
    size_bytes: int
    extension: str
