"""Search results returned by vector stores."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class SearchResult:
    """A scored hit; higher scores are more relevant."""

    score: float
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def file_path(self) -> str:
        return str(self.metadata.get("file_path") or "unknown")

    @property
    def start_line(self) -> int:
        return int(self.metadata.get("start_line") or 0)

    @property
    def end_line(self) -> int:
        return int(self.metadata.get("end_line") or 0)

    @property
    def symbol_name(self) -> str:
        return str(self.metadata.get("symbol_name") or "")

    @property
    def symbol_kind(self) -> str:
        return str(self.metadata.get("symbol_kind") or "")

    @property
    def content(self) -> str:
        return str(self.metadata.get("content") or "")

    @property
    def project_root(self) -> Optional[str]:
        return self.metadata.get("project_root") or None
