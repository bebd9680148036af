"""Code chunks produced by the chunkers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SymbolKind(Enum):
    """Syntactic category of a chunk's top-level construct."""

    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    INTERFACE = "interface"
    STRUCT = "struct"
    MODULE = "module"
    VARIABLE = "variable"
    OTHER = "other"


@dataclass(frozen=True)
class Chunk:
    """A semantic unit of code (one function, class, ...).

    Line numbers are 0-based and inclusive.
    """

    file_path: str
    content: str
    start_line: int
    end_line: int
    symbol_name: Optional[str] = None
    symbol_kind: SymbolKind = SymbolKind.OTHER

    def embedding_text(self) -> str:
        """Text sent to the embedding provider: body first, symbol name last."""
        return f"{self.content}\n{self.symbol_name or ''}"

    def metadata(self, project_root: str) -> dict[str, Any]:
        """Metadata stored next to the chunk's vector."""
        return {
            "file_path": self.file_path,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "symbol_name": self.symbol_name,
            "symbol_kind": self.symbol_kind.value,
            "content": self.content,
            "project_root": project_root,
        }
