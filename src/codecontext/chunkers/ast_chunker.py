"""Syntax-tree based chunking using tree-sitter grammars."""

import logging
from pathlib import Path
from typing import Any, Optional

from tree_sitter_language_pack import get_parser

from codecontext.errors import ChunkingError
from codecontext.models import Chunk, SymbolKind

logger = logging.getLogger(__name__)

# File extension -> tree-sitter-language-pack grammar name
LANGUAGES = {
    "rs": "rust",
    "ts": "tsx",
    "tsx": "tsx",
    "js": "javascript",
    "py": "python",
    "go": "go",
    "cpp": "cpp",
    "cc": "cpp",
    "java": "java",
    "cs": "csharp",
}

# Grammar node kinds that define a symbol worth its own chunk
SYMBOL_KINDS = {
    "function_definition": SymbolKind.FUNCTION,
    "function_item": SymbolKind.FUNCTION,
    "function_declaration": SymbolKind.FUNCTION,
    "method_definition": SymbolKind.FUNCTION,
    "class_definition": SymbolKind.CLASS,
    "class_declaration": SymbolKind.CLASS,
    "impl_item": SymbolKind.CLASS,
    "method_declaration": SymbolKind.METHOD,
    "method_item": SymbolKind.METHOD,
    "interface_declaration": SymbolKind.INTERFACE,
    "struct_item": SymbolKind.STRUCT,
    "struct_declaration": SymbolKind.STRUCT,
    "module": SymbolKind.MODULE,
}


def whole_file_chunk(text: str, file_path: str) -> Chunk:
    """Single chunk covering an entire file, used when nothing better exists."""
    return Chunk(
        file_path=file_path,
        content=text,
        start_line=0,
        end_line=len(text.splitlines()),
        symbol_name=None,
        symbol_kind=SymbolKind.OTHER,
    )


class AstChunker:
    """Emit one chunk per function, class, method, struct, interface or module.

    The tree is walked depth-first from the root's children. A matched node
    becomes a chunk and its subtree is not descended into, so a class is
    never re-split into its methods. Files without a registered grammar, or
    without any matched declarations, become a single `other` chunk.
    """

    name = "ast"

    def __init__(self, languages: Optional[dict[str, str]] = None):
        self._languages = dict(LANGUAGES if languages is None else languages)
        self._parsers: dict[str, Any] = {}

    def supports(self, file_path: str) -> bool:
        return self._extension(file_path) in self._languages

    def chunk(self, text: str, file_path: str) -> list[Chunk]:
        """Split source text into symbol chunks.

        Raises:
            ChunkingError: If the grammar fails to parse the file
        """
        parser = self._parser_for(file_path)
        if parser is None:
            return [whole_file_chunk(text, file_path)]

        source = text.encode("utf-8")
        try:
            tree = parser.parse(source)
        except Exception as e:
            raise ChunkingError(f"Failed to parse {file_path}: {e}") from e

        chunks = self._extract_chunks(tree.root_node, source, file_path)
        if not chunks:
            return [whole_file_chunk(text, file_path)]
        return chunks

    def _extract_chunks(self, root: Any, source: bytes, file_path: str) -> list[Chunk]:
        chunks: list[Chunk] = []
        # Explicit stack keeps document order without recursion limits
        stack = list(reversed(root.children))
        while stack:
            node = stack.pop()
            symbol_kind = SYMBOL_KINDS.get(node.type)
            if symbol_kind is not None:
                chunks.append(
                    Chunk(
                        file_path=file_path,
                        content=source[node.start_byte : node.end_byte].decode(
                            "utf-8", errors="replace"
                        ),
                        start_line=node.start_point[0],
                        end_line=node.end_point[0],
                        symbol_name=self._symbol_name(node, source),
                        symbol_kind=symbol_kind,
                    )
                )
                continue
            stack.extend(reversed(node.children))
        return chunks

    @staticmethod
    def _symbol_name(node: Any, source: bytes) -> Optional[str]:
        """First immediate child whose kind mentions identifier or name."""
        for child in node.children:
            if "identifier" in child.type or "name" in child.type:
                return source[child.start_byte : child.end_byte].decode(
                    "utf-8", errors="replace"
                )
        return None

    @staticmethod
    def _extension(file_path: str) -> str:
        return Path(file_path).suffix.lstrip(".")

    def _parser_for(self, file_path: str) -> Any:
        language = self._languages.get(self._extension(file_path))
        if language is None:
            return None

        if language not in self._parsers:
            try:
                self._parsers[language] = get_parser(language)
            except Exception as e:
                logger.warning("Grammar unavailable for %s: %s", language, e)
                self._parsers[language] = None
        return self._parsers[language]
