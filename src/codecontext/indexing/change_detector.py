"""Content-hash change detection."""

import hashlib

from codecontext.registry import ProjectRegistry

COLLECTION_PREFIX = "code_index_"
COLLECTION_HASH_LENGTH = 16


def hash_content(content: str) -> str:
    """SHA-256 hex digest of text content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def collection_name_for(project_root: str) -> str:
    """Stable collection identifier for an absolute project root path."""
    return COLLECTION_PREFIX + hash_content(project_root)[:COLLECTION_HASH_LENGTH]


class ChangeDetector:
    """Decides whether a file must be re-processed.

    A file is unchanged iff the registry holds a ledger row for that exact
    path under that exact project with an identical digest. Renames are
    not detected.
    """

    def __init__(self, registry: ProjectRegistry):
        self._registry = registry

    def is_unchanged(self, project_root: str, file_path: str, digest: str) -> bool:
        return self._registry.get_file_hash(project_root, file_path) == digest
