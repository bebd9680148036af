"""Exception hierarchy for Code Context."""

from typing import Optional


class CodeContextError(Exception):
    """Base class for all errors raised by Code Context."""


class ConfigError(CodeContextError):
    """Invalid or missing configuration value."""


class InvalidArgumentError(CodeContextError):
    """A tool argument is missing or invalid."""


class InvalidPathError(InvalidArgumentError):
    """A path argument is malformed, missing on disk or not a directory."""


class SnapshotError(CodeContextError):
    """The registry snapshot could not be loaded or saved."""


class ExternalServiceError(CodeContextError):
    """A call to an external HTTP service failed.

    The HTTP status and raw response body are kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def retryable(self) -> bool:
        """Transport failures, throttling and server errors are worth retrying."""
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class EmbeddingError(ExternalServiceError):
    """The embedding provider rejected or failed a request."""


class VectorStoreError(ExternalServiceError):
    """The vector store rejected or failed a request."""


class ChunkingError(CodeContextError):
    """A file could not be parsed into chunks."""
