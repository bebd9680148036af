"""Runtime configuration loaded from the environment and .env files."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from codecontext.errors import ConfigError

logger = logging.getLogger(__name__)

APP_DIR_NAME = "code-context"

DEFAULT_MAX_PROJECTS = 10
DEFAULT_EMBED_CONCURRENCY = 5


def _xdg_config_dir() -> Path:
    """Return $XDG_CONFIG_HOME, falling back to ~/.config."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def _state_dir() -> Path:
    return Path.home() / ".code-context"


def load_env_files(cwd: Optional[Path] = None) -> Optional[Path]:
    """Load the first .env found, project directory before global config.

    Variables already present in the environment are never overridden.

    Returns:
        The path of the .env file that was loaded, or None
    """
    candidates = [
        (cwd or Path.cwd()) / ".env",
        _xdg_config_dir() / APP_DIR_NAME / ".env",
    ]
    for path in candidates:
        if path.is_file():
            load_dotenv(path, override=False)
            logger.debug("Loaded .env from: %s", path)
            return path

    logger.debug("No .env file found, using environment variables only")
    return None


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def _env_path(name: str, default: Path) -> Path:
    raw = os.environ.get(name)
    return Path(raw).expanduser() if raw else default


@dataclass(frozen=True)
class Settings:
    """All tunables for the indexing engine and its collaborators."""

    embedding_provider: str = "ollama"
    ollama_host: str = "http://127.0.0.1:11434"
    embedding_model: str = "nomic-embed-text"
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    vector_store: str = "milvus"
    milvus_address: str = "http://127.0.0.1:19530"
    milvus_token: Optional[str] = None
    sqlite_store_path: Path = _state_dir() / "vectors.db"
    snapshot_path: Path = _state_dir() / "snapshot.json"
    max_projects: int = DEFAULT_MAX_PROJECTS
    embed_concurrency: int = DEFAULT_EMBED_CONCURRENCY
    request_timeout: float = 60.0
    max_retries: int = 3
    log_level: str = "ERROR"

    @classmethod
    def from_env(cls, load_dotenv_files: bool = True) -> "Settings":
        """Build settings from environment variables (after .env discovery)."""
        if load_dotenv_files:
            load_env_files()

        provider = os.environ.get("EMBEDDING_PROVIDER", cls.embedding_provider).lower()
        if provider not in ("ollama", "openai", "sentence-transformers"):
            raise ConfigError(f"Unknown EMBEDDING_PROVIDER: {provider}")

        store = os.environ.get("VECTOR_STORE", cls.vector_store).lower()
        if store not in ("milvus", "sqlite"):
            raise ConfigError(f"Unknown VECTOR_STORE: {store}")

        default_model = cls.embedding_model
        if provider == "openai":
            default_model = "text-embedding-3-small"
        elif provider == "sentence-transformers":
            default_model = "all-MiniLM-L6-v2"

        return cls(
            embedding_provider=provider,
            ollama_host=os.environ.get("OLLAMA_HOST", cls.ollama_host),
            embedding_model=os.environ.get("EMBEDDING_MODEL", default_model),
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_base_url=os.environ.get("OPENAI_BASE_URL", cls.openai_base_url),
            vector_store=store,
            milvus_address=os.environ.get("MILVUS_ADDRESS", cls.milvus_address),
            milvus_token=os.environ.get("MILVUS_TOKEN") or None,
            sqlite_store_path=_env_path("SQLITE_STORE_PATH", cls.sqlite_store_path),
            snapshot_path=_env_path("SNAPSHOT_PATH", cls.snapshot_path),
            max_projects=_env_int("MAX_PROJECTS", DEFAULT_MAX_PROJECTS),
            embed_concurrency=_env_int("EMBED_CONCURRENCY", DEFAULT_EMBED_CONCURRENCY),
            request_timeout=_env_float("REQUEST_TIMEOUT", cls.request_timeout),
            max_retries=_env_int("MAX_RETRIES", cls.max_retries),
            log_level=os.environ.get("LOG_LEVEL", cls.log_level).upper(),
        )
