"""
Settings for MathSearch.
========================

`config/settings.yaml` holds the defaults for every component. A handful of
top-level environment variables (also read from a local .env) take
precedence over it:

    EMBEDDING_PROVIDER, OLLAMA_URL, GEMINI_API_KEY, OPENSEARCH_HOST,
    VECTOR_STORE_BACKEND, DUPLICATE_THRESHOLD, LOG_LEVEL

Components read the merged values through the `get_effective_*` accessors.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


def _locate_repo_root() -> Path:
    """Walk up from this file to the directory holding pyproject.toml."""
    here = Path(__file__).resolve()
    for candidate in here.parents:
        if (candidate / "pyproject.toml").is_file():
            return candidate
    return Path.cwd()


PROJECT_ROOT = _locate_repo_root()
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "config" / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Nested Configuration Models
# ─────────────────────────────────────────────────────────────────────────────


class OllamaConfig(BaseModel):
    """Ollama embeddings settings."""

    base_url: str = "http://localhost:11434"
    model_name: str = "nomic-embed-text"
    timeout: float = 30.0


class GeminiEmbeddingConfig(BaseModel):
    """Gemini embeddings settings."""

    model_name: str = "text-embedding-004"
    task_type: str = "SEMANTIC_SIMILARITY"


class EmbeddingsConfig(BaseModel):
    """Embeddings provider settings."""

    provider: str = "ollama"
    dimensions: int = Field(default=768, gt=0)
    cache_size: int = Field(default=1000, gt=0)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    gemini: GeminiEmbeddingConfig = Field(default_factory=GeminiEmbeddingConfig)


class OpenSearchConfig(BaseModel):
    """OpenSearch connection settings."""

    host: str = "http://localhost:9200"
    timeout: float = 30.0
    verify_ssl: bool = False
    username: str = ""
    password: str = ""


class ChromaConfig(BaseModel):
    """Embedded ChromaDB settings."""

    persist_dir: str = "data/chroma"


class VectorStoreConfig(BaseModel):
    """Vector store backend selection."""

    backend: Literal["opensearch", "chroma"] = "opensearch"
    opensearch: OpenSearchConfig = Field(default_factory=OpenSearchConfig)
    chroma: ChromaConfig = Field(default_factory=ChromaConfig)


class IndexConfig(BaseModel):
    """Question index schema and ANN parameters."""

    name: str = "math-questions"
    number_of_shards: int = 1
    number_of_replicas: int = 0
    ef_search: int = 100
    ef_construction: int = 128
    m: int = 24
    engine: str = "lucene"
    space_type: str = "cosinesimil"


class SearchConfig(BaseModel):
    """Semantic search and duplicate detection settings."""

    default_limit: int = Field(default=10, ge=1)
    duplicate_threshold: float = 0.9
    duplicate_search_limit: int = Field(default=20, ge=1)


class PathsConfig(BaseModel):
    """Where datasets and local index data live, relative to the repo root."""

    data_dir: str = "data"
    datasets_dir: str = "data/datasets"

    def resolve(self, root: Path) -> "ResolvedPaths":
        return ResolvedPaths(data_dir=root / self.data_dir, datasets_dir=root / self.datasets_dir)


class ResolvedPaths(BaseModel):
    data_dir: Path
    datasets_dir: Path


class LoggingConfig(BaseModel):
    """Root logger level, record format and optional log file."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    rich_console: bool = True
    file: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """
    Merged MathSearch configuration.

    Nested sections come from YAML. The flat optional fields exist only so
    that their environment variables can override a nested value; read them
    through the matching `get_effective_*` method.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")

    embedding_provider: Optional[str] = Field(default=None, validation_alias="EMBEDDING_PROVIDER")
    ollama_url: Optional[str] = Field(default=None, validation_alias="OLLAMA_URL")
    opensearch_host: Optional[str] = Field(default=None, validation_alias="OPENSEARCH_HOST")
    vector_store_backend: Optional[str] = Field(
        default=None, validation_alias="VECTOR_STORE_BACKEND"
    )
    duplicate_threshold: Optional[float] = Field(
        default=None, validation_alias="DUPLICATE_THRESHOLD"
    )
    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")

    embeddings: EmbeddingsConfig = Field(default_factory=EmbeddingsConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _root: Path = PROJECT_ROOT
    _paths: Optional[ResolvedPaths] = None

    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def _none_key_is_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def project_root(self) -> Path:
        return self._root

    @property
    def resolved_paths(self) -> ResolvedPaths:
        if self._paths is None:
            self._paths = self.paths.resolve(self._root)
        return self._paths

    def get_effective_embedding_provider(self) -> str:
        return (self.embedding_provider or self.embeddings.provider).lower()

    def get_effective_ollama_url(self) -> str:
        """Ollama base URL without a trailing slash."""
        return (self.ollama_url or self.embeddings.ollama.base_url).rstrip("/")

    def get_effective_opensearch_host(self) -> str:
        """OpenSearch base URL without a trailing slash."""
        return (self.opensearch_host or self.vector_store.opensearch.host).rstrip("/")

    def get_effective_vector_store_backend(self) -> str:
        return (self.vector_store_backend or self.vector_store.backend).lower()

    def get_effective_duplicate_threshold(self) -> float:
        # 0.0 is a legal override, so test against None
        if self.duplicate_threshold is None:
            return self.search.duplicate_threshold
        return self.duplicate_threshold

    def get_effective_log_level(self) -> str:
        return (self.log_level or self.logging.level).upper()

    def resolve_path(self, path: str) -> Path:
        """Anchor a relative configured path at the project root."""
        p = Path(path)
        return p if p.is_absolute() else self._root / p


# ─────────────────────────────────────────────────────────────────────────────
# Loading
# ─────────────────────────────────────────────────────────────────────────────


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    return raw or {}


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Build a fresh Settings from `config_path` (default: config/settings.yaml).

    A missing file is not an error; the model defaults apply. Nothing is
    cached, which is what tests and one-off scripts want.
    """
    return Settings(**_read_yaml(config_path or DEFAULT_CONFIG_FILE))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Process-wide Settings, loaded once from the default YAML file.

    Example:
        >>> get_settings().index.name
        'math-questions'
    """
    return load_settings()


def reload_settings() -> Settings:
    """Drop the cached Settings and load them again."""
    get_settings.cache_clear()
    return get_settings()
