"""Configuration loaded from environment / ``.env``.

:class:`Settings` is the only object that reads the environment.  The core
classes never touch it; they receive the frozen :class:`ProviderConfig` and
:class:`VectorStoreConfig` built from it.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

DEFAULT_MODELS: dict[str, str] = {
    "openai": "text-embedding-3-small",
    "anthropic": "voyage-3",
    "gemini": "embedding-001",
    "ollama": "nomic-embed-text",
}


class ProviderConfig(BaseModel):
    """Embedding provider settings, read-only after construction."""

    model_config = {"frozen": True}

    provider: str = "openai"
    model: str = ""
    api_key: str = ""
    server_url: str = "http://localhost:11434"
    endpoint: str = Field(default="", description="Override for the provider's API URL")
    cache_enabled: bool = True
    cache_ttl_seconds: int = 86400
    retry_attempts: int = 3
    retry_base_delay_ms: int = 1000
    request_timeout: float = 30.0
    max_workers: int = 1

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS.get(self.provider, "")


class VectorStoreConfig(BaseModel):
    """Vector backend settings, read-only after construction."""

    model_config = {"frozen": True}

    backend: str = "milvus"
    host: str = "localhost"
    port: int | None = None
    url: str = ""
    api_key: str = ""
    collection: str = "wordpress_content"
    dimension: int = 1536
    batch_size: int = 100

    # Pinecone serverless placement
    pinecone_cloud: str = "aws"
    pinecone_region: str = "us-west-2"

    # Weaviate v4 talks gRPC alongside HTTP
    weaviate_grpc_port: int = 50051


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Site
    site_name: str = Field(default="WordPress Site", description="Label attached to every result")
    log_level: str = "INFO"

    # Embedding
    embedding_provider: str = "openai"
    embedding_model: str = ""
    embedding_api_key: str = ""
    ollama_url: str = "http://localhost:11434"
    embedding_cache_enabled: bool = True
    embedding_cache_ttl: int = 86400
    embedding_retry_attempts: int = 3
    embedding_retry_delay_ms: int = 1000
    embedding_max_workers: int = 1

    # Vector store
    vector_db_backend: str = "milvus"
    vector_db_host: str = "localhost"
    vector_db_port: int | None = None
    vector_db_url: str = ""
    vector_db_api_key: str = ""
    vector_db_collection: str = "wordpress_content"
    pinecone_cloud: str = "aws"
    pinecone_region: str = "us-west-2"
    weaviate_grpc_port: int = 50051

    # Content repository
    wordpress_url: str = "http://localhost"
    wordpress_content_types: list[str] = ["post", "page"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "NLWEB_"}

    def provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider=self.embedding_provider,
            model=self.embedding_model,
            api_key=self.embedding_api_key,
            server_url=self.ollama_url,
            cache_enabled=self.embedding_cache_enabled,
            cache_ttl_seconds=self.embedding_cache_ttl,
            retry_attempts=self.embedding_retry_attempts,
            retry_base_delay_ms=self.embedding_retry_delay_ms,
            max_workers=self.embedding_max_workers,
        )

    def vector_store_config(self, dimension: int) -> VectorStoreConfig:
        """Build the backend config for an embedding *dimension*."""
        return VectorStoreConfig(
            backend=self.vector_db_backend,
            host=self.vector_db_host,
            port=self.vector_db_port,
            url=self.vector_db_url,
            api_key=self.vector_db_api_key,
            collection=self.vector_db_collection,
            dimension=dimension,
            pinecone_cloud=self.pinecone_cloud,
            pinecone_region=self.pinecone_region,
            weaviate_grpc_port=self.weaviate_grpc_port,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process settings, read once."""
    return Settings()
