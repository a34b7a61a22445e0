"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Environment variables (OMNISEARCH_ prefix)
  2. YAML config file (if specified)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=4, description="Number of worker processes")
    request_timeout: int = Field(default=30, description="Request timeout in seconds")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class ProviderConfig(BaseModel):
    """Configuration for a single search provider.

    The key under ``search.providers`` names the provider. For the built-in
    providers that key is also the implementation (``products``, ``posts``,
    ``pages``, ``users``); set ``kind: http`` to serve any other entity type
    from a remote search service.
    """

    enabled: bool = Field(default=True, description="Whether this provider is registered")
    kind: str | None = Field(default=None, description="Implementation to use (defaults to the provider key)")
    entity_type: str | None = Field(default=None, description="Entity type override (required for kind=http)")
    required_permission: str | None = Field(default=None, description="Permission name override")
    base_url: str | None = Field(default=None, description="Remote search service URL (kind=http)")
    api_key: str | None = Field(default=None, description="Bearer token for the remote service")
    timeout: float | None = Field(default=None, gt=0, description="HTTP timeout in seconds (kind=http)")
    seed_path: str | None = Field(default=None, description="YAML / JSON file with records to search")
    records: list[dict[str, Any]] = Field(default_factory=list, description="Inline records to search")
    extra: dict[str, Any] = Field(default_factory=dict, description="Provider-specific options")


class SearchSettings(BaseModel):
    """Search behavior configuration."""

    default_limit: int = Field(default=20, ge=1, le=100, description="Page size when the caller gives none")
    provider_timeout_seconds: float = Field(default=5.0, gt=0, description="Per-provider call timeout")
    quick_search_limit: int = Field(default=8, ge=1, le=100, description="Results returned by quick search")
    max_candidates_per_provider: int = Field(
        default=1000,
        ge=1,
        description="Upper bound on page*limit candidates fetched from each provider in multi-type mode",
    )
    sensitive_entity_types: list[str] = Field(
        default_factory=lambda: ["users", "customers", "orders"],
        description="Entity types whose searches are written to the audit log",
    )
    providers: dict[str, ProviderConfig] = Field(default_factory=dict, description="Provider configurations")


class RateLimitRule(BaseModel):
    """Request ceiling for one endpoint class."""

    max_requests: int = Field(default=100, ge=1, description="Requests allowed per window")
    window_seconds: float = Field(default=3600.0, gt=0, description="Window length in seconds")


class RateLimitSettings(BaseModel):
    """Per-user rate limiting for the search endpoints."""

    enabled: bool = Field(default=True, description="Whether rate limiting is enforced")
    backend: str = Field(default="memory", description="Counter storage: memory, redis")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL (backend=redis)")
    key_prefix: str = Field(default="omnisearch:ratelimit", description="Redis key prefix")
    warn_ratio: float = Field(default=0.8, gt=0, le=1, description="Log a warning once this share of the budget is used")
    full_search: RateLimitRule = Field(default_factory=RateLimitRule, description="Limit for GET /search")
    quick_search: RateLimitRule = Field(default_factory=RateLimitRule, description="Limit for GET /search/quick")

    @field_validator("backend")
    @classmethod
    def _check_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in {"memory", "redis"}:
            raise ValueError(f"Unsupported rate limit backend '{v}' (expected memory or redis)")
        return v


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the OMNISEARCH_ prefix.
    Nested settings use double underscores: OMNISEARCH_SERVER__PORT=9090

    Example:
        OMNISEARCH_SERVER__PORT=9090
        OMNISEARCH_SEARCH__PROVIDER_TIMEOUT_SECONDS=2.5
        OMNISEARCH_RATE_LIMIT__FULL_SEARCH__MAX_REQUESTS=10
        OMNISEARCH_RATE_LIMIT__FULL_SEARCH__WINDOW_SECONDS=60
    """

    model_config = {
        "env_prefix": "OMNISEARCH_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    # Application metadata
    app_name: str = Field(default="OmniSearch", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    # Component settings
    server: ServerSettings = Field(default_factory=ServerSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are used as defaults; environment variables
        still take precedence.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
