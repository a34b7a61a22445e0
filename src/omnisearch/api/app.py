"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import importlib
import logging
import math
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from omnisearch import __version__
from omnisearch.api.deps import set_coordinator, set_rate_limiter
from omnisearch.api.v1.router import router as v1_router
from omnisearch.config.settings import ProviderConfig, Settings
from omnisearch.core.coordinator import SearchCoordinator
from omnisearch.core.exceptions import QueryValidationError, RateLimitExceededError
from omnisearch.observability.logging import setup_logging
from omnisearch.providers.base.exceptions import ProviderError
from omnisearch.providers.base.registry import ProviderRegistry
from omnisearch.ratelimit.limiter import SearchRateLimiter

CONFIG_FILENAME = "omnisearch-config.yaml"
CONFIG_ENV_VAR = "OMNISEARCH_CONFIG_FILE"

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        # Explicit config file from the CLI, else auto-detect omnisearch-config.yaml
        yaml_path = Path(os.environ.get(CONFIG_ENV_VAR) or CONFIG_FILENAME)
        if yaml_path.exists():
            logger.info("Loading configuration from %s", yaml_path)
            settings = Settings.from_yaml(yaml_path)
        else:
            settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle (startup/shutdown)."""
        setup_logging(settings.observability)
        logger.info("Starting OmniSearch v%s", __version__)

        coordinator = SearchCoordinator(settings)
        register_providers(coordinator.provider_registry, settings)
        await coordinator.initialize()

        rate_limiter = SearchRateLimiter(settings.rate_limit)
        await rate_limiter.initialize()

        set_coordinator(coordinator)
        set_rate_limiter(rate_limiter)

        # Store components in app state
        app.state.settings = settings
        app.state.coordinator = coordinator
        app.state.rate_limiter = rate_limiter

        logger.info("OmniSearch is ready to serve requests on port %d", settings.server.port)
        yield

        # Shutdown
        logger.info("Shutting down OmniSearch...")
        await coordinator.shutdown()
        await rate_limiter.shutdown()
        set_coordinator(None)
        set_rate_limiter(None)
        logger.info("OmniSearch shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Federated search across every module of the dashboard: one query, "
            "permission-filtered results from each registered entity type."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    # Register API routers
    app.include_router(v1_router, prefix="/v1")

    return app


# ── Error mapping ──


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(QueryValidationError)
    async def _query_validation_error(request: Request, exc: QueryValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid search query", "errors": exc.errors},
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [f"{'.'.join(str(p) for p in e['loc'][1:]) or 'request'}: {e['msg']}" for e in exc.errors()]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid search query", "errors": errors},
        )

    @app.exception_handler(RateLimitExceededError)
    async def _rate_limit_exceeded(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        retry_after = math.ceil(exc.retry_after)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "detail": str(exc),
                "limit": exc.limit,
                "windowSeconds": exc.window_seconds,
                "retryAfter": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )


# ── Provider auto-registration ──

# Maps provider kinds to (module_path, class_name) for lazy import
_PROVIDER_MAP: dict[str, tuple[str, str]] = {
    "products": ("omnisearch.providers.products.provider", "ProductsSearchProvider"),
    "posts": ("omnisearch.providers.posts.provider", "PostsSearchProvider"),
    "pages": ("omnisearch.providers.pages.provider", "PagesSearchProvider"),
    "users": ("omnisearch.providers.users.provider", "UsersSearchProvider"),
    "http": ("omnisearch.providers.http.provider", "HttpSearchProvider"),
}


def register_providers(registry: ProviderRegistry, settings: Settings) -> None:
    """Build and register the providers declared in settings.

    For each enabled entry in ``settings.search.providers`` the implementation
    named by ``kind`` (or the entry key) is imported, constructed and
    registered. Entries that cannot be built are logged and skipped.
    """
    for name, cfg in settings.search.providers.items():
        if not cfg.enabled:
            logger.info("Provider '%s' is disabled, skipping", name)
            continue

        kind = cfg.kind or name
        entry = _PROVIDER_MAP.get(kind)
        if entry is None:
            logger.warning(
                "Unknown provider kind '%s' for '%s'. Register it manually via coordinator.provider_registry.register().",
                kind,
                name,
            )
            continue

        module_path, class_name = entry
        try:
            module = importlib.import_module(module_path)
            provider_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            logger.warning("Failed to import provider '%s': %s", name, e)
            continue

        try:
            provider = provider_class(**_provider_kwargs(name, kind, cfg))
        except (ProviderError, TypeError) as e:
            logger.warning("Failed to configure provider '%s': %s", name, e)
            continue

        registry.register(provider)


def _provider_kwargs(name: str, kind: str, cfg: ProviderConfig) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    if cfg.required_permission:
        kwargs["required_permission"] = cfg.required_permission

    if kind == "http":
        kwargs["entity_type"] = cfg.entity_type or name
        kwargs["base_url"] = cfg.base_url or ""
        if cfg.api_key:
            kwargs["api_key"] = cfg.api_key
        if cfg.timeout:
            kwargs["timeout"] = cfg.timeout
    else:
        kwargs["records"] = cfg.records
        if cfg.seed_path:
            kwargs["seed_path"] = cfg.seed_path

    # Pass through any extra config
    kwargs.update(cfg.extra)
    return kwargs
