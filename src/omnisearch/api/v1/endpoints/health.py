"""Health check endpoints — System and provider health monitoring."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from omnisearch import __version__
from omnisearch.api.deps import get_coordinator
from omnisearch.core.coordinator import SearchCoordinator
from omnisearch.providers.base.provider import ProviderHealth

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Response models ──────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """System health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="OmniSearch server version")
    service: str = Field(description="Service name ('omnisearch')")
    entity_types: list[str] = Field(description="Registered entity types")


class ProviderHealthResponse(BaseModel):
    """Per-provider health check response.

    Keys are entity types, values are ``ProviderHealth`` objects with
    status, latency, and optional message.
    """

    providers: dict[str, ProviderHealth] = Field(
        description="Map of entity type to its provider's health status",
    )


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="System Health Check",
    description="Returns overall system health, server version, and the registered entity types.",
)
async def health_check(
    coordinator: SearchCoordinator = Depends(get_coordinator),
) -> HealthResponse:
    """Basic health check endpoint with provider info."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        service="omnisearch",
        entity_types=sorted(coordinator.provider_registry.all_types()),
    )


@router.get(
    "/health/providers",
    response_model=ProviderHealthResponse,
    summary="Provider Health Check",
    description="Run health checks on every registered search provider.",
)
async def provider_health(
    coordinator: SearchCoordinator = Depends(get_coordinator),
) -> ProviderHealthResponse:
    """Check health of all search providers."""
    statuses = await coordinator.provider_registry.health_check_all()
    degraded = [t for t, h in statuses.items() if h.status != "healthy"]
    if degraded:
        logger.warning("Unhealthy providers: %s", ", ".join(sorted(degraded)))
    return ProviderHealthResponse(providers=statuses)
