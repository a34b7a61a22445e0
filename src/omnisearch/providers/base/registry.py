"""Provider Registry — Registration and lookup of search providers by entity type.

The registry is populated once at startup and is effectively read-only while
requests are served. Registration takes a lock so that a runtime
re-registration (hot reload, test doubles) cannot race another registration;
lookups do not lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from omnisearch.providers.base.provider import ProviderHealth, SearchProvider, SearchProviderDescriptor

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry of search providers keyed by entity type.

    Supports:
      - Registering provider instances (last write wins, with a warning)
      - Looking up one provider, or several while dropping unknown types
      - Listing registered types for query validation
      - Lifecycle and health checks across every provider

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.register(ProductsSearchProvider(records))
        >>> registry.get("products")
        >>> registry.all_types()
        {'products'}
    """

    def __init__(self) -> None:
        self._providers: dict[str, SearchProvider] = {}
        self._lock = threading.Lock()

    def register(self, provider: SearchProvider) -> None:
        """Register a provider under its entity type.

        Args:
            provider: The provider instance to register.
        """
        entity_type = provider.entity_type
        with self._lock:
            if entity_type in self._providers:
                logger.warning("Provider for entity type '%s' already registered, overwriting", entity_type)
            providers = dict(self._providers)
            providers[entity_type] = provider
            self._providers = providers
        logger.info(
            "Registered search provider: %s (requires %s)",
            entity_type,
            provider.required_permission,
        )

    def get(self, entity_type: str) -> SearchProvider | None:
        """Return the provider for ``entity_type``, or ``None`` if not registered."""
        return self._providers.get(entity_type)

    def get_many(self, entity_types: Iterable[str]) -> list[SearchProvider]:
        """Return providers for the given types in request order.

        Unknown types are dropped silently; validation upstream should already
        have rejected them.
        """
        providers = self._providers
        found: list[SearchProvider] = []
        seen: set[str] = set()
        for entity_type in entity_types:
            provider = providers.get(entity_type)
            if provider is not None and entity_type not in seen:
                seen.add(entity_type)
                found.append(provider)
        return found

    def has(self, entity_type: str) -> bool:
        return entity_type in self._providers

    def all_types(self) -> set[str]:
        """All registered entity types."""
        return set(self._providers)

    def providers(self) -> list[SearchProvider]:
        """All registered providers in registration order."""
        return list(self._providers.values())

    def descriptors(self) -> list[SearchProviderDescriptor]:
        return [provider.descriptor() for provider in self._providers.values()]

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._providers

    async def initialize_all(self) -> None:
        """Initialize every registered provider.

        A provider that fails to initialize is unregistered so that requests
        never reach it.
        """
        for entity_type, provider in list(self._providers.items()):
            try:
                await provider.initialize()
                logger.info("Initialized provider: %s", entity_type)
            except Exception:
                logger.warning("Failed to initialize provider '%s', unregistering", entity_type, exc_info=True)
                with self._lock:
                    providers = dict(self._providers)
                    providers.pop(entity_type, None)
                    self._providers = providers

    async def health_check_all(self) -> dict[str, ProviderHealth]:
        """Run health checks on all registered providers.

        Returns:
            Dictionary mapping entity types to their health status.
        """
        results: dict[str, ProviderHealth] = {}
        for entity_type, provider in self._providers.items():
            try:
                results[entity_type] = await provider.health_check()
            except Exception as e:
                results[entity_type] = ProviderHealth(status="unhealthy", message=str(e))
        return results

    async def shutdown_all(self) -> None:
        """Gracefully shut down all registered providers."""
        for entity_type, provider in self._providers.items():
            try:
                await provider.shutdown()
                logger.info("Shut down provider: %s", entity_type)
            except Exception:
                logger.warning("Error shutting down provider: %s", entity_type, exc_info=True)
        with self._lock:
            self._providers = {}
