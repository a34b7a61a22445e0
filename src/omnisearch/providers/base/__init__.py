"""Base provider interface — Abstract classes for entity search providers."""

from omnisearch.providers.base.provider import SearchProvider, SearchProviderDescriptor
from omnisearch.providers.base.registry import ProviderRegistry

__all__ = ["ProviderRegistry", "SearchProvider", "SearchProviderDescriptor"]
