"""Provider-specific exceptions."""

from __future__ import annotations


class ProviderError(Exception):
    """Base exception for provider errors."""


class ProviderUnavailableError(ProviderError):
    """Raised when a provider cannot answer (backend down, timeout, bad response).

    The coordinator catches this per provider and degrades that provider's
    contribution to an empty result set.
    """

    def __init__(self, entity_type: str, reason: str) -> None:
        super().__init__(f"Provider '{entity_type}' unavailable: {reason}")
        self.entity_type = entity_type
        self.reason = reason


class ProviderConfigurationError(ProviderError):
    """Raised when provider configuration is invalid."""
