"""Tests for the provider registry."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, patch

import pytest

from omnisearch.providers.base.provider import ProviderHealth
from omnisearch.providers.base.registry import ProviderRegistry
from omnisearch.providers.pages.provider import PagesSearchProvider
from omnisearch.providers.posts.provider import PostsSearchProvider
from omnisearch.providers.products.provider import ProductsSearchProvider


@pytest.fixture
def empty_registry() -> ProviderRegistry:
    return ProviderRegistry()


class TestRegistration:
    def test_register_and_get(self, empty_registry: ProviderRegistry) -> None:
        provider = ProductsSearchProvider([])
        empty_registry.register(provider)
        assert empty_registry.get("products") is provider
        assert empty_registry.has("products")
        assert "products" in empty_registry
        assert len(empty_registry) == 1

    def test_get_unknown_returns_none(self, empty_registry: ProviderRegistry) -> None:
        assert empty_registry.get("products") is None

    def test_reregistration_overwrites_with_warning(
        self, empty_registry: ProviderRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        first = ProductsSearchProvider([])
        second = ProductsSearchProvider([], required_permission="catalog:read")
        empty_registry.register(first)

        with caplog.at_level(logging.WARNING, logger="omnisearch.providers.base.registry"):
            empty_registry.register(second)

        assert "already registered" in caplog.text
        assert empty_registry.get("products") is second
        assert empty_registry.all_types() == {"products"}
        assert len(empty_registry.providers()) == 1

    def test_all_types(self, registry: ProviderRegistry) -> None:
        assert registry.all_types() == {"products", "posts", "pages", "users"}

    def test_providers_in_registration_order(self, registry: ProviderRegistry) -> None:
        assert [p.entity_type for p in registry.providers()] == ["products", "posts", "pages", "users"]

    def test_descriptors(self, registry: ProviderRegistry) -> None:
        by_type = {d.entity_type: d.required_permission for d in registry.descriptors()}
        assert by_type["products"] == "products:read"
        assert by_type["posts"] == "blog:read"


class TestGetMany:
    def test_preserves_request_order(self, registry: ProviderRegistry) -> None:
        found = registry.get_many(["users", "products"])
        assert [p.entity_type for p in found] == ["users", "products"]

    def test_drops_unknown_types(self, registry: ProviderRegistry) -> None:
        found = registry.get_many(["products", "invoices", "pages"])
        assert [p.entity_type for p in found] == ["products", "pages"]

    def test_deduplicates(self, registry: ProviderRegistry) -> None:
        assert len(registry.get_many(["products", "products"])) == 1


class TestLifecycle:
    async def test_initialize_all_unregisters_failures(self, empty_registry: ProviderRegistry) -> None:
        good = ProductsSearchProvider([])
        bad = PostsSearchProvider([])
        empty_registry.register(good)
        empty_registry.register(bad)

        with patch.object(bad, "initialize", new_callable=AsyncMock) as mock_init:
            mock_init.side_effect = RuntimeError("database down")
            await empty_registry.initialize_all()

        assert empty_registry.all_types() == {"products"}

    async def test_health_check_all(self, empty_registry: ProviderRegistry) -> None:
        healthy = ProductsSearchProvider([])
        broken = PagesSearchProvider([])
        empty_registry.register(healthy)
        empty_registry.register(broken)

        with patch.object(broken, "health_check", new_callable=AsyncMock) as mock_health:
            mock_health.side_effect = RuntimeError("boom")
            results = await empty_registry.health_check_all()

        assert results["products"] == ProviderHealth(status="healthy")
        assert results["pages"].status == "unhealthy"
        assert results["pages"].message == "boom"

    async def test_shutdown_all_clears(self, registry: ProviderRegistry) -> None:
        await registry.shutdown_all()
        assert len(registry) == 0
