"""Shared test fixtures and configuration."""

from __future__ import annotations

from typing import Any

import pytest

from omnisearch.config.settings import Settings
from omnisearch.core.coordinator import SearchCoordinator
from omnisearch.models.context import PermissionContext
from omnisearch.providers.base.registry import ProviderRegistry
from omnisearch.providers.pages.provider import PagesSearchProvider
from omnisearch.providers.posts.provider import PostsSearchProvider
from omnisearch.providers.products.provider import ProductsSearchProvider
from omnisearch.providers.users.provider import UsersSearchProvider


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        search={"provider_timeout_seconds": 0.5},
    )


# ── Callers ──────────────────────────────────────────────────────────────────


@pytest.fixture
def admin_ctx() -> PermissionContext:
    """Administrator holding every permission."""
    return PermissionContext(user_id="admin-1", role="ADMIN", permissions=frozenset({"*:*"}))


@pytest.fixture
def user_ctx() -> PermissionContext:
    """Regular user who may read every built-in entity type."""
    return PermissionContext(
        user_id="user-2",
        role="USER",
        permissions=frozenset({"products:read", "blog:read", "pages:read", "users:read"}),
    )


@pytest.fixture
def products_only_ctx() -> PermissionContext:
    """Regular user who may only read products."""
    return PermissionContext(user_id="user-5", role="USER", permissions=frozenset({"products:read"}))


# ── Records ──────────────────────────────────────────────────────────────────


@pytest.fixture
def product_records() -> list[dict[str, Any]]:
    return [
        {
            "id": "product-1",
            "title": "Test Search Product",
            "sku": "TSP-001",
            "description": "Test description",
            "price": 99.99,
            "status": "PUBLISHED",
            "created_at": "2024-03-01T10:00:00Z",
        },
        {
            "id": "product-2",
            "title": "Draft Search Widget",
            "sku": "DSW-002",
            "description": "Not released yet",
            "price": 10,
            "status": "DRAFT",
            "created_at": "2024-05-01T10:00:00Z",
        },
        {
            "id": "product-3",
            "title": "Archived Gadget",
            "sku": "AG-003",
            "description": "An old gadget that nobody will search for",
            "price": 5,
            "status": "ARCHIVED",
            "created_at": "2023-01-01T10:00:00Z",
        },
    ]


@pytest.fixture
def post_records() -> list[dict[str, Any]]:
    return [
        {
            "id": "post-1",
            "title": "Search Tips",
            "slug": "search-tips",
            "excerpt": "Find things faster",
            "content": "Use quotes.",
            "status": "PUBLISHED",
            "author_id": "user-9",
            "author": "Robin",
            "published_at": "2024-06-01T09:00:00Z",
        },
        {
            "id": "post-2",
            "title": "My Draft",
            "slug": "my-draft",
            "excerpt": "",
            "content": "A draft about search",
            "status": "DRAFT",
            "author_id": "user-2",
            "author": "Dana",
        },
        {
            "id": "post-3",
            "title": "Someone Else's Draft",
            "slug": "other-draft",
            "excerpt": "",
            "content": "Another search draft",
            "status": "DRAFT",
            "author_id": "user-9",
            "author": "Robin",
        },
    ]


@pytest.fixture
def page_records() -> list[dict[str, Any]]:
    return [
        {
            "id": "page-1",
            "title": "Search Help",
            "slug": "help",
            "meta_description": "How the dashboard search works",
            "content": "Type at least one character.",
            "status": "PUBLISHED",
            "updated_at": "2024-02-01T00:00:00Z",
        },
        {
            "id": "page-2",
            "title": "Hidden Page",
            "slug": "hidden",
            "meta_description": "",
            "content": "Internal search notes",
            "status": "DRAFT",
            "updated_at": "2024-02-02T00:00:00Z",
        },
    ]


@pytest.fixture
def user_records() -> list[dict[str, Any]]:
    return [
        {
            "id": "admin-1",
            "name": "Alex Admin",
            "email": "alex@example.com",
            "role": "ADMIN",
            "is_active": True,
            "created_at": "2023-01-01T00:00:00Z",
        },
        {
            "id": "user-2",
            "name": "Dana Searcher",
            "email": "dana@example.com",
            "role": "USER",
            "is_active": True,
            "created_at": "2023-06-01T00:00:00Z",
        },
        {
            "id": "user-3",
            "name": "",
            "email": "sam@example.com",
            "role": "USER",
            "is_active": False,
            "created_at": "2024-02-01T00:00:00Z",
        },
    ]


# ── Providers & coordinator ──────────────────────────────────────────────────


@pytest.fixture
def registry(
    product_records: list[dict[str, Any]],
    post_records: list[dict[str, Any]],
    page_records: list[dict[str, Any]],
    user_records: list[dict[str, Any]],
) -> ProviderRegistry:
    """Registry with the four built-in providers, registered in this order."""
    registry = ProviderRegistry()
    registry.register(ProductsSearchProvider(product_records))
    registry.register(PostsSearchProvider(post_records))
    registry.register(PagesSearchProvider(page_records))
    registry.register(UsersSearchProvider(user_records))
    return registry


@pytest.fixture
def coordinator(settings: Settings, registry: ProviderRegistry) -> SearchCoordinator:
    return SearchCoordinator(settings, registry)
