"""Tests for the built-in entity providers (products, posts, pages, users)."""

from __future__ import annotations

from typing import Any

import pytest

from omnisearch.models.context import PermissionContext
from omnisearch.models.query import SearchOptions
from omnisearch.providers.pages.provider import PagesSearchProvider
from omnisearch.providers.posts.provider import PostsSearchProvider
from omnisearch.providers.products.provider import ProductsSearchProvider
from omnisearch.providers.users.provider import UsersSearchProvider

# ══════════════════════════════════════════════════════════════════════════════
# Products
# ══════════════════════════════════════════════════════════════════════════════


class TestProductsProvider:
    @pytest.fixture
    def provider(self, product_records: list[dict[str, Any]]) -> ProductsSearchProvider:
        return ProductsSearchProvider(product_records)

    def test_identity(self, provider: ProductsSearchProvider) -> None:
        assert provider.entity_type == "products"
        assert provider.required_permission == "products:read"

    def test_permission_override(self, product_records: list[dict[str, Any]]) -> None:
        provider = ProductsSearchProvider(product_records, required_permission="catalog:read")
        assert provider.required_permission == "catalog:read"
        assert provider.descriptor().required_permission == "catalog:read"

    async def test_exact_title_match(self, provider: ProductsSearchProvider, user_ctx: PermissionContext) -> None:
        results = await provider.search(user_ctx, "Test Search Product", SearchOptions())
        assert len(results) == 1
        item = results[0]
        assert item.id == "product-1"
        assert item.title == "Test Search Product"
        assert item.relevance_score == 100
        assert item.url == "/dashboard/products/product-1"
        assert item.description == "Test description - $99.99"
        assert item.metadata["price"] == 99.99
        assert item.metadata["sku"] == "TSP-001"
        assert item.metadata["status"] == "PUBLISHED"

    async def test_non_admin_sees_only_published(
        self, provider: ProductsSearchProvider, user_ctx: PermissionContext
    ) -> None:
        results = await provider.search(user_ctx, "search", SearchOptions())
        assert [r.id for r in results] == ["product-1"]
        assert all(r.metadata["status"] == "PUBLISHED" for r in results)
        assert await provider.count(user_ctx, "search") == 1

    async def test_admin_sees_every_status(
        self, provider: ProductsSearchProvider, admin_ctx: PermissionContext
    ) -> None:
        results = await provider.search(admin_ctx, "search", SearchOptions())
        assert [r.id for r in results] == ["product-1", "product-2", "product-3"]
        assert [r.relevance_score for r in results] == [50, 50, 20]
        assert await provider.count(admin_ctx, "search") == 3

    async def test_sku_match(self, provider: ProductsSearchProvider, admin_ctx: PermissionContext) -> None:
        results = await provider.search(admin_ctx, "dsw-002", SearchOptions())
        assert [r.id for r in results] == ["product-2"]
        assert results[0].relevance_score == 90

    async def test_long_description_truncated(self, admin_ctx: PermissionContext) -> None:
        provider = ProductsSearchProvider(
            [{"id": "p", "title": "Long", "description": "x" * 300, "price": 1, "status": "PUBLISHED"}]
        )
        [item] = await provider.search(admin_ctx, "long", SearchOptions())
        assert len(item.description) <= 153
        assert item.description.endswith("...")

    async def test_non_numeric_price_skips_only_the_price(self, admin_ctx: PermissionContext) -> None:
        provider = ProductsSearchProvider(
            [
                {"id": "bad", "title": "Lamp one", "description": "Desk lamp", "price": "n/a", "status": "PUBLISHED"},
                {"id": "good", "title": "Lamp two", "price": 12, "status": "PUBLISHED"},
            ]
        )
        results = await provider.search(admin_ctx, "lamp", SearchOptions())

        by_id = {r.id: r for r in results}
        assert by_id["bad"].description == "Desk lamp"
        assert by_id["bad"].metadata["price"] == "n/a"
        assert by_id["good"].description == "$12.00"


# ══════════════════════════════════════════════════════════════════════════════
# Posts
# ══════════════════════════════════════════════════════════════════════════════


class TestPostsProvider:
    @pytest.fixture
    def provider(self, post_records: list[dict[str, Any]]) -> PostsSearchProvider:
        return PostsSearchProvider(post_records)

    def test_identity(self, provider: PostsSearchProvider) -> None:
        assert provider.entity_type == "posts"
        assert provider.required_permission == "blog:read"

    async def test_author_sees_own_drafts(self, provider: PostsSearchProvider, user_ctx: PermissionContext) -> None:
        results = await provider.search(user_ctx, "search", SearchOptions())
        assert [r.id for r in results] == ["post-1", "post-2"]
        assert await provider.count(user_ctx, "search") == 2

    async def test_admin_sees_all_drafts(self, provider: PostsSearchProvider, admin_ctx: PermissionContext) -> None:
        assert await provider.count(admin_ctx, "search") == 3

    async def test_formatting(self, provider: PostsSearchProvider, user_ctx: PermissionContext) -> None:
        results = await provider.search(user_ctx, "search", SearchOptions())
        published, draft = results
        assert published.url == "/dashboard/blog/post-1"
        assert published.relevance_score == 75 + 40
        assert published.metadata["date"] == "2024-06-01T09:00:00Z"
        assert draft.description == "A draft about search"
        assert draft.metadata["date"] is None


# ══════════════════════════════════════════════════════════════════════════════
# Pages
# ══════════════════════════════════════════════════════════════════════════════


class TestPagesProvider:
    @pytest.fixture
    def provider(self, page_records: list[dict[str, Any]]) -> PagesSearchProvider:
        return PagesSearchProvider(page_records)

    async def test_non_admin_sees_only_published(
        self, provider: PagesSearchProvider, user_ctx: PermissionContext
    ) -> None:
        results = await provider.search(user_ctx, "search", SearchOptions())
        assert [r.id for r in results] == ["page-1"]
        assert results[0].relevance_score == 75 + 25
        assert results[0].url == "/dashboard/pages/page-1"
        assert results[0].description == "How the dashboard search works"

    async def test_admin_sees_drafts(self, provider: PagesSearchProvider, admin_ctx: PermissionContext) -> None:
        assert await provider.count(admin_ctx, "search") == 2


# ══════════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════════


class TestUsersProvider:
    @pytest.fixture
    def provider(self, user_records: list[dict[str, Any]]) -> UsersSearchProvider:
        return UsersSearchProvider(user_records)

    def test_identity(self, provider: UsersSearchProvider) -> None:
        assert provider.entity_type == "users"
        assert provider.required_permission == "users:read"

    async def test_non_admin_only_finds_self(self, provider: UsersSearchProvider, user_ctx: PermissionContext) -> None:
        results = await provider.search(user_ctx, "example.com", SearchOptions())
        assert [r.id for r in results] == ["user-2"]
        assert await provider.count(user_ctx, "example.com") == 1

    async def test_admin_finds_everyone(self, provider: UsersSearchProvider, admin_ctx: PermissionContext) -> None:
        assert await provider.count(admin_ctx, "example.com") == 3

    async def test_name_and_email_scored(self, provider: UsersSearchProvider, admin_ctx: PermissionContext) -> None:
        [item] = await provider.search(admin_ctx, "dana", SearchOptions())
        assert item.title == "Dana Searcher"
        assert item.relevance_score == 75 + 40
        assert item.description == "dana@example.com - USER"
        assert item.metadata["status"] == "Active"

    async def test_title_falls_back_to_email(
        self, provider: UsersSearchProvider, admin_ctx: PermissionContext
    ) -> None:
        [item] = await provider.search(admin_ctx, "sam@", SearchOptions())
        assert item.title == "sam@example.com"
        assert item.metadata["status"] == "Inactive"
        assert item.url == "/dashboard/users/user-3"
