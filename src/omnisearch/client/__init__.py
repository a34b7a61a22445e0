"""OmniSearch Python SDK — Client library for the OmniSearch API.

Provides both async and sync clients for interacting with an OmniSearch server.

Quick start::

    from omnisearch.client import OmniSearchClient

    client = OmniSearchClient("http://localhost:8080", user_id="u-1", permissions=["products:read"])

    page = client.search("widget", entity_types=["products"], sort_by="name")
    hits = client.quick_search("widget")
"""

from omnisearch.client.client import AsyncOmniSearchClient, OmniSearchClient

__all__ = ["AsyncOmniSearchClient", "OmniSearchClient"]
