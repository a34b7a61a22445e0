"""Search provider layer — One pluggable provider per searchable entity type.

Built-in providers:
  - products: catalog products (title, SKU, description)
  - posts: blog posts (title, slug, excerpt, body)
  - pages: CMS pages (title, slug, meta description, body)
  - users: dashboard users (name, email)
  - http: any entity type served by a remote search service

Implement ``SearchProvider`` to make your own entity type searchable.
"""
