"""Blog posts search provider."""
