"""Products search provider."""
