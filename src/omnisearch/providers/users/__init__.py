"""Users search provider."""
