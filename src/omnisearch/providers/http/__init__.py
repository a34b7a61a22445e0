"""Remote HTTP search provider."""
