"""CMS pages search provider."""
