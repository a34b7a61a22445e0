"""In-memory record provider."""
