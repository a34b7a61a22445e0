"""Configuration layer."""

from omnisearch.config.settings import Settings

__all__ = ["Settings"]
