"""OmniSearch — Federated search across permission-gated entity providers."""

__version__ = "0.1.0"
