"""Shared data models for queries, results and caller identity."""
