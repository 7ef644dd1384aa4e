"""Adapters for external providers."""
