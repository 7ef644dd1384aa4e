"""API route modules."""

from reelgen.api.routes import generation, health, metadata

__all__ = ["generation", "health", "metadata"]
