"""reelgen - prompt-to-short-video orchestration service."""

__version__ = "0.1.0"
