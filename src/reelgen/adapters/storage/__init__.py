"""Object storage adapters."""

from reelgen.adapters.storage.base import ObjectStorage, guess_content_type
from reelgen.adapters.storage.local import LocalStorage

__all__ = [
    "ObjectStorage",
    "LocalStorage",
    "guess_content_type",
]
