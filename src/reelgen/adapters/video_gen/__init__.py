"""Video generation adapters."""

from reelgen.adapters.video_gen.base import VideoGenProvider, VideoGenRequest
from reelgen.adapters.video_gen.replicate import ReplicateProvider
from reelgen.adapters.video_gen.stub import StubVideoGenProvider

__all__ = [
    "VideoGenProvider",
    "VideoGenRequest",
    "ReplicateProvider",
    "StubVideoGenProvider",
]
