"""Base interface for video generation providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from reelgen.domain.models import Job


@dataclass
class VideoGenRequest:
    """Request for video generation."""

    prompt: str
    width: int = 1080
    height: int = 1920
    num_frames: int = 150
    fps: int = 30


class VideoGenProvider(ABC):
    """Abstract base class for video generation providers.

    Implementations:
    - ReplicateProvider: Replicate predictions API (luma/ray)
    - StubVideoGenProvider: In-memory jobs for tests and local development
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def submit(self, request: VideoGenRequest) -> Job:
        """Submit a generation job and return immediately.

        Args:
            request: Video generation request with prompt and parameters

        Returns:
            Job carrying the provider's opaque identifier and initial status

        Raises:
            UpstreamError: If the provider rejects the request
        """
        ...

    @abstractmethod
    async def get_job(self, job_id: str) -> Job:
        """Fetch the current state of a job.

        Args:
            job_id: The identifier returned from submit()

        Returns:
            Job with normalized status, output URL or error message
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy."""
        return True
