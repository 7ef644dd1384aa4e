"""Base interface for object storage backends."""

from abc import ABC, abstractmethod
from pathlib import Path

CONTENT_TYPES: dict[str, str] = {
    ".mp4": "video/mp4",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".m3u8": "application/x-mpegURL",
    ".ts": "video/MP2T",
}


def guess_content_type(path: str | Path) -> str:
    """Guess MIME type from a file extension."""
    return CONTENT_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


class ObjectStorage(ABC):
    """Durable object storage for generated assets.

    Implementations:
    - GCSStorage: Google Cloud Storage / Firebase Storage bucket
    - LocalStorage: Directory on local disk, for development and tests
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name identifier."""
        ...

    @abstractmethod
    async def upload_file(
        self,
        local_path: Path,
        destination: str,
        content_type: str | None = None,
    ) -> str:
        """Upload a local file and return a long-lived read URL for it.

        Args:
            local_path: File to upload
            destination: Object path inside the bucket
            content_type: MIME type; guessed from the extension when omitted

        Returns:
            Read URL for the uploaded object
        """
        ...

    @abstractmethod
    async def delete(self, destination: str) -> bool:
        """Delete an object. Returns False if it did not exist."""
        ...

    async def health_check(self) -> bool:
        return True
