"""Local-disk storage backend."""

import asyncio
import shutil
from pathlib import Path

from reelgen.adapters.storage.base import ObjectStorage
from reelgen.logging import get_logger

logger = get_logger(__name__)


class LocalStorage(ObjectStorage):
    """Stores assets under a base directory.

    URLs are ``{base_url}/{destination}`` when a base URL is configured
    (e.g. a static file server in front of the directory), otherwise
    ``file://`` URLs.
    """

    def __init__(self, base_path: Path | None = None, base_url: str | None = None) -> None:
        self.base_path = base_path or Path("./storage")
        self.base_url = base_url.rstrip("/") if base_url else None
        self.base_path.mkdir(parents=True, exist_ok=True)

    @property
    def name(self) -> str:
        return "local"

    def path_for(self, destination: str) -> Path:
        path = (self.base_path / destination).resolve()
        if not path.is_relative_to(self.base_path.resolve()):
            raise ValueError(f"Destination escapes storage root: {destination}")
        return path

    def url_for(self, destination: str) -> str:
        if self.base_url:
            return f"{self.base_url}/{destination}"
        return self.path_for(destination).as_uri()

    async def upload_file(
        self,
        local_path: Path,
        destination: str,
        content_type: str | None = None,  # noqa: ARG002
    ) -> str:
        target = self.path_for(destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(shutil.copyfile, local_path, target)
        logger.debug("local_storage_stored", destination=destination, path=str(target))
        return self.url_for(destination)

    async def delete(self, destination: str) -> bool:
        target = self.path_for(destination)
        if not target.exists():
            return False
        target.unlink()
        return True
