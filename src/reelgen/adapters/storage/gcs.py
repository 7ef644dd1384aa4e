"""Google Cloud Storage backend (Firebase Storage buckets are GCS buckets)."""

import asyncio
from datetime import datetime
from pathlib import Path

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from reelgen.adapters.storage.base import ObjectStorage, guess_content_type
from reelgen.errors import UpstreamError
from reelgen.logging import get_logger

logger = get_logger(__name__)


class GCSStorage(ObjectStorage):
    """Stores assets in a GCS bucket and hands out signed read URLs.

    The google-cloud-storage client is synchronous, so blocking calls run in
    the default executor.
    """

    def __init__(
        self,
        bucket_name: str,
        url_expiry: datetime,
        credentials_path: str | None = None,
        client: storage.Client | None = None,
    ) -> None:
        if client is None:
            client = (
                storage.Client.from_service_account_json(credentials_path)
                if credentials_path
                else storage.Client()
            )
        self.client = client
        self.bucket = client.bucket(bucket_name)
        self.url_expiry = url_expiry

    @property
    def name(self) -> str:
        return "gcs"

    async def upload_file(
        self,
        local_path: Path,
        destination: str,
        content_type: str | None = None,
    ) -> str:
        content_type = content_type or guess_content_type(local_path)
        try:
            return await asyncio.to_thread(self._upload_sync, local_path, destination, content_type)
        except gcs_exceptions.GoogleAPIError as e:
            logger.error("gcs_upload_failed", destination=destination, error=str(e))
            raise UpstreamError(f"Storage upload failed for {destination}: {e}", provider="gcs") from e

    def _upload_sync(self, local_path: Path, destination: str, content_type: str) -> str:
        blob = self.bucket.blob(destination)
        blob.upload_from_filename(str(local_path), content_type=content_type)
        # v2 signing allows expiries far beyond v4's seven-day ceiling.
        url = blob.generate_signed_url(expiration=self.url_expiry, method="GET", version="v2")
        logger.debug("gcs_upload_completed", destination=destination, size=local_path.stat().st_size)
        return url

    async def delete(self, destination: str) -> bool:
        try:
            await asyncio.to_thread(self.bucket.blob(destination).delete)
            return True
        except gcs_exceptions.NotFound:
            return False

    async def health_check(self) -> bool:
        try:
            return await asyncio.to_thread(self.bucket.exists)
        except gcs_exceptions.GoogleAPIError as e:
            logger.error("gcs_health_check_failed", error=str(e))
            return False
