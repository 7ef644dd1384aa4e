"""Replicate video generation provider."""

from typing import Any

import httpx

from reelgen.adapters.video_gen.base import VideoGenProvider, VideoGenRequest
from reelgen.domain.enums import JobStatus
from reelgen.domain.models import Job
from reelgen.errors import NotFoundError, RateLimitedError, UpstreamError
from reelgen.logging import get_logger

logger = get_logger(__name__)


class ReplicateProvider(VideoGenProvider):
    """Replicate predictions API provider.

    Submission creates a prediction against an official model and returns at
    once; status is read back with ``GET /predictions/{id}``. Waiting for
    completion is the caller's job (clients poll the status endpoint).
    """

    def __init__(
        self,
        api_token: str,
        model: str = "luma/ray",
        base_url: str = "https://api.replicate.com/v1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_token = api_token
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "replicate"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.api_token}",
                "Content-Type": "application/json",
            },
        )

    async def submit(self, request: VideoGenRequest) -> Job:
        """Create a prediction without waiting for it."""
        payload = {
            "input": {
                "prompt": request.prompt,
                "width": request.width,
                "height": request.height,
                "num_frames": request.num_frames,
                "fps": request.fps,
            }
        }

        logger.info(
            "replicate_submit_started",
            model=self.model,
            prompt_length=len(request.prompt),
        )

        data = await self._request("POST", f"/models/{self.model}/predictions", json=payload)
        job = self._to_job(data, prompt=request.prompt)
        if not job.id:
            raise UpstreamError("No prediction ID returned from Replicate", provider=self.name)

        logger.info("replicate_prediction_created", prediction_id=job.id, status=job.raw_status)
        return job

    async def get_job(self, job_id: str) -> Job:
        data = await self._request("GET", f"/predictions/{job_id}")
        job = self._to_job(data)
        logger.debug("replicate_poll_status", prediction_id=job_id, status=job.raw_status)
        return job

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("replicate_request_failed", path=path, error=str(e))
            raise UpstreamError(f"Replicate request failed: {e}", provider=self.name) from e

        if response.status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("retry-after"))
            logger.warning("replicate_rate_limited", path=path, retry_after=retry_after)
            raise RateLimitedError(
                "Replicate rate limit exceeded",
                provider=self.name,
                retry_after=retry_after,
            )
        if response.status_code == 404:
            raise NotFoundError(f"Replicate resource not found: {path}")
        if response.is_error:
            detail = _error_detail(response)
            logger.error(
                "replicate_api_error",
                path=path,
                status_code=response.status_code,
                detail=detail,
            )
            raise UpstreamError(
                f"Replicate API error: {response.status_code} - {detail}",
                provider=self.name,
            )
        return response.json()

    @staticmethod
    def _to_job(data: dict[str, Any], prompt: str | None = None) -> Job:
        raw_status = data.get("status")
        status = JobStatus.from_provider(raw_status)
        output = _first_url(data.get("output")) if status is JobStatus.SUCCEEDED else None
        error = data.get("error")
        if status is JobStatus.FAILED and not error:
            error = f"Prediction {raw_status}"
        return Job(
            id=data.get("id", ""),
            status=status,
            prompt=prompt or (data.get("input") or {}).get("prompt"),
            output=output,
            error=str(error) if error and status is JobStatus.FAILED else None,
            raw_status=raw_status,
        )

    async def health_check(self) -> bool:
        """Check if the Replicate API is reachable with our token."""
        try:
            async with self._client() as client:
                response = await client.get(f"/models/{self.model}")
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("replicate_health_check_failed", error=str(e))
            return False


def _first_url(output: Any) -> str | None:
    """Replicate models return either a single URL or a list of URLs."""
    if isinstance(output, str):
        return output
    if isinstance(output, list):
        for item in output:
            if isinstance(item, str):
                return item
    return None


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("title") or body)
    return str(body)
