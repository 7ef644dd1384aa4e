"""Stub video generation provider for testing."""

from uuid import uuid4

from reelgen.adapters.video_gen.base import VideoGenProvider, VideoGenRequest
from reelgen.domain.enums import JobStatus
from reelgen.domain.models import Job
from reelgen.errors import NotFoundError
from reelgen.logging import get_logger

logger = get_logger(__name__)

STUB_OUTPUT_URL = "https://stub.reelgen.local/output/{job_id}.mp4"


class StubVideoGenProvider(VideoGenProvider):
    """Stub provider that keeps jobs in memory without external calls.

    Each status query advances a job one step along
    starting -> processing -> succeeded, unless ``auto_advance`` is off, in
    which case tests drive state with ``set_status``.
    """

    _ORDER = (JobStatus.STARTING, JobStatus.PROCESSING, JobStatus.SUCCEEDED)

    def __init__(self, auto_advance: bool = True) -> None:
        self.auto_advance = auto_advance
        self.jobs: dict[str, Job] = {}
        self.submitted: list[VideoGenRequest] = []

    @property
    def name(self) -> str:
        return "stub"

    async def submit(self, request: VideoGenRequest) -> Job:
        job_id = uuid4().hex
        self.submitted.append(request)
        job = Job(
            id=job_id,
            status=JobStatus.STARTING,
            prompt=request.prompt,
            raw_status="starting",
        )
        self.jobs[job_id] = job
        logger.info("stub_video_job_submitted", job_id=job_id, prompt=request.prompt[:100])
        return Job(**vars(job))

    async def get_job(self, job_id: str) -> Job:
        job = self.jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"Prediction not found: {job_id}")
        if self.auto_advance and not job.status.is_terminal:
            self.set_status(job_id, self._ORDER[self._ORDER.index(job.status) + 1])
        return Job(**vars(job))

    def set_status(self, job_id: str, status: JobStatus, error: str | None = None) -> None:
        job = self.jobs[job_id]
        job.status = status
        job.raw_status = status.value
        job.output = STUB_OUTPUT_URL.format(job_id=job_id) if status is JobStatus.SUCCEEDED else None
        job.error = (error or "Stub failure") if status is JobStatus.FAILED else None
