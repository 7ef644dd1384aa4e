"""Job status queries, with post-processing triggered on success."""

from reelgen.adapters.video_gen.base import VideoGenProvider
from reelgen.db.models import VideoModel
from reelgen.domain.enums import JobStatus, ProcessingState
from reelgen.domain.models import StatusReport
from reelgen.errors import ValidationError
from reelgen.logging import get_logger
from reelgen.services.processor import VideoProcessor
from reelgen.services.records import VideoRepository

logger = get_logger(__name__)


class StatusPoller:
    """Answers ``status(job_id)`` for polling clients.

    The first query that sees a succeeded job runs post-processing before
    returning. Generation status and processing status are reported
    separately: a job whose assets failed is still ``succeeded``, with
    ``processing`` set to ``failed`` or ``partial``.
    """

    def __init__(
        self,
        provider: VideoGenProvider,
        records: VideoRepository,
        processor: VideoProcessor,
    ) -> None:
        self.provider = provider
        self.records = records
        self.processor = processor

    async def status(self, job_id: str | None) -> StatusReport:
        if not job_id:
            raise ValidationError("Prediction ID is required")

        job = await self.provider.get_job(job_id)
        video = self.records.get_by_job(job_id)
        report = StatusReport(job=job, video_id=video.id if video else None)

        logger.info(
            "job_status_checked",
            job_id=job_id,
            status=job.status.value,
            provider_status=job.raw_status,
        )

        if job.status is not JobStatus.SUCCEEDED:
            return report

        if video is None:
            # Submitted by another deployment; adopt it.
            video = self.records.create_for_job(job)
            report.video_id = video.id

        if not ProcessingState(video.processing_state).is_settled:
            if not job.output:
                logger.error("job_succeeded_without_output", job_id=job_id)
            video = await self.processor.process(video, source_url=job.output)

        return self._with_assets(report, video)

    @staticmethod
    def _with_assets(report: StatusReport, video: VideoModel) -> StatusReport:
        report.video_url = video.url
        report.thumbnail_url = video.thumbnail_url
        report.preview_url = video.preview_url
        report.hls_url = video.hls_url
        report.processing = ProcessingState(video.processing_state)
        report.processing_error = video.processing_error
        return report
