"""Video record persistence and the record updater."""

from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from reelgen.db.models import VideoModel
from reelgen.domain.enums import AssetKind, ProcessingState
from reelgen.domain.models import AssetBundle, Caller, Job, VideoMetadata
from reelgen.logging import get_logger

logger = get_logger(__name__)

_ASSET_COLUMNS: dict[AssetKind, str] = {
    AssetKind.SOURCE: "url",
    AssetKind.THUMBNAIL: "thumbnail_url",
    AssetKind.PREVIEW: "preview_url",
    AssetKind.HLS: "hls_url",
}


class VideoRepository:
    """Reads and creates video records."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, video_id: str) -> VideoModel | None:
        return self.session.get(VideoModel, video_id)

    def get_by_job(self, job_id: str) -> VideoModel | None:
        return self.session.scalars(select(VideoModel).where(VideoModel.job_id == job_id)).first()

    def create_for_job(self, job: Job, caller: Caller | None = None) -> VideoModel:
        """Create the record for a newly accepted (or first-seen) generation job."""
        prompt = job.prompt or ""
        video = VideoModel(
            job_id=job.id,
            user_id=caller.user_id if caller else None,
            prompt=job.prompt,
            title=prompt[:255] or "Untitled Video",
            is_ai_generated=True,
            processing_state=ProcessingState.PENDING.value,
        )
        self.session.add(video)
        self.session.commit()
        logger.info("video_record_created", video_id=video.id, job_id=job.id)
        return video

    def list_needing_processing(self, limit: int | None = None) -> list[VideoModel]:
        """Records with a source URL that lack an asset or metadata."""
        stmt = (
            select(VideoModel)
            .where(VideoModel.url.is_not(None))
            .where(
                or_(
                    VideoModel.thumbnail_url.is_(None),
                    VideoModel.preview_url.is_(None),
                    VideoModel.hls_url.is_(None),
                    VideoModel.description.is_(None),
                    VideoModel.tags.is_(None),
                )
            )
            .order_by(VideoModel.created_at)
        )
        if limit:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt))


class RecordUpdater:
    """Merges pipeline and enrichment output into a video record.

    The write happens once, after every stage has settled, in a single
    commit. Only produced asset URLs are written. Description and tags come
    from one validated metadata result and are written together or not at
    all. ``processing_state`` moves off ``pending`` on that write, and readers
    use it to hide records that are still being processed.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def apply(
        self,
        video: VideoModel,
        bundle: AssetBundle | None = None,
        metadata: VideoMetadata | None = None,
        source_url: str | None = None,
        failure: str | None = None,
    ) -> VideoModel:
        written: list[str] = []

        if source_url and not video.url:
            video.url = source_url
            written.append("url")

        if bundle is not None:
            for kind, column in _ASSET_COLUMNS.items():
                url = bundle.url(kind)
                if url:
                    setattr(video, column, url)
                    written.append(column)
            video.processing_state = self._settled_state(video, bundle).value
            video.processing_error = bundle.error_summary()

        if failure is not None:
            video.processing_state = ProcessingState.FAILED.value
            video.processing_error = "; ".join(filter(None, [video.processing_error, failure]))

        if metadata is not None:
            video.description = metadata.description
            video.tags = list(metadata.tags)
            written.extend(["description", "tags"])
            if video.is_ai_generated and metadata.title:
                video.title = metadata.title[:255]
                written.append("title")

        video.updated_at = datetime.now(timezone.utc)
        self.session.add(video)
        self.session.commit()

        logger.info(
            "video_record_updated",
            video_id=video.id,
            fields=written,
            processing=video.processing_state,
        )
        return video

    @staticmethod
    def _settled_state(video: VideoModel, bundle: AssetBundle) -> ProcessingState:
        """State over the whole record, so a backfill of one asset can complete it."""
        derived = [video.thumbnail_url, video.preview_url, video.hls_url]
        if all(derived) and not bundle.failures:
            return ProcessingState.COMPLETE
        if any(derived):
            return ProcessingState.PARTIAL
        return ProcessingState.FAILED
