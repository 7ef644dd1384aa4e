"""Post-generation processing: assets, then metadata, then one record write."""

from reelgen.db.models import VideoModel
from reelgen.domain.enums import AssetKind, ProcessingState
from reelgen.domain.models import AssetBundle, AssetResult
from reelgen.errors import RateLimitedError
from reelgen.logging import get_logger
from reelgen.services.asset_pipeline import AssetPipeline
from reelgen.services.enricher import MetadataEnricher
from reelgen.services.records import RecordUpdater

logger = get_logger(__name__)

# Provider delivery URLs expire, so videos still pointing at one need a durable copy.
PROVIDER_DELIVERY_HOSTS = ("replicate.delivery", "replicate.com/api", "replicate-api")


def is_provider_url(url: str | None) -> bool:
    return bool(url) and any(host in url for host in PROVIDER_DELIVERY_HOSTS)


class VideoProcessor:
    """Runs the asset pipeline and the enricher for one video record.

    Stages run in order and all settle before the record updater writes
    anything.
    """

    def __init__(
        self,
        pipeline: AssetPipeline,
        enricher: MetadataEnricher,
        updater: RecordUpdater,
    ) -> None:
        self.pipeline = pipeline
        self.enricher = enricher
        self.updater = updater

    @staticmethod
    def pending_kinds(video: VideoModel, force: bool = False) -> tuple[AssetKind, ...]:
        if force:
            return tuple(AssetKind)
        kinds = []
        if not video.url or is_provider_url(video.url):
            kinds.append(AssetKind.SOURCE)
        if not video.thumbnail_url:
            kinds.append(AssetKind.THUMBNAIL)
        if not video.preview_url:
            kinds.append(AssetKind.PREVIEW)
        if not video.hls_url:
            kinds.append(AssetKind.HLS)
        return tuple(kinds)

    async def process(
        self,
        video: VideoModel,
        source_url: str | None = None,
        force: bool = False,
    ) -> VideoModel:
        source_url = source_url or video.url
        kinds = self.pending_kinds(video, force=force)

        bundle: AssetBundle | None = None
        if kinds and source_url:
            bundle = await self.pipeline.process(video.id, source_url, kinds)
        elif kinds:
            bundle = AssetBundle(
                video_id=video.id,
                results={
                    kind: AssetResult(kind=kind, success=False, error="No source video URL")
                    for kind in kinds
                },
            )

        metadata = None
        if force or not video.has_metadata:
            try:
                metadata = await self.enricher.enrich(
                    video.title or "Untitled Video",
                    is_ai_generated=video.is_ai_generated,
                )
            except RateLimitedError:
                # Keep the assets already produced; a retry only redoes metadata.
                if bundle is not None:
                    self.updater.apply(video, bundle=bundle, source_url=source_url)
                raise
            except Exception as e:
                logger.error("metadata_stage_failed", video_id=video.id, error=str(e))
                return self.updater.apply(
                    video,
                    bundle=bundle,
                    source_url=source_url,
                    failure=f"Metadata enrichment failed: {e}",
                )

        if bundle is None and not video.missing_assets and video.processing_state == ProcessingState.PENDING:
            video.processing_state = ProcessingState.COMPLETE.value
        video = self.updater.apply(video, bundle=bundle, metadata=metadata, source_url=source_url)

        logger.info(
            "video_processed",
            video_id=video.id,
            processing=video.processing_state,
            metadata=metadata is not None,
        )
        return video
