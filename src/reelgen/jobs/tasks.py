"""Celery tasks for reprocessing stored videos."""

import asyncio
from typing import Any

import httpx

from reelgen.config import get_settings
from reelgen.db.session import get_session_context
from reelgen.errors import UpstreamError
from reelgen.logging import bound_context, get_logger
from reelgen.services.backfill import BackfillService
from reelgen.services.providers import build_llm_provider, build_processor, build_storage
from reelgen.services.records import VideoRepository
from reelgen.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(
    bind=True,
    name="videos.process_video",
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(httpx.RequestError, httpx.TimeoutException, UpstreamError),
    retry_backoff=True,
    retry_backoff_max=600,
)
def process_video_task(self: Any, video_id: str, force: bool = False) -> dict[str, Any]:
    """Reprocess one video: missing (or, with ``force``, all) assets and metadata.

    Args:
        video_id: Video record ID
        force: Regenerate everything, not just what is missing

    Returns:
        Dict with the resulting processing state
    """
    task_id = self.request.id
    logger.info("process_video_started", task_id=task_id, video_id=video_id, force=force)
    settings = get_settings()

    with bound_context(task_id=task_id, video_id=video_id), get_session_context() as session:
        video = VideoRepository(session).get(video_id)
        if video is None:
            return {"success": False, "error": f"Video not found: {video_id}"}
        if not video.url:
            return {"success": False, "error": f"Video {video_id} has no source URL"}

        processor = build_processor(
            session,
            settings,
            storage=build_storage(settings),
            llm=build_llm_provider(settings),
        )
        video = asyncio.run(processor.process(video, force=force))

        logger.info(
            "process_video_completed",
            task_id=task_id,
            video_id=video_id,
            processing=video.processing_state,
        )
        return {
            "success": True,
            "video_id": video_id,
            "processing": video.processing_state,
            "processing_error": video.processing_error,
        }


@celery_app.task(
    bind=True,
    name="videos.backfill",
    max_retries=2,
    default_retry_delay=300,
    autoretry_for=(httpx.RequestError, httpx.TimeoutException),
    retry_backoff=True,
)
def backfill_videos_task(
    self: Any,
    limit: int | None = None,
    force: bool = False,
) -> dict[str, Any]:
    """Fill in missing assets and metadata across stored videos, in batches."""
    task_id = self.request.id
    settings = get_settings()
    logger.info("backfill_task_started", task_id=task_id, limit=limit, force=force)

    with bound_context(task_id=task_id), get_session_context() as session:
        processor = build_processor(
            session,
            settings,
            storage=build_storage(settings),
            llm=build_llm_provider(settings),
            propagate_rate_limits=True,
        )
        service = BackfillService(
            records=VideoRepository(session),
            processor=processor,
            batch_size=settings.backfill_batch_size,
            batch_delay_seconds=settings.backfill_batch_delay_seconds,
            max_retries=settings.backfill_max_retries,
            backoff_base_seconds=settings.backfill_backoff_base_seconds,
        )
        report = asyncio.run(service.run(limit=limit, force=force))

    return {"success": report.failed == 0, "task_id": task_id, **report.to_dict()}
