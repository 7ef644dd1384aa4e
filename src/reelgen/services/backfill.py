"""Batch reprocessing of stored video records."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from reelgen.db.models import VideoModel
from reelgen.errors import RateLimitedError
from reelgen.logging import get_logger
from reelgen.services.processor import VideoProcessor
from reelgen.services.records import VideoRepository

logger = get_logger(__name__)


@dataclass
class BackfillReport:
    """Outcome counts for one backfill run."""

    total: int = 0
    processed: int = 0
    failed: int = 0
    failed_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "processed": self.processed,
            "failed": self.failed,
            "failed_ids": self.failed_ids,
        }


class BackfillService:
    """Fills in missing assets and metadata for existing videos.

    Videos are handled in fixed-size batches; a batch runs concurrently and
    is followed by a fixed pause. A provider rate limit on one video backs
    that video off exponentially (``Retry-After`` wins when present) instead
    of failing it outright.
    """

    def __init__(
        self,
        records: VideoRepository,
        processor: VideoProcessor,
        batch_size: int = 3,
        batch_delay_seconds: float = 5.0,
        max_retries: int = 3,
        backoff_base_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.records = records
        self.processor = processor
        self.batch_size = max(1, batch_size)
        self.batch_delay_seconds = batch_delay_seconds
        self.max_retries = max_retries
        self.backoff_base_seconds = backoff_base_seconds
        self.sleep = sleep

    async def run(self, limit: int | None = None, force: bool = False) -> BackfillReport:
        videos = self.records.list_needing_processing(limit=limit)
        report = BackfillReport(total=len(videos))
        logger.info("backfill_started", total=report.total, batch_size=self.batch_size)

        batches = [videos[i : i + self.batch_size] for i in range(0, len(videos), self.batch_size)]
        for index, batch in enumerate(batches, start=1):
            logger.info("backfill_batch_started", batch=index, of=len(batches), size=len(batch))
            # The shared DB session is only touched between awaits, one statement at a time.
            outcomes = await asyncio.gather(
                *(self._process_with_backoff(video, force) for video in batch),
                return_exceptions=True,
            )
            for video, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    report.failed += 1
                    report.failed_ids.append(video.id)
                    logger.error("backfill_video_failed", video_id=video.id, error=str(outcome))
                else:
                    report.processed += 1

            if index < len(batches):
                await self.sleep(self.batch_delay_seconds)

        logger.info("backfill_completed", **report.to_dict())
        return report

    async def _process_with_backoff(self, video: VideoModel, force: bool) -> VideoModel:
        attempt = 0
        while True:
            try:
                return await self.processor.process(video, force=force)
            except RateLimitedError as e:
                if attempt >= self.max_retries:
                    raise
                delay = e.retry_after or self.backoff_base_seconds * (2**attempt)
                attempt += 1
                logger.warning(
                    "backfill_rate_limited",
                    video_id=video.id,
                    attempt=attempt,
                    delay=delay,
                    provider=e.provider,
                )
                await self.sleep(delay)
