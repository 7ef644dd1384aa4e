"""Celery job definitions."""

from reelgen.jobs.tasks import backfill_videos_task, process_video_task

__all__ = ["backfill_videos_task", "process_video_task"]
