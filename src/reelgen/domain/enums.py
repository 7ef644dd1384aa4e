"""Domain enumerations."""

from enum import StrEnum


class JobStatus(StrEnum):
    """Normalized status of a generation job at the provider."""

    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @classmethod
    def from_provider(cls, raw: str | None) -> "JobStatus":
        """Map a provider state onto the normalized enum.

        Replicate reports ``canceled`` for jobs stopped at the provider; that is
        terminal and counts as a failure. Anything unrecognized is treated as
        still in flight.
        """
        value = (raw or "").lower()
        if value in ("failed", "canceled", "cancelled", "error"):
            return cls.FAILED
        if value in ("succeeded", "completed", "successful"):
            return cls.SUCCEEDED
        if value == "starting":
            return cls.STARTING
        return cls.PROCESSING

    @property
    def progress(self) -> float:
        """Coarse progress label; not derived from provider telemetry."""
        return _PROGRESS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


_PROGRESS: dict[JobStatus, float] = {
    JobStatus.STARTING: 0.1,
    JobStatus.PROCESSING: 0.5,
    JobStatus.SUCCEEDED: 1.0,
    JobStatus.FAILED: 0.0,
}


class ProcessingState(StrEnum):
    """Post-generation processing state of a video record."""

    PENDING = "pending"
    COMPLETE = "complete"  # every asset produced
    PARTIAL = "partial"  # some assets failed
    FAILED = "failed"  # no asset produced

    @property
    def is_settled(self) -> bool:
        return self is not ProcessingState.PENDING


class AssetKind(StrEnum):
    """Kinds of derived assets produced per video."""

    SOURCE = "source"
    THUMBNAIL = "thumbnail"
    PREVIEW = "preview"
    HLS = "hls"

    def storage_path(self, video_id: str) -> str:
        """Deterministic object path for this asset kind."""
        if self is AssetKind.SOURCE:
            return f"videos/{video_id}.mp4"
        if self is AssetKind.THUMBNAIL:
            return f"thumbnails/{video_id}.jpg"
        if self is AssetKind.PREVIEW:
            return f"previews/{video_id}.mp4"
        return f"videos/{video_id}/hls/playlist.m3u8"
