"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass, field
from typing import Any

from reelgen.domain.enums import AssetKind, JobStatus, ProcessingState


@dataclass(frozen=True)
class Caller:
    """An authenticated API caller."""

    user_id: str = "anonymous"


@dataclass
class Job:
    """A generation job as reported by the provider. Never written locally."""

    id: str
    status: JobStatus
    prompt: str | None = None
    output: str | None = None
    error: str | None = None
    raw_status: str | None = None

    @property
    def progress(self) -> float:
        return self.status.progress


@dataclass
class SubmissionResult:
    """Outcome of a submission: either an accepted job or a moderated prompt."""

    moderated: bool = False
    job: Job | None = None
    video_id: str | None = None


@dataclass
class GuardDecision:
    """Outcome of an admission guard check."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "GuardDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "GuardDecision":
        return cls(allowed=False, reason=reason)


@dataclass
class AssetResult:
    """Outcome of a single asset pipeline step."""

    kind: AssetKind
    success: bool
    url: str | None = None
    storage_path: str | None = None
    error: str | None = None
    extra_paths: list[str] = field(default_factory=list)


@dataclass
class AssetBundle:
    """Per-asset outcomes for one processed video."""

    video_id: str
    results: dict[AssetKind, AssetResult] = field(default_factory=dict)

    def url(self, kind: AssetKind) -> str | None:
        result = self.results.get(kind)
        return result.url if result and result.success else None

    @property
    def failures(self) -> dict[AssetKind, str]:
        return {
            kind: result.error or "unknown error"
            for kind, result in self.results.items()
            if not result.success
        }

    @property
    def state(self) -> ProcessingState:
        succeeded = [r for r in self.results.values() if r.success]
        if self.results and len(succeeded) == len(self.results):
            return ProcessingState.COMPLETE
        if succeeded:
            return ProcessingState.PARTIAL
        return ProcessingState.FAILED

    def error_summary(self) -> str | None:
        failures = self.failures
        if not failures:
            return None
        return "; ".join(f"{kind}: {error}" for kind, error in failures.items())


@dataclass
class VideoMetadata:
    """Validated LLM metadata. Description and tags always travel together."""

    description: str
    tags: list[str]
    title: str | None = None


@dataclass
class StatusReport:
    """Status of a job plus whatever post-processing produced."""

    job: Job
    video_id: str | None = None
    video_url: str | None = None
    thumbnail_url: str | None = None
    preview_url: str | None = None
    hls_url: str | None = None
    processing: ProcessingState | None = None
    processing_error: str | None = None

    def to_response(self) -> dict[str, Any]:
        """Render the camelCase JSON body returned to app clients."""
        body: dict[str, Any] = {
            "success": True,
            "status": self.job.status.value,
            "progress": self.job.progress,
        }
        if self.job.output is not None:
            body["output"] = self.job.output
        if self.job.error is not None:
            body["error"] = self.job.error
        if self.video_id is not None:
            body["videoId"] = self.video_id
        for key, value in (
            ("videoUrl", self.video_url),
            ("thumbnailUrl", self.thumbnail_url),
            ("previewUrl", self.preview_url),
            ("hlsUrl", self.hls_url),
        ):
            if value:
                body[key] = value
        if self.processing is not None:
            body["processing"] = self.processing.value
        if self.processing_error:
            body["processingError"] = self.processing_error
        return body
