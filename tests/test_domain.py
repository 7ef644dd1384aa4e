"""Tests for domain models and enums."""

import pytest

from reelgen.domain.enums import AssetKind, JobStatus, ProcessingState
from reelgen.domain.models import AssetBundle, AssetResult, Job, StatusReport


class TestJobStatus:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("starting", JobStatus.STARTING),
            ("processing", JobStatus.PROCESSING),
            ("succeeded", JobStatus.SUCCEEDED),
            ("failed", JobStatus.FAILED),
            ("canceled", JobStatus.FAILED),
            ("SUCCEEDED", JobStatus.SUCCEEDED),
            ("queued", JobStatus.PROCESSING),
            (None, JobStatus.PROCESSING),
        ],
    )
    def test_from_provider(self, raw: str | None, expected: JobStatus) -> None:
        assert JobStatus.from_provider(raw) is expected

    def test_progress_labels(self) -> None:
        assert JobStatus.STARTING.progress == 0.1
        assert JobStatus.PROCESSING.progress == 0.5
        assert JobStatus.SUCCEEDED.progress == 1.0
        assert JobStatus.FAILED.progress == 0.0

    def test_terminal_states(self) -> None:
        assert JobStatus.SUCCEEDED.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert not JobStatus.PROCESSING.is_terminal


def test_storage_paths_are_deterministic() -> None:
    assert AssetKind.SOURCE.storage_path("v1") == "videos/v1.mp4"
    assert AssetKind.THUMBNAIL.storage_path("v1") == "thumbnails/v1.jpg"
    assert AssetKind.PREVIEW.storage_path("v1") == "previews/v1.mp4"
    assert AssetKind.HLS.storage_path("v1") == "videos/v1/hls/playlist.m3u8"


class TestAssetBundle:
    def _bundle(self, **outcomes: bool) -> AssetBundle:
        bundle = AssetBundle(video_id="v1")
        for name, ok in outcomes.items():
            kind = AssetKind(name)
            bundle.results[kind] = AssetResult(
                kind=kind,
                success=ok,
                url=f"https://cdn.test/{name}" if ok else None,
                error=None if ok else f"{name} broke",
            )
        return bundle

    def test_all_succeeded(self) -> None:
        bundle = self._bundle(thumbnail=True, preview=True, hls=True)
        assert bundle.state is ProcessingState.COMPLETE
        assert bundle.error_summary() is None

    def test_some_failed(self) -> None:
        bundle = self._bundle(thumbnail=True, preview=False, hls=True)
        assert bundle.state is ProcessingState.PARTIAL
        assert bundle.url(AssetKind.PREVIEW) is None
        assert bundle.failures == {AssetKind.PREVIEW: "preview broke"}
        assert bundle.error_summary() == "preview: preview broke"

    def test_none_succeeded(self) -> None:
        bundle = self._bundle(thumbnail=False, hls=False)
        assert bundle.state is ProcessingState.FAILED


class TestStatusReport:
    def test_in_flight_response_is_minimal(self) -> None:
        report = StatusReport(job=Job(id="p1", status=JobStatus.PROCESSING))
        assert report.to_response() == {"success": True, "status": "processing", "progress": 0.5}

    def test_succeeded_response_includes_assets(self) -> None:
        report = StatusReport(
            job=Job(id="p1", status=JobStatus.SUCCEEDED, output="https://replicate.delivery/x.mp4"),
            video_id="v1",
            video_url="https://cdn.test/videos/v1.mp4",
            thumbnail_url="https://cdn.test/thumbnails/v1.jpg",
            hls_url="https://cdn.test/videos/v1/hls/playlist.m3u8",
            processing=ProcessingState.PARTIAL,
            processing_error="preview: ffmpeg exited with code 1",
        )
        body = report.to_response()

        assert body["status"] == "succeeded"
        assert body["progress"] == 1.0
        assert body["videoId"] == "v1"
        assert body["thumbnailUrl"] == "https://cdn.test/thumbnails/v1.jpg"
        assert "previewUrl" not in body
        assert body["processing"] == "partial"
        assert body["processingError"].startswith("preview:")

    def test_failed_response_carries_error(self) -> None:
        report = StatusReport(job=Job(id="p1", status=JobStatus.FAILED, error="NSFW detected"))
        body = report.to_response()
        assert body["status"] == "failed"
        assert body["progress"] == 0.0
        assert body["error"] == "NSFW detected"
