"""Derives and stores the thumbnail, preview loop and HLS rendition of a video."""

import functools
import shutil
import tempfile
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx

from reelgen.adapters.storage.base import ObjectStorage, guess_content_type
from reelgen.config import Settings
from reelgen.domain.enums import AssetKind
from reelgen.domain.models import AssetBundle, AssetResult
from reelgen.logging import get_logger
from reelgen.utils.ffmpeg import HLS_PLAYLIST_NAME, hls_args, preview_args, run_ffmpeg
from reelgen.utils.frame_extraction import FFmpegRunner, extract_thumbnail

logger = get_logger(__name__)


class AssetPipeline:
    """Downloads a generated video and publishes its derived assets.

    Every step runs even if an earlier one failed, and each reports its own
    outcome in the returned bundle. The working directory (source copy,
    frame, preview, segments) is removed on every exit path.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        runner: FFmpegRunner | None = None,
        thumbnail_offset_seconds: float = 1.0,
        thumbnail_size: str = "1280x720",
        preview_duration_seconds: float = 3.0,
        preview_height: int = 480,
        preview_fps: int = 15,
        hls_segment_seconds: int = 10,
        download_timeout: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
        temp_root: Path | None = None,
    ) -> None:
        self.storage = storage
        self.runner = runner or run_ffmpeg
        self.thumbnail_offset_seconds = thumbnail_offset_seconds
        self.thumbnail_size = thumbnail_size
        self.preview_duration_seconds = preview_duration_seconds
        self.preview_height = preview_height
        self.preview_fps = preview_fps
        self.hls_segment_seconds = hls_segment_seconds
        self.download_timeout = download_timeout
        self._transport = transport
        self.temp_root = temp_root

    @classmethod
    def from_settings(cls, storage: ObjectStorage, settings: Settings) -> "AssetPipeline":
        return cls(
            storage=storage,
            runner=functools.partial(
                run_ffmpeg, ffmpeg_path=settings.ffmpeg_path, timeout=settings.ffmpeg_timeout
            ),
            thumbnail_offset_seconds=settings.thumbnail_offset_seconds,
            thumbnail_size=settings.thumbnail_size,
            preview_duration_seconds=settings.preview_duration_seconds,
            preview_height=settings.preview_height,
            preview_fps=settings.preview_fps,
            hls_segment_seconds=settings.hls_segment_seconds,
        )

    async def process(
        self,
        video_id: str,
        source_url: str,
        kinds: tuple[AssetKind, ...] = tuple(AssetKind),
    ) -> AssetBundle:
        """Run the requested steps for one video."""
        bundle = AssetBundle(video_id=video_id)
        workdir = Path(tempfile.mkdtemp(prefix=f"reelgen_{video_id}_", dir=self.temp_root))
        logger.info("asset_pipeline_started", video_id=video_id, kinds=[k.value for k in kinds])

        try:
            source = workdir / "source.mp4"
            try:
                await self._download(source_url, source)
            except Exception as e:
                logger.error("asset_source_download_failed", video_id=video_id, error=str(e))
                for kind in kinds:
                    bundle.results[kind] = AssetResult(
                        kind=kind, success=False, error=f"Download failed: {e}"
                    )
                return bundle

            steps: dict[AssetKind, Callable[[str, Path, Path], Awaitable[AssetResult]]] = {
                AssetKind.SOURCE: self._store_source,
                AssetKind.THUMBNAIL: self._make_thumbnail,
                AssetKind.PREVIEW: self._make_preview,
                AssetKind.HLS: self._make_hls,
            }
            for kind in kinds:
                bundle.results[kind] = await self._run_step(kind, steps[kind], video_id, source, workdir)
        finally:
            shutil.rmtree(workdir, ignore_errors=True)
            if workdir.exists():
                logger.warning("asset_workdir_cleanup_failed", path=str(workdir))

        logger.info(
            "asset_pipeline_completed",
            video_id=video_id,
            state=bundle.state.value,
            failures={k.value: v for k, v in bundle.failures.items()},
        )
        return bundle

    async def _run_step(
        self,
        kind: AssetKind,
        step: Callable[[str, Path, Path], Awaitable[AssetResult]],
        video_id: str,
        source: Path,
        workdir: Path,
    ) -> AssetResult:
        try:
            result = await step(video_id, source, workdir)
        except Exception as e:
            logger.error("asset_step_failed", video_id=video_id, kind=kind.value, error=str(e))
            return AssetResult(kind=kind, success=False, error=str(e))
        logger.info("asset_step_completed", video_id=video_id, kind=kind.value)
        return result

    async def _download(self, url: str, destination: Path) -> None:
        async with httpx.AsyncClient(
            timeout=self.download_timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                with destination.open("wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)

        size = destination.stat().st_size
        if size == 0:
            raise ValueError("Downloaded video is empty")
        logger.info("asset_source_downloaded", url=url[:100], size=size)

    async def _upload(self, kind: AssetKind, video_id: str, local_path: Path) -> AssetResult:
        path = kind.storage_path(video_id)
        url = await self.storage.upload_file(local_path, path, guess_content_type(local_path))
        return AssetResult(kind=kind, success=True, url=url, storage_path=path)

    async def _store_source(self, video_id: str, source: Path, workdir: Path) -> AssetResult:
        return await self._upload(AssetKind.SOURCE, video_id, source)

    async def _make_thumbnail(self, video_id: str, source: Path, workdir: Path) -> AssetResult:
        output = workdir / "thumbnail.jpg"
        await extract_thumbnail(
            source,
            output,
            offset_seconds=self.thumbnail_offset_seconds,
            size=self.thumbnail_size,
            runner=self.runner,
        )
        return await self._upload(AssetKind.THUMBNAIL, video_id, output)

    async def _make_preview(self, video_id: str, source: Path, workdir: Path) -> AssetResult:
        output = workdir / "preview.mp4"
        await self.runner(
            preview_args(
                source,
                output,
                self.preview_duration_seconds,
                self.preview_height,
                self.preview_fps,
            )
        )
        return await self._upload(AssetKind.PREVIEW, video_id, output)

    async def _make_hls(self, video_id: str, source: Path, workdir: Path) -> AssetResult:
        hls_dir = workdir / "hls"
        hls_dir.mkdir()
        await self.runner(hls_args(source, hls_dir, self.hls_segment_seconds))

        playlist = hls_dir / HLS_PLAYLIST_NAME
        if not playlist.exists():
            raise RuntimeError("ffmpeg produced no HLS playlist")

        segments = sorted(p for p in hls_dir.iterdir() if p.suffix == ".ts")
        if not segments:
            raise RuntimeError("ffmpeg produced no HLS segments")

        playlist_path = AssetKind.HLS.storage_path(video_id)
        prefix = playlist_path.rsplit("/", 1)[0]
        segment_paths: list[str] = []
        try:
            for segment in segments:
                destination = f"{prefix}/{segment.name}"
                await self.storage.upload_file(segment, destination, guess_content_type(segment))
                segment_paths.append(destination)

            # Playlist last, so a readable playlist implies its segments exist.
            url = await self.storage.upload_file(
                playlist, playlist_path, guess_content_type(playlist)
            )
        except Exception:
            await self._discard(video_id, segment_paths)
            raise

        return AssetResult(
            kind=AssetKind.HLS,
            success=True,
            url=url,
            storage_path=playlist_path,
            extra_paths=segment_paths,
        )

    async def _discard(self, video_id: str, paths: list[str]) -> None:
        """Delete objects left behind by a step that failed part way."""
        for path in paths:
            try:
                await self.storage.delete(path)
            except Exception as e:
                logger.warning(
                    "asset_orphan_cleanup_failed", video_id=video_id, path=path, error=str(e)
                )
        if paths:
            logger.info("asset_orphans_removed", video_id=video_id, count=len(paths))
