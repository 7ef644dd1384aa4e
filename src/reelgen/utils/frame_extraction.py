"""Utilities for extracting thumbnail frames from video files."""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

from reelgen.logging import get_logger
from reelgen.utils.ffmpeg import run_ffmpeg, thumbnail_args

logger = get_logger(__name__)

FFmpegRunner = Callable[[list[str]], Awaitable[None]]


async def extract_thumbnail(
    video_path: Path,
    output_path: Path,
    offset_seconds: float = 1.0,
    size: str = "1280x720",
    runner: FFmpegRunner = run_ffmpeg,
) -> Path:
    """Extract a single scaled frame from a video as a JPEG.

    Tries ffmpeg first and falls back to moviepy only when the binary is
    missing. An ffmpeg failure on the source itself is raised as is.

    Raises:
        FFmpegError: If ffmpeg ran and failed or timed out.
        RuntimeError: If no frame was written.
    """
    try:
        await runner(thumbnail_args(video_path, output_path, offset_seconds, size))
    except FileNotFoundError as e:
        logger.debug("ffmpeg_not_available_trying_moviepy", error=str(e))
        await asyncio.to_thread(
            extract_thumbnail_moviepy, video_path, output_path, offset_seconds, size
        )

    if not output_path.exists():
        raise RuntimeError(f"Thumbnail was not written: {output_path}")

    logger.info(
        "thumbnail_extracted",
        video_path=str(video_path),
        frame_size=output_path.stat().st_size,
    )
    return output_path


def extract_thumbnail_moviepy(
    video_path: Path,
    output_path: Path,
    offset_seconds: float = 1.0,
    size: str = "1280x720",
) -> Path:
    """Extract a frame using MoviePy (fallback if the ffmpeg binary is missing)."""
    from moviepy import VideoFileClip

    width, height = (int(v) for v in size.lower().split("x"))
    try:
        clip = VideoFileClip(str(video_path))
        try:
            # Short clips have no frame at the offset; take the middle instead.
            frame_time = offset_seconds if clip.duration > offset_seconds else clip.duration / 2
            clip.resized(new_size=(width, height)).save_frame(str(output_path), t=frame_time)
        finally:
            clip.close()
        return output_path
    except Exception as e:
        logger.error("frame_extraction_moviepy_error", video_path=str(video_path), error=str(e))
        raise RuntimeError(f"MoviePy frame extraction failed: {e}") from e
