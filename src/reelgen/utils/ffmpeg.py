"""Async wrappers around the ffmpeg binary and the commands the asset pipeline runs."""

import asyncio
from pathlib import Path

from reelgen.logging import get_logger

logger = get_logger(__name__)

HLS_PLAYLIST_NAME = "playlist.m3u8"


class FFmpegError(RuntimeError):
    """ffmpeg exited non-zero or ran past its timeout."""


async def run_ffmpeg(args: list[str], ffmpeg_path: str | None = None, timeout: float = 300) -> None:
    """Run ffmpeg with the given arguments.

    Raises:
        FileNotFoundError: If the ffmpeg binary cannot be found.
        FFmpegError: On non-zero exit or timeout.
    """
    binary = ffmpeg_path or "ffmpeg"
    cmd = [binary, "-hide_banner", "-loglevel", "error", "-y", *args]
    logger.debug("ffmpeg_started", cmd=" ".join(cmd))

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise FFmpegError(f"ffmpeg timed out after {timeout}s") from e

    if process.returncode != 0:
        message = stderr.decode(errors="replace").strip()[-500:]
        logger.error("ffmpeg_failed", returncode=process.returncode, stderr=message)
        raise FFmpegError(f"ffmpeg exited with code {process.returncode}: {message}")


def thumbnail_args(source: Path, output: Path, offset_seconds: float, size: str) -> list[str]:
    """Grab one frame ``offset_seconds`` in, scaled to ``size`` (WxH), as a JPEG."""
    width, height = size.lower().split("x")
    return [
        "-ss",
        f"{offset_seconds:g}",
        "-i",
        str(source),
        "-frames:v",
        "1",
        "-vf",
        f"scale={width}:{height}",
        "-q:v",
        "2",
        str(output),
    ]


def preview_args(
    source: Path,
    output: Path,
    duration_seconds: float,
    height: int,
    fps: int,
) -> list[str]:
    """Re-encode the opening seconds as a small, silent, loopable MP4."""
    return [
        "-t",
        f"{duration_seconds:g}",
        "-i",
        str(source),
        "-vf",
        f"fps={fps},scale=-2:{height}",
        "-an",
        "-c:v",
        "libx264",
        "-pix_fmt",
        "yuv420p",
        "-movflags",
        "+faststart",
        str(output),
    ]


def hls_args(source: Path, output_dir: Path, segment_seconds: int) -> list[str]:
    """Segment into a baseline-profile HLS playlist plus numbered ``.ts`` files."""
    return [
        "-i",
        str(source),
        "-c:v",
        "libx264",
        "-profile:v",
        "baseline",
        "-level",
        "3.0",
        "-c:a",
        "aac",
        "-start_number",
        "0",
        "-hls_time",
        str(segment_seconds),
        "-hls_list_size",
        "0",
        "-f",
        "hls",
        str(output_dir / HLS_PLAYLIST_NAME),
    ]
