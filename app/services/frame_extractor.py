"""Still-frame extraction from video files via an external ffmpeg binary."""
import asyncio
import logging
from contextlib import suppress
from pathlib import Path
from typing import Protocol

from app.core.config import settings
from app.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)


class FrameExtractor(Protocol):
    """Capability: write one still image from source at offset seconds to destination."""

    async def extract_frame(self, source: Path, offset: float, destination: Path) -> None:
        """Raise ExtractionError unless destination exists afterwards."""
        ...


async def _reap(process: asyncio.subprocess.Process) -> None:
    """Kill a still-running child and wait for it to exit."""
    if process.returncode is None:
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()


class FfmpegFrameExtractor:
    """Runs ffmpeg once per call. No retries; concurrency bounded by a semaphore."""

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        timeout: float = 30.0,
        width: int = 640,
        max_concurrency: int = 4,
    ):
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
        self.width = width
        self._slots = asyncio.Semaphore(max(1, max_concurrency))

    def build_command(self, source: Path, offset: float, destination: Path) -> list[str]:
        return [
            self.ffmpeg_path,
            "-y",  # Overwrite output file
            "-ss", f"{max(0.0, offset):.3f}",
            "-i", str(source),
            "-frames:v", "1",
            "-vf", f"scale={self.width}:-2",  # Bounded width, keep aspect ratio
            str(destination),
        ]

    async def extract_frame(self, source: Path, offset: float, destination: Path) -> None:
        cmd = self.build_command(source, offset, destination)
        async with self._slots:
            try:
                process = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise ExtractionError(f"{self.ffmpeg_path} could not be started: {e}", cause=e) from e

            try:
                _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError as e:
                await _reap(process)
                raise ExtractionError(f"frame extraction timed out after {self.timeout}s", cause=e) from e
            except BaseException:
                # cancelled: the child must not outlive the request
                await _reap(process)
                raise

        if process.returncode != 0:
            error_msg = stderr.decode("utf-8", errors="ignore").strip()[-200:]
            raise ExtractionError(f"{self.ffmpeg_path} exited with {process.returncode}: {error_msg}")
        if not destination.is_file():
            # e.g. offset past the end of the stream: ffmpeg succeeds but writes nothing
            raise ExtractionError(f"{self.ffmpeg_path} produced no output at {offset}s")


async def check_ffmpeg(ffmpeg_path: str | None = None) -> bool:
    """Probe `ffmpeg -version` once at startup and log the result."""
    ffmpeg_path = ffmpeg_path or settings.FFMPEG_PATH
    try:
        process = await asyncio.create_subprocess_exec(
            ffmpeg_path,
            "-version",
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        logger.warning("ffmpeg check failed (%s). Server-side thumbnail generation will fail.", e)
        return False
    try:
        await asyncio.wait_for(process.wait(), timeout=10.0)
    except asyncio.TimeoutError:
        await _reap(process)
        logger.warning("ffmpeg check timed out. Server-side thumbnail generation will fail.")
        return False
    if process.returncode != 0:
        logger.warning("ffmpeg not usable at %r. Server-side thumbnail generation will fail.", ffmpeg_path)
        return False
    logger.info("ffmpeg found at %r", ffmpeg_path)
    return True


# Dependency injection
_frame_extractor: FrameExtractor | None = None


def get_frame_extractor() -> FrameExtractor:
    global _frame_extractor
    if _frame_extractor is None:
        _frame_extractor = FfmpegFrameExtractor(
            ffmpeg_path=settings.FFMPEG_PATH,
            timeout=settings.FFMPEG_TIMEOUT_SECONDS,
            width=settings.THUMB_WIDTH,
            max_concurrency=settings.EXTRACTION_MAX_CONCURRENCY,
        )
    return _frame_extractor
