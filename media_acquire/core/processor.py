"""
Resolves media references to local files: URLs are downloaded, local paths are
passed through untouched.
"""

import asyncio
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any

from media_acquire.exceptions import (
    DownloadFailure,
    MediaAcquireError,
    NoValidImagesError,
)
from media_acquire.media import StreamDownloader, UploadPersister
from media_acquire.media.reference import classify
from media_acquire.media.retention import sweep
from media_acquire.models.config import PipelineConfig
from media_acquire.models.media import MediaClass, ReferenceKind
from media_acquire.models.stats import AcquisitionStats
from media_acquire.utils.path import create_dir

log = logging.getLogger(__name__)


def _as_timedelta(max_age: timedelta | float) -> timedelta:
    if isinstance(max_age, timedelta):
        return max_age
    return timedelta(seconds=max_age)


class BaseProcessor:
    """Owns the save directory and downloader for one media class."""

    media_class: MediaClass

    def __init__(
        self,
        config: PipelineConfig,
        save_root: Path,
        timeout_seconds: float,
        downloader: StreamDownloader | None = None,
        stats: AcquisitionStats | None = None,
    ):
        self.config = config
        self.save_root = create_dir(save_root)
        self.stats = stats or AcquisitionStats()
        self.downloader = downloader or StreamDownloader(
            self.save_root,
            self.media_class,
            timeout_seconds=timeout_seconds,
            connect_timeout_seconds=config.connect_timeout_seconds,
            chunk_size=config.chunk_size,
            sniff_prefix_bytes=config.sniff_prefix_bytes,
            user_agent=config.user_agent,
        )

    async def _resolve(self, reference: str) -> str:
        """Downloads a URL or returns a local path unchanged."""
        if classify(reference) is ReferenceKind.LOCAL_PATH:
            self.stats.passthrough += 1
            return reference

        kind = self.media_class.value
        try:
            outcome = await self.downloader.download(reference)
        except MediaAcquireError as e:
            self.stats.failed += 1
            log.warning(f"[red]✗ Failed:[/] {kind} {reference} ({e})")
            raise DownloadFailure(reference, e, kind) from e

        self.stats.record_outcome(outcome)
        log.info(
            f"[green]✓ Downloaded:[/] {kind} [dim]{outcome.path.name}[/dim] "
            f"({outcome.bytes_written} bytes)"
        )
        return str(outcome.path)

    async def _cleanup(self, max_age: timedelta | float) -> int:
        removed = await asyncio.to_thread(sweep, self.save_root, _as_timedelta(max_age))
        self.stats.files_removed += removed
        return removed

    async def close(self) -> None:
        await self.downloader.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class ImageProcessor(BaseProcessor):
    """Resolves ordered batches of image references."""

    media_class = MediaClass.IMAGE

    def __init__(
        self,
        config: PipelineConfig,
        downloader: StreamDownloader | None = None,
        stats: AcquisitionStats | None = None,
    ):
        super().__init__(
            config,
            config.images_save_root,
            config.image_timeout_seconds,
            downloader,
            stats,
        )

    async def process_images(self, images: list[str]) -> list[str]:
        """
        Processes image references in order and returns local file paths.

        Supports two input formats:
        1. URLs (http/https) are downloaded immediately.
        2. Anything else is used as a local path as-is, without existence checks.

        The first failed download aborts the batch. Images already downloaded by
        this call stay on disk; the retention sweep reclaims them.

        Raises:
            DownloadFailure: Naming the reference that failed.
            NoValidImagesError: If no paths were produced.
        """
        local_paths = []
        for image in images:
            local_paths.append(await self._resolve(image))

        if not local_paths:
            raise NoValidImagesError("no valid images found")
        return local_paths

    def get_images_save_path(self) -> str:
        return str(self.save_root)

    async def cleanup_old_images(self, max_age: timedelta | float) -> int:
        """Removes images older than `max_age` (a timedelta or seconds)."""
        return await self._cleanup(max_age)


class VideoProcessor(BaseProcessor):
    """Resolves a single video reference and persists uploaded videos."""

    media_class = MediaClass.VIDEO

    def __init__(
        self,
        config: PipelineConfig,
        downloader: StreamDownloader | None = None,
        stats: AcquisitionStats | None = None,
    ):
        super().__init__(
            config,
            config.videos_save_root,
            config.video_timeout_seconds,
            downloader,
            stats,
        )
        self.persister = UploadPersister(
            self.save_root,
            MediaClass.VIDEO,
            chunk_size=config.chunk_size,
            sniff=config.sniff_uploads,
            sniff_prefix_bytes=config.sniff_prefix_bytes,
        )

    async def process_video(self, video: str) -> str:
        """
        Returns a local path for a video reference, downloading URLs.

        Raises:
            DownloadFailure: If the download fails.
        """
        return await self._resolve(video)

    async def save_uploaded_video(self, stream: Any, original_name: str) -> str:
        """
        Saves an uploaded video stream and returns its path.

        Raises:
            EmptyContentError: If the stream is empty.
            MediaIOError: If the file cannot be written.
        """
        outcome = await self.persister.persist(stream, original_name)
        self.stats.record_outcome(outcome, uploaded=True)
        return str(outcome.path)

    def get_videos_save_path(self) -> str:
        return str(self.save_root)

    async def cleanup_old_videos(self, max_age: timedelta | float) -> int:
        """
        Removes videos older than `max_age` (a timedelta or seconds).

        Raises:
            MediaIOError: If the videos directory cannot be listed.
        """
        return await self._cleanup(max_age)


def create_processors(
    config: PipelineConfig, stats: AcquisitionStats | None = None
) -> tuple[ImageProcessor, VideoProcessor]:
    """
    Builds both processors, creating their save directories.

    Raises:
        ConfigurationError: If a save directory cannot be created.
    """
    stats = stats or AcquisitionStats()
    return ImageProcessor(config, stats=stats), VideoProcessor(config, stats=stats)
