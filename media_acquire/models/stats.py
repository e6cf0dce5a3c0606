"""
Dataclass for tracking acquisition session statistics.
"""

import time
from dataclasses import dataclass, field

from media_acquire.models.media import DownloadOutcome, MediaClass


@dataclass
class AcquisitionStats:
    """Counts what a processor did during one session."""

    images_downloaded: int = 0
    videos_downloaded: int = 0
    videos_uploaded: int = 0
    passthrough: int = 0
    failed: int = 0
    files_removed: int = 0
    total_bytes: int = 0
    started_at: float = field(default_factory=time.monotonic, repr=False)

    def record_outcome(self, outcome: DownloadOutcome, uploaded: bool = False) -> None:
        """Records a file written by a download or an upload."""
        if outcome.media_class is MediaClass.IMAGE:
            self.images_downloaded += 1
        elif uploaded:
            self.videos_uploaded += 1
        else:
            self.videos_downloaded += 1
        self.total_bytes += outcome.bytes_written

    @property
    def files_written(self) -> int:
        return self.images_downloaded + self.videos_downloaded + self.videos_uploaded

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.started_at
