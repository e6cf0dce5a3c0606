"""
Value objects describing media references, sniffed types and stored files.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ReferenceKind(str, Enum):
    """How a caller-supplied media reference must be resolved."""

    REMOTE_URL = "remote_url"
    LOCAL_PATH = "local_path"


class MediaClass(str, Enum):
    """The class of media a save root holds."""

    IMAGE = "image"
    VIDEO = "video"

    @property
    def default_extension(self) -> str:
        return "jpg" if self is MediaClass.IMAGE else "mp4"


@dataclass(frozen=True)
class SniffResult:
    """The type detected from a file's leading bytes."""

    extension: str
    mime_type: str
    is_image: bool = False
    is_video: bool = False

    def matches(self, media_class: MediaClass) -> bool:
        if media_class is MediaClass.IMAGE:
            return self.is_image
        return self.is_video


@dataclass(frozen=True)
class DownloadOutcome:
    """A fully written, validated file. Never produced for a failed transfer."""

    path: Path
    bytes_written: int
    media_class: MediaClass
    extension: str
    mime_type: str | None = None
