"""
Provides methods for detecting the real type of a media file from its leading bytes.
"""

import logging
from pathlib import Path

import filetype

from media_acquire.models.media import MediaClass, SniffResult

log = logging.getLogger(__name__)

# filetype never inspects more than this many bytes.
DEFAULT_SNIFF_BYTES = 8192


class TypeSniffer:
    """A collection of static methods for identifying media by magic numbers."""

    @staticmethod
    def sniff(head: bytes) -> SniffResult | None:
        """
        Identifies the media type of a buffer.

        Only the content is inspected; file names and declared content types are
        never consulted.

        Args:
            head: The first bytes of a file (8 KB is plenty).

        Returns:
            A SniffResult, or None if the buffer is not a recognized image or video.
        """
        if not head:
            return None
        kind = filetype.guess(head)
        if kind is None:
            return None

        top_level = kind.mime.split("/", 1)[0]
        if top_level not in ("image", "video"):
            return None
        return SniffResult(
            extension=kind.extension,
            mime_type=kind.mime,
            is_image=top_level == "image",
            is_video=top_level == "video",
        )

    @staticmethod
    def sniff_file(
        path: str | Path, limit: int = DEFAULT_SNIFF_BYTES
    ) -> SniffResult | None:
        """Reads up to `limit` bytes from the start of a file and sniffs them."""
        with open(path, "rb") as f:
            head = f.read(limit)
        result = TypeSniffer.sniff(head)
        log.debug(
            f"Sniffed '{Path(path).name}': "
            f"{result.extension if result else 'unknown'} ({len(head)} bytes read)"
        )
        return result

    @staticmethod
    def is_image(head: bytes) -> bool:
        result = TypeSniffer.sniff(head)
        return bool(result and result.is_image)

    @staticmethod
    def is_video(head: bytes) -> bool:
        result = TypeSniffer.sniff(head)
        return bool(result and result.is_video)

    @staticmethod
    def matches(result: SniffResult | None, media_class: MediaClass) -> bool:
        """An unknown result never matches any class."""
        return result is not None and result.matches(media_class)
