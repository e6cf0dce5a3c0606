"""
Persists already-open byte streams (uploads) into a save directory.
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import aiofiles
from pathvalidate import sanitize_filename

from media_acquire.exceptions import EmptyContentError, MediaIOError
from media_acquire.media.downloader import (
    DEFAULT_CHUNK_SIZE,
    remove_quietly,
    validate_and_rename,
)
from media_acquire.media.naming import unique_path
from media_acquire.media.sniffer import DEFAULT_SNIFF_BYTES
from media_acquire.models.media import DownloadOutcome, MediaClass

log = logging.getLogger(__name__)


def derive_extension(original_name: str | None, default: str) -> str:
    """Takes the extension from an uploaded file name, falling back to `default`."""
    if original_name:
        suffix = Path(original_name).suffix.lstrip(".")
        suffix = sanitize_filename(suffix, platform="universal")
        if suffix:
            return suffix
    return default


async def iter_stream(stream: Any, chunk_size: int) -> AsyncIterator[bytes]:
    """
    Yields chunks from a binary stream.

    Accepts an object with an async `read(n)` (aiofiles, Starlette UploadFile),
    a plain file object, whose blocking reads run in a worker thread, or an
    async iterable of bytes. `read` wins when both are present, since aiofiles
    iterates by line.
    """
    read = getattr(stream, "read", None)
    if read is None:
        async for chunk in stream:
            if chunk:
                yield chunk
        return

    while True:
        if inspect.iscoroutinefunction(read):
            chunk = await read(chunk_size)
        else:
            chunk = await asyncio.to_thread(read, chunk_size)
        if not chunk:
            break
        yield chunk


class UploadPersister:
    """
    Writes an incoming stream to a uniquely named file.

    The declared extension is trusted unless `sniff` is enabled, in which case
    the file goes through the same type check as a download.
    """

    def __init__(
        self,
        save_root: Path,
        media_class: MediaClass = MediaClass.VIDEO,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        sniff: bool = False,
        sniff_prefix_bytes: int = DEFAULT_SNIFF_BYTES,
    ):
        self.save_root = Path(save_root)
        self.media_class = media_class
        self.chunk_size = chunk_size
        self.sniff = sniff
        self.sniff_prefix_bytes = sniff_prefix_bytes

    async def persist(self, stream: Any, original_name: str) -> DownloadOutcome:
        """
        Saves `stream` under the save directory.

        Raises:
            EmptyContentError: If the stream yields no bytes.
            MediaIOError: If reading the stream or writing the file fails.
            TypeMismatchError: Only when sniffing is enabled.
        """
        kind = self.media_class.value
        extension = derive_extension(original_name, self.media_class.default_extension)
        path = await asyncio.to_thread(
            unique_path, self.save_root, original_name or "upload", extension, kind
        )

        bytes_written = 0
        try:
            async with aiofiles.open(path, "wb") as f:
                async for chunk in iter_stream(stream, self.chunk_size):
                    await f.write(chunk)
                    bytes_written += len(chunk)
        except OSError as e:
            remove_quietly(path)
            raise MediaIOError(f"failed to save {kind}: {e}") from e
        except Exception as e:
            # Stream-side failures: client disconnects, reads on a closed file.
            remove_quietly(path)
            raise MediaIOError(
                f"failed to read uploaded {kind}: {type(e).__name__}: {e}"
            ) from e
        except BaseException:
            remove_quietly(path)
            raise

        if bytes_written == 0:
            remove_quietly(path)
            raise EmptyContentError(f"uploaded {kind} is empty")

        if self.sniff:
            outcome = await validate_and_rename(
                path, bytes_written, self.media_class, self.sniff_prefix_bytes
            )
        else:
            outcome = DownloadOutcome(
                path=path,
                bytes_written=bytes_written,
                media_class=self.media_class,
                extension=extension,
            )

        log.info(
            f"Saved uploaded {kind} [dim]{outcome.path.name}[/dim] "
            f"({outcome.bytes_written} bytes)"
        )
        return outcome
