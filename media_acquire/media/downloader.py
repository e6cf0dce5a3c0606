"""
Handles the low-level downloading of media files over HTTP with bounded-memory
streaming, content sniffing and extension correction.
"""

import asyncio
import logging
import os
from pathlib import Path

import aiofiles
import aiohttp

from media_acquire.exceptions import (
    EmptyContentError,
    HTTPStatusError,
    MediaIOError,
    NetworkError,
    TypeMismatchError,
)
from media_acquire.media.naming import unique_path
from media_acquire.media.reference import validate_url
from media_acquire.media.sniffer import DEFAULT_SNIFF_BYTES, TypeSniffer
from media_acquire.models.media import DownloadOutcome, MediaClass

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 262144  # 256 KB


def create_session(
    timeout_seconds: float,
    connect_timeout_seconds: float = 30.0,
    user_agent: str | None = None,
) -> aiohttp.ClientSession:
    """
    Creates an aiohttp ClientSession tuned for large media transfers.

    Must be called from a running event loop.
    """
    connector = aiohttp.TCPConnector(
        limit=4,  # Downloads are sequential; a few sockets cover redirects
        ttl_dns_cache=600,  # 10 minutes
        keepalive_timeout=30,
    )
    timeout = aiohttp.ClientTimeout(
        total=timeout_seconds, sock_connect=connect_timeout_seconds
    )
    headers = {"User-Agent": user_agent} if user_agent else None
    return aiohttp.ClientSession(connector=connector, timeout=timeout, headers=headers)


def remove_quietly(path: Path) -> None:
    """Deletes a partial artifact, ignoring a file that is already gone."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning(f"Could not remove partial file '{path}': {e}")


def _rename_extension(path: Path, extension: str) -> Path:
    """
    Renames `path` to carry `extension`. Keeps the original name if the rename
    fails, since the content on disk is still valid.
    """
    new_path = path.with_suffix(f".{extension}")
    if new_path == path:
        return path
    if new_path.exists():
        log.warning(
            f"Not renaming '{path.name}': '{new_path.name}' already exists. "
            "Keeping the original extension."
        )
        return path
    try:
        path.rename(new_path)
    except OSError as e:
        log.warning(
            f"Could not rename '{path.name}' to '{new_path.name}': {e}. "
            "Keeping the original extension."
        )
        return path
    log.debug(f"Corrected extension: '{path.name}' -> '{new_path.name}'")
    return new_path


async def validate_and_rename(
    path: Path,
    bytes_written: int,
    media_class: MediaClass,
    sniff_prefix_bytes: int = DEFAULT_SNIFF_BYTES,
) -> DownloadOutcome:
    """
    Sniffs a freshly written file and gives it the extension of its real type.

    The file is deleted if it cannot be read or is not of the expected class.

    Raises:
        MediaIOError: If the file cannot be re-opened.
        TypeMismatchError: If the content is unknown or of the wrong class.
    """
    try:
        result = await asyncio.to_thread(
            TypeSniffer.sniff_file, path, sniff_prefix_bytes
        )
    except OSError as e:
        remove_quietly(path)
        raise MediaIOError(f"failed to read back '{path.name}': {e}") from e

    if not TypeSniffer.matches(result, media_class):
        remove_quietly(path)
        raise TypeMismatchError(
            media_class.value, result.extension if result else None
        )

    final_path = await asyncio.to_thread(_rename_extension, path, result.extension)
    return DownloadOutcome(
        path=final_path,
        bytes_written=bytes_written,
        media_class=media_class,
        extension=result.extension,
        mime_type=result.mime_type,
    )


class StreamDownloader:
    """
    Downloads media into a save directory, one GET per call and no retries.

    Every failure removes whatever was written for that call before the error
    propagates.
    """

    def __init__(
        self,
        save_root: Path,
        media_class: MediaClass,
        timeout_seconds: float,
        connect_timeout_seconds: float = 30.0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        sniff_prefix_bytes: int = DEFAULT_SNIFF_BYTES,
        user_agent: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.save_root = Path(save_root)
        self.media_class = media_class
        self.timeout_seconds = timeout_seconds
        self.connect_timeout_seconds = connect_timeout_seconds
        self.chunk_size = chunk_size
        self.sniff_prefix_bytes = sniff_prefix_bytes
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

    @property
    def kind(self) -> str:
        return self.media_class.value

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = create_session(
                    self.timeout_seconds,
                    self.connect_timeout_seconds,
                    self.user_agent,
                )
                self._owns_session = True
                log.debug(f"Created {self.kind} download session")
            return self._session

    async def close(self) -> None:
        """Closes the HTTP session if this downloader created it."""
        async with self._session_lock:
            if self._owns_session and self._session and not self._session.closed:
                await self._session.close()
                log.debug(f"Closed {self.kind} download session")
            if self._owns_session:
                self._session = None

    async def __aenter__(self) -> "StreamDownloader":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def download(self, url: str) -> DownloadOutcome:
        """
        Fetches `url` into the save directory.

        Returns:
            The validated file, named after its sniffed type.

        Raises:
            InvalidReferenceError: If the URL has no http(s) scheme or host.
            NetworkError: On connection failures and timeouts.
            HTTPStatusError: If the server answers with a non-2xx status.
            EmptyContentError: If the body is empty.
            TypeMismatchError: If the content is not of the expected class.
            MediaIOError: If the file cannot be written or read back.
        """
        validate_url(url)
        session = await self._get_session()
        log.debug(f"Downloading {self.kind} from {url}")

        try:
            async with session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise HTTPStatusError(response.status, url)

                path = await asyncio.to_thread(
                    unique_path,
                    self.save_root,
                    url,
                    self.media_class.default_extension,
                    self.kind,
                )
                bytes_written = await self._stream_to_file(response, path)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(
                f"failed to download {self.kind}: {type(e).__name__}: {e}"
            ) from e

        if bytes_written == 0:
            remove_quietly(path)
            raise EmptyContentError(f"downloaded {self.kind} is empty")

        outcome = await validate_and_rename(
            path, bytes_written, self.media_class, self.sniff_prefix_bytes
        )
        log.debug(
            f"Saved {self.kind} '{outcome.path.name}' ({outcome.bytes_written} bytes)"
        )
        return outcome

    async def _stream_to_file(
        self, response: aiohttp.ClientResponse, path: Path
    ) -> int:
        """Copies the response body to `path` chunk by chunk."""
        bytes_written = 0
        try:
            async with aiofiles.open(path, "wb") as f:
                async for chunk in response.content.iter_chunked(self.chunk_size):
                    await f.write(chunk)
                    bytes_written += len(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError, asyncio.CancelledError):
            remove_quietly(path)
            raise
        except OSError as e:
            remove_quietly(path)
            raise MediaIOError(f"failed to save {self.kind}: {e}") from e
        return bytes_written
