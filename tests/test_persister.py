import asyncio
import io

import aiofiles
import pytest

from media_acquire.exceptions import EmptyContentError, MediaIOError, TypeMismatchError
from media_acquire.media.persister import (
    UploadPersister,
    derive_extension,
    iter_stream,
)
from media_acquire.models.media import MediaClass

from .conftest import MP4_BYTES, PNG_BYTES, WEBM_BYTES, wait_for_file


class AsyncReader:
    """Mimics an upload object with an awaitable read(n)."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


async def _chunks(*parts: bytes):
    for part in parts:
        yield part


@pytest.mark.parametrize(
    "name, expected",
    [
        ("clip.mov", "mov"),
        ("archive.tar.webm", "webm"),
        ("noext", "mp4"),
        ("", "mp4"),
        (None, "mp4"),
        ("trailing.", "mp4"),
    ],
)
def test_derive_extension(name, expected):
    assert derive_extension(name, "mp4") == expected


@pytest.mark.asyncio
async def test_persist_file_object(tmp_path):
    persister = UploadPersister(tmp_path, chunk_size=7)

    outcome = await persister.persist(io.BytesIO(MP4_BYTES), "holiday.mov")

    assert outcome.path.parent == tmp_path
    assert outcome.path.name.startswith("video_")
    assert outcome.path.suffix == ".mov"
    assert outcome.extension == "mov"
    assert outcome.bytes_written == len(MP4_BYTES)
    assert outcome.path.read_bytes() == MP4_BYTES


@pytest.mark.asyncio
async def test_persist_async_reader(tmp_path):
    persister = UploadPersister(tmp_path, chunk_size=16)
    outcome = await persister.persist(AsyncReader(MP4_BYTES), "clip.mp4")
    assert outcome.path.read_bytes() == MP4_BYTES


@pytest.mark.asyncio
async def test_persist_async_iterator_skips_empty_chunks(tmp_path):
    persister = UploadPersister(tmp_path)
    outcome = await persister.persist(_chunks(b"abc", b"", b"def"), "clip.mp4")
    assert outcome.path.read_bytes() == b"abcdef"
    assert outcome.bytes_written == 6


@pytest.mark.asyncio
async def test_declared_extension_is_trusted_by_default(tmp_path):
    persister = UploadPersister(tmp_path)
    outcome = await persister.persist(io.BytesIO(b"not really a video"), "clip.mkv")
    assert outcome.path.suffix == ".mkv"
    assert outcome.mime_type is None


@pytest.mark.asyncio
async def test_same_name_uploaded_twice(tmp_path):
    persister = UploadPersister(tmp_path)
    first = await persister.persist(io.BytesIO(MP4_BYTES), "clip.mp4")
    second = await persister.persist(io.BytesIO(MP4_BYTES), "clip.mp4")
    assert first.path != second.path
    assert first.path.exists() and second.path.exists()


@pytest.mark.asyncio
async def test_empty_upload_leaves_no_file(tmp_path):
    persister = UploadPersister(tmp_path)
    with pytest.raises(EmptyContentError, match="uploaded video is empty"):
        await persister.persist(io.BytesIO(b""), "clip.mp4")
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_read_error_leaves_no_file(tmp_path):
    class BrokenStream:
        def __init__(self):
            self.calls = 0

        def read(self, size):
            self.calls += 1
            if self.calls > 1:
                raise OSError("connection reset")
            return MP4_BYTES[:size]

    persister = UploadPersister(tmp_path, chunk_size=32)
    with pytest.raises(MediaIOError, match="connection reset"):
        await persister.persist(BrokenStream(), "clip.mp4")
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_sniffing_corrects_extension(tmp_path):
    persister = UploadPersister(tmp_path, sniff=True)
    outcome = await persister.persist(io.BytesIO(WEBM_BYTES), "clip.mp4")
    assert outcome.extension == "webm"
    assert outcome.path.suffix == ".webm"
    assert outcome.mime_type == "video/webm"


@pytest.mark.asyncio
async def test_sniffing_rejects_non_video(tmp_path):
    persister = UploadPersister(tmp_path, MediaClass.VIDEO, sniff=True)
    with pytest.raises(TypeMismatchError):
        await persister.persist(io.BytesIO(PNG_BYTES), "clip.mp4")
    assert list(tmp_path.iterdir()) == []


class ClientDisconnect(Exception):
    """Stands in for a web framework's disconnect error."""


@pytest.mark.asyncio
async def test_stream_error_after_first_chunk_leaves_no_file(tmp_path):
    async def disconnecting():
        yield MP4_BYTES[:64]
        raise ClientDisconnect()

    persister = UploadPersister(tmp_path)
    with pytest.raises(MediaIOError, match="ClientDisconnect") as exc_info:
        await persister.persist(disconnecting(), "clip.mp4")
    assert isinstance(exc_info.value.__cause__, ClientDisconnect)
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_read_on_closed_file_leaves_no_file(tmp_path):
    source = io.BytesIO(MP4_BYTES)
    source.close()

    persister = UploadPersister(tmp_path)
    with pytest.raises(MediaIOError, match="ValueError"):
        await persister.persist(source, "clip.mp4")
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_cancelled_upload_removes_partial_file(tmp_path):
    never = asyncio.Event()

    async def stalled():
        yield MP4_BYTES[:64]
        await never.wait()
        yield MP4_BYTES[64:]

    persister = UploadPersister(tmp_path)
    task = asyncio.create_task(persister.persist(stalled(), "clip.mp4"))
    await wait_for_file(tmp_path)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_aiofiles_source_is_read_in_fixed_chunks(tmp_path):
    # Newlines would split the data unevenly if the file were iterated by line.
    data = b"ab\ncd\nef\n" * 10
    source = tmp_path / "source.bin"
    source.write_bytes(data)

    async with aiofiles.open(source, "rb") as f:
        chunks = [chunk async for chunk in iter_stream(f, 8)]

    assert b"".join(chunks) == data
    assert all(len(chunk) == 8 for chunk in chunks[:-1])


@pytest.mark.asyncio
async def test_persist_aiofiles_source(tmp_path):
    source = tmp_path / "source.mov"
    source.write_bytes(MP4_BYTES)
    saved = tmp_path / "saved"
    saved.mkdir()

    async with aiofiles.open(source, "rb") as f:
        outcome = await UploadPersister(saved, chunk_size=32).persist(f, "trip.mov")

    assert outcome.path.read_bytes() == MP4_BYTES
    assert outcome.path.suffix == ".mov"
