"""Shared fixtures: sample media payloads and a local HTTP server serving them."""

import asyncio
from collections import Counter

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from media_acquire.models.config import PipelineConfig

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 256
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01" + b"\x00" * 256
GIF_BYTES = b"GIF89a\x01\x00\x01\x00" + b"\x00" * 64
WEBP_BYTES = b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 64
MP4_BYTES = (
    b"\x00\x00\x00\x20ftypisom\x00\x00\x02\x00isomiso2avc1mp41"
    + b"\x00\x00\x00\x08free"
    + b"\x00" * 512
)
WEBM_BYTES = (
    b"\x1a\x45\xdf\xa3\x9f\x42\x86\x81\x01\x42\xf7\x81\x01\x42\xf2\x81\x04"
    b"\x42\xf3\x81\x08\x42\x82\x84webm\x42\x87\x81\x04\x42\x85\x81\x02"
    + b"\x00" * 256
)
HTML_BYTES = b"<!DOCTYPE html><html><body>Not Found</body></html>"


def _static(payload: bytes, content_type: str):
    async def handler(request: web.Request) -> web.Response:
        return web.Response(body=payload, content_type=content_type)

    return handler


async def _empty(request: web.Request) -> web.Response:
    return web.Response(status=200)


async def _not_found(request: web.Request) -> web.Response:
    return web.Response(status=404, text="missing")


async def _server_error(request: web.Request) -> web.Response:
    return web.Response(status=500, text="boom")


async def _redirect(request: web.Request) -> web.Response:
    raise web.HTTPFound("/image.png")


async def _slow(request: web.Request) -> web.Response:
    await asyncio.sleep(2)
    return web.Response(body=PNG_BYTES, content_type="image/png")


async def _stall(request: web.Request) -> web.StreamResponse:
    response = web.StreamResponse(headers={"Content-Length": "100000"})
    response.content_type = "video/mp4"
    await response.prepare(request)
    await response.write(MP4_BYTES[:128])
    await asyncio.sleep(2)
    return response


async def _truncated(request: web.Request) -> web.StreamResponse:
    response = web.StreamResponse(headers={"Content-Length": "100000"})
    response.content_type = "video/mp4"
    await response.prepare(request)
    await response.write(MP4_BYTES[:128])
    request.transport.close()
    return response


@web.middleware
async def count_requests(request: web.Request, handler):
    request.app["hits"][request.path] += 1
    return await handler(request)


def build_media_app() -> web.Application:
    app = web.Application(middlewares=[count_requests])
    app["hits"] = Counter()
    app.router.add_get("/image.png", _static(PNG_BYTES, "image/png"))
    app.router.add_get("/photo", _static(JPEG_BYTES, "application/octet-stream"))
    app.router.add_get("/anim.jpg", _static(GIF_BYTES, "image/jpeg"))
    app.router.add_get("/video.mp4", _static(MP4_BYTES, "video/mp4"))
    app.router.add_get("/clip", _static(WEBM_BYTES, "video/webm"))
    app.router.add_get("/fake.mp4", _static(PNG_BYTES, "video/mp4"))
    app.router.add_get("/page.html", _static(HTML_BYTES, "text/html"))
    app.router.add_get("/empty", _empty)
    app.router.add_get("/missing", _not_found)
    app.router.add_get("/error", _server_error)
    app.router.add_get("/redirect", _redirect)
    app.router.add_get("/slow", _slow)
    app.router.add_get("/truncated", _truncated)
    app.router.add_get("/stall", _stall)
    return app


@pytest_asyncio.fixture
async def media_server():
    """A real HTTP server on localhost serving sample media."""
    server = TestServer(build_media_app())
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


@pytest.fixture
def url_for(media_server):
    def _url(path: str) -> str:
        return str(media_server.make_url(path))

    return _url


@pytest.fixture
def hits(media_server) -> Counter:
    return media_server.app["hits"]


@pytest.fixture
def config(tmp_path) -> PipelineConfig:
    return PipelineConfig(
        images_save_root=tmp_path / "images",
        videos_save_root=tmp_path / "videos",
        image_timeout_seconds=10,
        video_timeout_seconds=10,
        connect_timeout_seconds=5,
    )


async def wait_for_file(directory, timeout: float = 2.0):
    """Polls until a file appears in `directory`; used to cancel mid-write."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        files = [p for p in directory.iterdir() if p.is_file()]
        if files:
            return files[0]
        await asyncio.sleep(0.01)
    raise AssertionError(f"no file appeared in {directory}")
