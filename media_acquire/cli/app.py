"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import sys
from datetime import timedelta
from pathlib import Path

import aiofiles
import typer
from rich.console import Console
from rich.logging import RichHandler

from media_acquire import __version__
from media_acquire.core.processor import ImageProcessor, VideoProcessor
from media_acquire.exceptions import MediaAcquireError
from media_acquire.media.sniffer import TypeSniffer
from media_acquire.models.config import PipelineConfig
from media_acquire.models.stats import AcquisitionStats
from media_acquire.utils.formatting import parse_max_age

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_paths_table,
    print_sniff_result,
    print_summary_panel,
)

console = Console()

logging.basicConfig(
    level="WARNING",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("media_acquire")

app = typer.Typer(
    name="media-acquire",
    help=(
        "Download images and videos from URLs into validated local files. Use"
        " 'media-acquire <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_data_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("LOCALAPPDATA", "~\\AppData\\Local"))
    else:
        base_dir = Path(os.getenv("XDG_DATA_HOME", "~/.local/share"))
    return base_dir.expanduser() / "media-acquire"


DATA_DIR = get_data_dir()


def _load_config(ctx: typer.Context) -> PipelineConfig:
    try:
        return PipelineConfig.build(**ctx.obj)
    except MediaAcquireError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


def _run(coro) -> None:
    """Runs a command coroutine and renders pipeline errors as panels."""
    try:
        asyncio.run(coro)
    except MediaAcquireError as e:
        console.print(format_error_with_suggestions(e))
        log.debug("Full traceback:", exc_info=True)
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    images_dir: Path | None = typer.Option(
        None,
        "--images-dir",
        envvar="MEDIA_ACQUIRE_IMAGES_DIR",
        help="Where downloaded images are saved.",
    ),
    videos_dir: Path | None = typer.Option(
        None,
        "--videos-dir",
        envvar="MEDIA_ACQUIRE_VIDEOS_DIR",
        help="Where downloaded and imported videos are saved.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Total timeout in seconds for a single video download (default 600).",
    ),
    sniff_uploads: bool = typer.Option(
        False,
        "--sniff-uploads",
        help="Verify imported videos by content instead of trusting the file name.",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the effective settings and exit."
    ),
):
    """Media Acquire CLI"""
    if version:
        console.print(
            f"[bold]media-acquire[/bold] version [cyan]{__version__}[/cyan]"
        )
        raise typer.Exit()

    log_level = "WARNING"
    if verbose == 1:
        log_level = "INFO"
    elif verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("media_acquire").setLevel(log_level)

    ctx.obj = {
        "images_save_root": images_dir or DATA_DIR / "images",
        "videos_save_root": videos_dir or DATA_DIR / "videos",
        "video_timeout_seconds": timeout,
        "sniff_uploads": sniff_uploads,
    }

    if show_config:
        print_config(_load_config(ctx))
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def images(
    ctx: typer.Context,
    references: list[str] = typer.Argument(  # noqa: B008
        ..., help="Image URLs or local paths, processed in order."
    ),
):
    """Resolve image references to local files, downloading URLs."""
    config = _load_config(ctx)
    stats = AcquisitionStats()

    async def _images_async():
        async with ImageProcessor(config, stats=stats) as processor:
            with console.status("[cyan]Processing images...[/cyan]"):
                paths = await processor.process_images(references)
        print_paths_table(references, paths)
        print_summary_panel(stats)

    _run(_images_async())


@app.command()
def video(
    ctx: typer.Context,
    reference: str = typer.Argument(..., help="A video URL or local path."),
):
    """Resolve a video reference to a local file, downloading URLs."""
    config = _load_config(ctx)
    stats = AcquisitionStats()

    async def _video_async():
        async with VideoProcessor(config, stats=stats) as processor:
            with console.status("[cyan]Downloading video...[/cyan]"):
                path = await processor.process_video(reference)
        print_paths_table([reference], [path])
        print_summary_panel(stats)

    _run(_video_async())


@app.command(name="import-video")
def import_video(
    ctx: typer.Context,
    source: str = typer.Argument(
        ..., help="A video file to import, or '-' to read from standard input."
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Original file name (its extension is kept). Defaults to SOURCE.",
    ),
):
    """Copy a video stream into the videos directory under a generated name."""
    config = _load_config(ctx)
    stats = AcquisitionStats()
    original_name = name or ("upload" if source == "-" else Path(source).name)

    async def _import_async():
        async with VideoProcessor(config, stats=stats) as processor:
            if source == "-":
                path = await processor.save_uploaded_video(
                    sys.stdin.buffer, original_name
                )
            else:
                # save_uploaded_video maps its own OSErrors to MediaIOError,
                # so anything caught here comes from opening the source.
                try:
                    async with aiofiles.open(source, "rb") as stream:
                        path = await processor.save_uploaded_video(
                            stream, original_name
                        )
                except OSError as e:
                    console.print(f"[red]✗ Cannot open {source}: {e}[/red]")
                    raise typer.Exit(code=1) from e
        console.print(f"[green]✓ Imported to[/green] [dim]{path}[/dim]")
        print_summary_panel(stats)

    _run(_import_async())


@app.command()
def sniff(
    files: list[Path] = typer.Argument(  # noqa: B008
        ..., help="Files to identify by their content."
    ),
):
    """Detect the real media type of files from their leading bytes."""
    failed = False
    for file in files:
        try:
            result = TypeSniffer.sniff_file(file)
        except OSError as e:
            console.print(f"[red]✗ {file}: {e}[/red]")
            failed = True
            continue
        print_sniff_result(str(file), result)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def cleanup(
    ctx: typer.Context,
    max_age_hours: float = typer.Option(
        24.0,
        "--max-age-hours",
        "-a",
        help="Remove files last modified more than this many hours ago.",
    ),
    include_images: bool = typer.Option(
        True, "--images/--no-images", help="Clean the images directory."
    ),
    include_videos: bool = typer.Option(
        True, "--videos/--no-videos", help="Clean the videos directory."
    ),
):
    """Delete saved media older than the given age."""
    try:
        max_age = timedelta(seconds=parse_max_age(max_age_hours))
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e

    config = _load_config(ctx)
    stats = AcquisitionStats()

    async def _cleanup_async():
        if include_images:
            async with ImageProcessor(config, stats=stats) as processor:
                await processor.cleanup_old_images(max_age)
        if include_videos:
            async with VideoProcessor(config, stats=stats) as processor:
                await processor.cleanup_old_videos(max_age)
        console.print(
            f"[green]✓ Removed {stats.files_removed} file(s) older than "
            f"{max_age_hours:g}h.[/green]"
        )

    _run(_cleanup_async())
