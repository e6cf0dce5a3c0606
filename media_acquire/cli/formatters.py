"""
Functions for formatting and displaying data in the console using Rich.
"""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from media_acquire.exceptions import DownloadFailure
from media_acquire.models.config import PipelineConfig
from media_acquire.models.media import SniffResult
from media_acquire.models.stats import AcquisitionStats
from media_acquire.utils.formatting import format_duration, format_size
from media_acquire.utils.path import shorten_path


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    root = error.cause if isinstance(error, DownloadFailure) else error
    error_type = type(root).__name__
    error_msg = str(error)

    suggestions_map = {
        "InvalidReferenceError": [
            "• URLs must start with http:// or https:// and include a host.",
            "• Quote URLs containing '&' or '?' in your shell.",
        ],
        "NetworkError": [
            "• A network connection issue occurred.",
            "• Check your internet connection or proxy settings.",
            "• Large videos may need a longer --timeout.",
        ],
        "HTTPStatusError": [
            "• The server refused the request. Check that the URL is still valid.",
            "• Signed or expiring links may need to be generated again.",
        ],
        "EmptyContentError": [
            "• The server returned an empty body for this URL.",
            "• Make sure the URL points directly at the media file.",
        ],
        "TypeMismatchError": [
            "• The downloaded content is not an image/video of a known format.",
            "• The URL may point to an HTML page instead of the file itself.",
        ],
        "MediaIOError": [
            "• Check free disk space and permissions on the save directory.",
        ],
        "ConfigurationError": [
            "• Check --images-dir / --videos-dir and the MEDIA_ACQUIRE_* variables.",
            "• Make sure the save directories are writable.",
        ],
        "NoValidImagesError": [
            "• Pass at least one image URL or local path.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config: PipelineConfig):
    """Displays the effective pipeline settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Images Directory:", f"[dim]{config.images_save_root}[/dim]")
    table.add_row("Videos Directory:", f"[dim]{config.videos_save_root}[/dim]")
    table.add_row("Image Timeout:", format_duration(config.image_timeout_seconds))
    table.add_row("Video Timeout:", format_duration(config.video_timeout_seconds))
    table.add_row("Chunk Size:", format_size(config.chunk_size))
    table.add_row(
        "Sniff Uploads:", "✓ Enabled" if config.sniff_uploads else "✗ Disabled"
    )

    console.print(
        Panel(table, title="[bold cyan]Settings[/bold cyan]", border_style="cyan")
    )


def print_paths_table(references: list[str], paths: list[str]):
    """Shows each input reference next to the local path it resolved to."""
    console = Console()
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Reference", style="cyan", overflow="fold")
    table.add_column("Local Path", style="green")

    for i, (reference, path) in enumerate(zip(references, paths, strict=True), 1):
        shown = "[dim](unchanged)[/dim]" if reference == path else shorten_path(path)
        table.add_row(str(i), reference, shown)
    console.print(table)


def print_sniff_result(filename: str, result: SniffResult | None):
    """Displays what the sniffer detected for a file."""
    console = Console()
    if result is None:
        console.print(
            f"[yellow]○[/] [dim]{filename}[/dim]: not a recognized image or video"
        )
        return
    media_class = "image" if result.is_image else "video"
    console.print(
        f"[green]✓[/] [dim]{filename}[/dim]: [bold]{result.extension}[/bold] "
        f"({result.mime_type}, {media_class})"
    )


def print_summary_panel(stats: AcquisitionStats):
    """Displays a final summary of the session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    if stats.images_downloaded:
        stats_table.add_row(
            "✓ Images:", f"[bold green]{stats.images_downloaded}[/bold green]"
        )
    if stats.videos_downloaded:
        stats_table.add_row(
            "✓ Videos:", f"[bold green]{stats.videos_downloaded}[/bold green]"
        )
    if stats.videos_uploaded:
        stats_table.add_row(
            "✓ Imported:", f"[bold green]{stats.videos_uploaded}[/bold green]"
        )
    if stats.passthrough:
        stats_table.add_row("○ Local Paths:", f"[yellow]{stats.passthrough}[/yellow]")
    if stats.files_removed:
        stats_table.add_row("Removed:", f"[yellow]{stats.files_removed}[/yellow]")
    if stats.failed:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.failed}[/bold red]")

    stats_table.add_row("", "")  # Spacer
    stats_table.add_row("Total Size:", f"[cyan]{format_size(stats.total_bytes)}[/cyan]")
    stats_table.add_row(
        "Time Elapsed:", f"[blue]{format_duration(stats.elapsed_seconds)}[/blue]"
    )

    border_color = "red" if stats.failed else "green"
    console.print()
    console.print(
        Panel(
            stats_table,
            title="[bold]Summary[/bold]",
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
