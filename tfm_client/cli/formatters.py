"""
Functions for formatting and displaying data in the console using Rich.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tfm_client.models.config import ClientConfig
from tfm_client.models.entries import Channel, CollectionEntry, Folder
from tfm_client.utils.formatting import format_size, format_timestamp


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Pass --server or set TFM_SERVER_URL to the TFM server address.",
            "• Check that the cache directory is writable.",
        ],
        "NetworkError": [
            "• Check that the TFM server is running and reachable.",
            "• Verify the server address and port.",
        ],
        "RequestTimeoutError": [
            "• The server did not answer within the timeout.",
            "• Check the server load, then try again.",
        ],
        "DownloadTimeoutError": [
            "• The server did not answer within the timeout.",
            "• Large files on slow links may need another attempt.",
        ],
        "HttpError": [
            "• The server rejected the request.",
            "• The file may have been removed from the channel.",
        ],
        "ProtocolError": [
            "• The server answered with an error or an unexpected payload.",
            "• Make sure the server version exposes the /api/mobile endpoints.",
        ],
        "UnexpectedContentTypeError": [
            "• The server sent a web page instead of audio.",
            "• The server may require signing in again.",
        ],
        "TruncatedDownloadError": [
            "• The connection dropped before the file was complete.",
            "• Try the command again.",
        ],
        "WriteError": [
            "• Check free disk space in the cache directory.",
            "• Check the cache directory permissions.",
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


def print_channels_table(channels: list[Channel], title: str = "Channels"):
    console = Console()
    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Files", justify="right", style="green")
    table.add_column("★", justify="center")
    for channel in channels:
        table.add_row(
            str(channel.id),
            channel.name,
            channel.type,
            str(channel.file_count),
            "★" if channel.is_favorite else "",
        )
    console.print(table)


def print_entries_table(entries: list[CollectionEntry], title: str):
    """Displays catalog entries in server order."""
    console = Console()
    table = Table(title=f"{title} ({len(entries)} items)")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right", style="green")
    table.add_column("Category")
    table.add_column("Added", style="dim")
    for entry in entries:
        name = f"📁 {entry.name}" if entry.is_folder else entry.name
        table.add_row(
            entry.id,
            name,
            "" if entry.is_folder else format_size(entry.size),
            entry.category,
            format_timestamp(entry.date_created),
        )
    console.print(table)


def print_folders_table(folders: list[Folder]):
    console = Console()
    table = Table(title="Local Folders")
    table.add_column("Name", style="cyan")
    table.add_column("Path", style="dim")
    table.add_column("Subfolders", justify="center")
    for folder in folders:
        table.add_row(folder.name, folder.path, "✓" if folder.has_children else "")
    console.print(table)


def print_config(config: ClientConfig):
    """Displays the effective configuration."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_row("Server:", config.server_url or "[red]not configured[/red]")
    table.add_row("Cache Directory:", f"[dim]{config.cache_dir}[/dim]")
    table.add_row("Page Size:", str(config.page_size))
    table.add_row("Download Timeout:", f"{config.download_timeout:g}s")
    console.print(Panel(table, title="Configuration", border_style="cyan"))
