"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable

import typer
from rich.console import Console
from rich.logging import RichHandler

from tfm_client import __version__
from tfm_client.api.client import TfmApiClient
from tfm_client.exceptions import TfmClientError
from tfm_client.media.resolver import LocalPathResolver
from tfm_client.models.config import ClientConfig
from tfm_client.models.entries import TrackDescriptor
from tfm_client.storage.cache import TrackCache

from .formatters import (
    format_error_with_suggestions,
    print_channels_table,
    print_config,
    print_entries_table,
    print_folders_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
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
log = logging.getLogger("tfm_client")

app = typer.Typer(
    name="tfm-client",
    help=(
        "Browse TelegramFileManager music catalogs and cache tracks locally. Use"
        " 'tfm-client <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    server: str | None = typer.Option(
        None, "--server", "-s", envvar="TFM_SERVER_URL", help="TFM server base URL."
    ),
    cache_dir: Path | None = typer.Option(
        None,
        "--cache-dir",
        envvar="TFM_CACHE_DIR",
        help="Directory for downloaded tracks.",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-v for info, -vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the effective configuration."
    ),
):
    """TFM catalog client"""
    if version:
        console.print(f"[bold]tfm-client[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "WARNING"
    if verbose == 1:
        log_level = "INFO"
    elif verbose >= 2:
        log_level = "DEBUG"
    log.setLevel(log_level)

    try:
        config = ClientConfig.from_env(server_url=server, cache_dir=cache_dir)
    except TfmClientError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    ctx.obj = config

    if show_config:
        print_config(config)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _run_with_client(
    ctx: typer.Context, action: Callable[[TfmApiClient], Awaitable[Any]]
) -> Any:
    """Runs `action` against a fresh client and renders library errors."""
    config: ClientConfig = ctx.obj

    async def _run():
        async with TfmApiClient(config) as client:
            return await action(client)

    try:
        return asyncio.run(_run())
    except TfmClientError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


@app.command()
def channels(ctx: typer.Context):
    """List all channels on the server."""
    result = _run_with_client(ctx, lambda client: client.fetch_channels())
    print_channels_table(result)


@app.command()
def favorites(ctx: typer.Context):
    """List favorite channels."""
    result = _run_with_client(ctx, lambda client: client.fetch_favorites())
    print_channels_table(result, title="Favorite Channels")


@app.command()
def tracks(
    ctx: typer.Context,
    channel_id: str = typer.Argument(..., help="Channel to list."),
    folder: str | None = typer.Option(
        None, "--folder", "-f", help="List a folder inside the channel."
    ),
    page_size: int | None = typer.Option(
        None, "--page-size", help="Items requested per page."
    ),
):
    """List every file of a channel or channel folder, across all pages."""
    if folder:
        result = _run_with_client(
            ctx,
            lambda client: client.fetch_folder_contents(channel_id, folder, page_size),
        )
        print_entries_table(result, title=f"Channel {channel_id} / {folder}")
    else:
        result = _run_with_client(
            ctx, lambda client: client.fetch_channel_tracks(channel_id, page_size)
        )
        print_entries_table(result, title=f"Channel {channel_id}")


@app.command()
def local(
    ctx: typer.Context,
    path: str = typer.Argument(
        "", help="Folder path on the server's local mirror (default: TFM_LOCAL_FOLDER)."
    ),
    folders_only: bool = typer.Option(
        False, "--folders", help="Only list the top-level local folders."
    ),
):
    """Browse the server's local file mirror."""
    if folders_only:
        result = _run_with_client(ctx, lambda client: client.fetch_local_folders())
        print_folders_table(result)
        return
    result = _run_with_client(ctx, lambda client: client.fetch_local_tracks(path))
    config: ClientConfig = ctx.obj
    print_entries_table(result, title=f"Local {path or config.local_folder or '/'}")


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to search for."),
    offset: int = typer.Option(0, "--offset", help="Number of results to skip."),
    limit: int | None = typer.Option(None, "--limit", help="Results per request."),
):
    """Search tracks across all channels."""
    result = _run_with_client(
        ctx, lambda client: client.search_tracks(query, offset, limit)
    )
    print_entries_table(result, title=f"Search '{query}'")


@app.command()
def urls(
    ctx: typer.Context,
    channel_id: str = typer.Argument(...),
    file_id: str = typer.Argument(...),
):
    """Print the stream and download URLs of a file."""
    config: ClientConfig = ctx.obj
    try:
        config.require_server_url()
    except TfmClientError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    client = TfmApiClient(config)
    console.print(f"[bold]Stream:[/bold]   {client.track_stream_url(channel_id, file_id)}")
    console.print(f"[bold]Download:[/bold] {client.track_download_url(channel_id, file_id)}")


@app.command()
def resolve(
    ctx: typer.Context,
    channel_id: str = typer.Argument(..., help="Channel holding the file."),
    file_id: str = typer.Argument(..., help="File identifier."),
    name: str = typer.Option("", "--name", help="File name, used for the extension."),
    size: int = typer.Option(0, "--size", help="Expected size in bytes, if known."),
    local_path: str = typer.Option(
        "", "--local-path", help="Path the server reports for the file, if any."
    ),
):
    """Download a track into the cache (or reuse it) and print its local path."""
    config: ClientConfig = ctx.obj
    try:
        config.require_server_url()
        url = TfmApiClient(config).track_download_url(channel_id, file_id)
        descriptor = TrackDescriptor(
            identifier=file_id,
            url=url,
            local_path=local_path,
            expected_size=size,
            display_name=name,
        )
        path = LocalPathResolver(config).resolve_local_path_sync(descriptor)
    except TfmClientError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    console.print(f"[green]✓[/green] {path}")


@app.command(name="clear-cache")
def clear_cache(ctx: typer.Context):
    """Delete every cached track."""
    config: ClientConfig = ctx.obj
    removed = TrackCache(config.cache_dir).clear()
    console.print(f"[green]✓ Cache cleared successfully ({removed} files removed).[/green]")
