"""cfstream CLI - Main commands."""
import asyncio
import json
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TransferSpeedColumn,
)

from cfstream import __version__
from cfstream.core.exceptions import StreamError
from cfstream.core.logging import enable_debug_logging
from cfstream.core.settings import StreamSettings, default_config_path

app = typer.Typer(
    name="cfstream",
    help="Video streaming service CLI",
    add_completion=False
)
upload_app = typer.Typer(help="Upload videos", add_completion=False)
video_app = typer.Typer(help="Manage videos", add_completion=False)
config_app = typer.Typer(help="Manage configuration", add_completion=False)
app.add_typer(upload_app, name="upload")
app.add_typer(video_app, name="video")
app.add_typer(config_app, name="config")

console = Console()

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(h|m|s)")


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def parse_duration(value: str) -> timedelta:
    """Parse durations like '1h', '30m', '1h30m', '90s'."""
    value = value.strip()
    if not value or _DURATION_PART.sub('', value):
        raise ValueError(f"invalid duration: {value!r}")
    units = {'h': 'hours', 'm': 'minutes', 's': 'seconds'}
    kwargs: Dict[str, float] = {}
    for amount, unit in _DURATION_PART.findall(value):
        kwargs[units[unit]] = kwargs.get(units[unit], 0) + float(amount)
    return timedelta(**kwargs)


def parse_metadata(raw: Optional[str]) -> Dict[str, Any]:
    """Parse a --metadata JSON object."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        console.print(f"[red]Invalid metadata JSON: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print("[red]Metadata must be a JSON object[/red]")
        raise typer.Exit(1)
    return data


def load_settings() -> StreamSettings:
    try:
        return StreamSettings.load().check()
    except StreamError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def format_bytes(size: int) -> str:
    """Format a byte count in human-readable form."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    value = float(size)
    for prefix in "KMGTPE":
        value /= unit
        if value < unit:
            break
    return f"{value:.1f} {prefix}B"


def print_record(data: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        console.print_json(data=data)
        return
    for key, value in data.items():
        if value in (None, '', {}):
            continue
        console.print(f"{key}: {value}", markup=False)


def wants_json(flag: bool, settings: StreamSettings) -> bool:
    return flag or settings.default_output == 'json'


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
):
    """Upload and manage videos."""
    if version:
        console.print(f"cfstream version {__version__}")
        raise typer.Exit()
    if verbose:
        enable_debug_logging()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@upload_app.command("file")
def upload_file(
    file_path: Path = typer.Argument(..., help="Local video file to upload", exists=True, dir_okay=False),
    name: str = typer.Option(None, "--name", "-n", help="Video name (defaults to file name)"),
    metadata: str = typer.Option(None, "--metadata", "-m", help="Video metadata as JSON"),
    wait: bool = typer.Option(False, "--wait", "-w", help="Wait until the video is ready to stream"),
    interval: float = typer.Option(5.0, "--interval", min=0, help="Seconds between status checks with --wait"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
    as_json: bool = typer.Option(False, "--json", help="Print the video record as JSON"),
):
    """Upload a local video file."""
    from cfstream import StreamClient
    from cfstream.core.upload.models import UploadProgress

    settings = load_settings()
    meta = parse_metadata(metadata)

    async def do_upload():
        async with StreamClient(settings) as stream:
            size = file_path.stat().st_size
            if quiet:
                video = await stream.upload(file_path, name=name, metadata=meta)
            else:
                console.print(f"Uploading {escape(file_path.name)} ({format_bytes(size)})...")
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    DownloadColumn(),
                    TransferSpeedColumn(),
                    console=console
                ) as progress:
                    task = progress.add_task(f"Uploading {escape(file_path.name)}", total=size)

                    def on_progress(p: UploadProgress):
                        progress.update(task, completed=p.bytes_sent, total=p.bytes_total)

                    video = await stream.upload(
                        file_path,
                        name=name,
                        metadata=meta,
                        progress_callback=on_progress
                    )
                console.print("[green]Upload complete[/green]")

            if wait and not video.ready_to_stream:
                if not quiet:
                    console.print("Processing video...")

                def on_status(v):
                    if not quiet:
                        details = f" ({v.status_details})" if v.status_details else ""
                        console.print(f"Status: {v.status}{details}", markup=False)

                video = await stream.wait_until_ready(video.uid, interval=interval, on_status=on_status)

            return video

    try:
        video = run_async(do_upload())
    except StreamError as e:
        console.print(f"[red]Upload failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if wants_json(as_json, settings):
        print_record(video.to_dict(), True)
    else:
        console.print(f"Video ID: {video.uid}", markup=False)
        console.print(f"Status: {video.status}", markup=False)
        if video.preview:
            console.print(f"Preview: {video.preview}", markup=False)


@upload_app.command("url")
def upload_url(
    url: str = typer.Argument(..., help="URL of the video to import"),
    name: str = typer.Option(None, "--name", "-n", help="Video name"),
    metadata: str = typer.Option(None, "--metadata", "-m", help="Video metadata as JSON"),
    as_json: bool = typer.Option(False, "--json", help="Print the video record as JSON"),
):
    """Import a video from a URL."""
    from cfstream import StreamClient, UploadOptions

    settings = load_settings()
    options = UploadOptions(name=name, metadata=parse_metadata(metadata))

    async def do_import():
        async with StreamClient(settings) as stream:
            return await stream.upload_from_url(url, options)

    try:
        video = run_async(do_import())
    except StreamError as e:
        console.print(f"[red]Upload failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if wants_json(as_json, settings):
        print_record(video.to_dict(), True)
    else:
        console.print("Upload initiated")
        console.print(f"Video ID: {video.uid}", markup=False)
        console.print(f"Status: {video.status}", markup=False)
        console.print("Processing happens asynchronously. Use 'cfstream video get' to check status.")


@upload_app.command("direct")
def upload_direct(
    expires: str = typer.Option("1h", "--expires", help="Expiration duration (e.g. 1h, 30m)"),
    max_duration: int = typer.Option(0, "--max-duration", help="Maximum video duration in seconds"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Create a one-time direct upload URL."""
    from cfstream import StreamClient
    from cfstream.core.api import DirectUploadOptions

    settings = load_settings()
    try:
        expiry = datetime.now(timezone.utc).replace(microsecond=0) + parse_duration(expires)
    except ValueError as e:
        console.print(f"[red]Invalid expiry duration: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    options = DirectUploadOptions(
        max_duration_seconds=max_duration,
        expiry=expiry,
        require_signed_urls=True
    )

    async def do_create():
        async with StreamClient(settings) as stream:
            return await stream.create_direct_upload_url(options)

    try:
        result = run_async(do_create())
    except StreamError as e:
        console.print(f"[red]Failed to create direct upload URL: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    print_record(result.to_dict(), wants_json(as_json, settings))


@video_app.command("get")
def video_get(
    video_id: str = typer.Argument(..., help="Video ID"),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
):
    """Show details for a video."""
    from cfstream import StreamClient

    settings = load_settings()

    async def do_get():
        async with StreamClient(settings) as stream:
            return await stream.get_video(video_id)

    try:
        video = run_async(do_get())
    except StreamError as e:
        console.print(f"[red]Failed to get video: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    print_record(video.to_dict(), wants_json(as_json, settings))


@video_app.command("list")
def video_list(
    search: str = typer.Option(None, "--search", help="Search by video name"),
    status: str = typer.Option(None, "--status", help="Filter by processing status"),
    limit: int = typer.Option(None, "--limit", help="Maximum number of videos"),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
):
    """List videos."""
    from cfstream import StreamClient
    from cfstream.core.api import ListOptions

    settings = load_settings()
    options = ListOptions(search=search, status=status, limit=limit)

    async def do_list():
        async with StreamClient(settings) as stream:
            return await stream.list_videos(options)

    try:
        videos = run_async(do_list())
    except StreamError as e:
        console.print(f"[red]Failed to list videos: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if wants_json(as_json, settings):
        console.print_json(data=[v.to_dict() for v in videos])
        return
    for video in videos:
        console.print(f"{video.uid}  {video.status:<10}  {video.name}", markup=False)


@video_app.command("delete")
def video_delete(
    video_id: str = typer.Argument(..., help="Video ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a video."""
    from cfstream import StreamClient

    settings = load_settings()
    if not yes and not typer.confirm(f"Delete video {video_id}?"):
        console.print("Cancelled")
        raise typer.Exit()

    async def do_delete():
        async with StreamClient(settings) as stream:
            await stream.delete_video(video_id)

    try:
        run_async(do_delete())
    except StreamError as e:
        console.print(f"[red]Failed to delete video: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Deleted video {escape(video_id)}[/green]")


@video_app.command("update")
def video_update(
    video_id: str = typer.Argument(..., help="Video ID"),
    name: str = typer.Option(None, "--name", "-n", help="New video name"),
    metadata: str = typer.Option(None, "--metadata", "-m", help="Replacement metadata as JSON"),
    require_signed_urls: Optional[bool] = typer.Option(
        None, "--require-signed-urls/--no-require-signed-urls", help="Require signed playback tokens"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
):
    """Update video metadata."""
    from cfstream import StreamClient
    from cfstream.core.api import UpdateOptions

    settings = load_settings()
    meta = parse_metadata(metadata) if metadata else None
    if name:
        meta = {**(meta or {}), 'name': name}
    if meta is None and require_signed_urls is None:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(1)

    options = UpdateOptions(meta=meta, require_signed_urls=require_signed_urls)

    async def do_update():
        async with StreamClient(settings) as stream:
            return await stream.update_video(video_id, options)

    try:
        video = run_async(do_update())
    except StreamError as e:
        console.print(f"[red]Failed to update video: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    print_record(video.to_dict(), wants_json(as_json, settings))


@config_app.command("set")
def config_set(
    account_id: str = typer.Option(None, "--account-id", help="Account ID"),
    api_token: str = typer.Option(None, "--api-token", help="API token"),
    api_url: str = typer.Option(None, "--api-url", help="API base URL"),
    output: str = typer.Option(None, "--output", "-o", help="Default output format (text, json)"),
):
    """Store settings in the config file."""
    path = default_config_path()
    try:
        settings = StreamSettings.load()
    except StreamError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    if account_id:
        settings.account_id = account_id
    if api_token:
        settings.api_token = api_token
    if api_url:
        settings.api_url = api_url
    if output:
        settings.default_output = output

    try:
        settings.check()
    except StreamError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    saved = settings.save(path)
    console.print(f"[green]Configuration saved to {escape(str(saved))}[/green]")


@config_app.command("show")
def config_show():
    """Show effective settings (token masked)."""
    try:
        settings = StreamSettings.load()
    except StreamError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    token = settings.api_token
    masked = f"{token[:4]}...{token[-4:]}" if len(token) > 8 else ('*' * len(token))
    console.print(f"Config file: {default_config_path()}", markup=False)
    console.print(f"account_id: {settings.account_id or '(not set)'}", markup=False)
    console.print(f"api_token: {masked or '(not set)'}", markup=False)
    console.print(f"api_url: {settings.api_url}", markup=False)
    console.print(f"default_output: {settings.default_output}", markup=False)


if __name__ == "__main__":
    app()
