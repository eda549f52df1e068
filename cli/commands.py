"""Command handler functions for CLI operations."""

import os
from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.config import Config
from cli.models import (
    CopyCommand,
    DownloadCommand,
    HeaderCommand,
    ListCommand,
    MoveCommand,
    RemoveCommand,
    SyncDownCommand,
    SyncUpCommand,
    TreeCommand,
    UploadCommand,
)
from cli.utils import format_file_size, format_timestamp, read_file_with_progress, write_progress
from filesystem.cloudsync import CloudSync
from filesystem.filesystem import Filesystem
from filesystem.types import DirectoryEntry

logger = get_logger(__name__)


_filesystem: Optional[Filesystem] = None


def default_config_path() -> Path:
    return Path.home() / '.hookfs' / 'config.json'


async def get_filesystem() -> Filesystem:
    """
    Get or create the global Filesystem instance, loading the local data file once.

    Returns:
        Filesystem instance

    Raises:
        ValueError: If no webhook URL is configured
    """
    global _filesystem
    if _filesystem is None:
        logger.debug("Creating new Filesystem instance")
        config = Config(default_config_path())
        if not config.get_webhook_url():
            raise ValueError(
                f"No webhook configured. Set HOOKFS_WEBHOOK or 'webhook_url' in {config.config_path}"
            )
        fs = Filesystem.from_config(config)
        await fs.load_data_file()
        _filesystem = fs
    return _filesystem


async def close_filesystem() -> None:
    """Close the global Filesystem instance, if any."""
    global _filesystem
    if _filesystem is not None:
        await _filesystem.close()
        _filesystem = None


def _format_listing_line(name: str, entry) -> str:
    if isinstance(entry, DirectoryEntry):
        return f"  d  {'-':>10}  {'':20}  {name}/"

    line = f"  -  {format_file_size(entry.size):>10}  {format_timestamp(entry.created_at):20}  {name}"
    if entry.comment:
        line += f"  # {entry.comment}"
    return line


async def handle_ls(cmd: ListCommand, fs: Filesystem) -> str:
    """
    Handle 'ls' command.

    Args:
        cmd: ListCommand with directory path
        fs: Filesystem to query

    Returns:
        Formatted directory listing
    """
    items = fs.readdir(cmd.path)
    if not items:
        return f"{cmd.path} is empty"

    output = [f"{cmd.path} ({len(items)} item(s)):"]
    output.extend(_format_listing_line(name, entry) for name, entry in items)
    return '\n'.join(output)


async def handle_tree(cmd: TreeCommand, fs: Filesystem) -> str:
    """Handle 'tree' command: every file under a directory with its size."""
    files = sorted(fs.walk(cmd.path), key=lambda item: item[1])
    if not files:
        return f"No files under {cmd.path}"

    total = sum(file.size for file, _ in files)
    output = [f"{len(files)} file(s), {format_file_size(total)}:"]
    output.extend(f"  {path} ({format_file_size(file.size)})" for file, path in files)
    return '\n'.join(output)


async def handle_upload(cmd: UploadCommand, fs: Filesystem) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with local path, remote path and comment
        fs: Filesystem to write into

    Returns:
        Success message with upload details

    Raises:
        FileNotFoundError: If the local file does not exist
    """
    if not os.path.isfile(cmd.local_path):
        raise FileNotFoundError(f"Local file not found: {cmd.local_path}")

    logger.info(f"Executing upload command: {cmd.local_path} -> {cmd.remote_path}")
    label = os.path.basename(cmd.local_path)
    entry = await fs.write_file_from_stream(
        read_file_with_progress(cmd.local_path, label),
        cmd.remote_path,
        comment=cmd.comment,
    )
    await fs.write_data_file()

    return f"Uploaded: {cmd.remote_path} ({format_file_size(entry.size)})"


async def handle_download(cmd: DownloadCommand, fs: Filesystem) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with remote and local paths
        fs: Filesystem to read from

    Returns:
        Success message with download details
    """
    logger.info(f"Executing download command: {cmd.remote_path} -> {cmd.local_path}")
    entry = fs.get_entry(cmd.remote_path)
    stream = await fs.create_read_stream(cmd.remote_path)

    output_file = Path(cmd.local_path)
    if output_file.is_dir():
        output_file = output_file / Path(cmd.remote_path.rstrip('/')).name
    output_file.parent.mkdir(parents=True, exist_ok=True)

    label = Path(cmd.remote_path).name
    downloaded = 0

    with open(output_file, 'wb') as f:
        async for chunk in stream:
            f.write(chunk)
            downloaded += len(chunk)
            write_progress("Downloading", label, downloaded, entry.size)

    print()
    logger.debug("Download command completed")
    return f"Downloaded: {cmd.remote_path} ({format_file_size(downloaded)})\nSaved to: {output_file.absolute()}"


async def handle_mv(cmd: MoveCommand, fs: Filesystem) -> str:
    destination = fs.mv(cmd.source, cmd.destination)
    await fs.write_data_file()
    return f"Moved: {cmd.source} -> {destination}"


async def handle_cp(cmd: CopyCommand, fs: Filesystem) -> str:
    destination = fs.cp(cmd.source, cmd.destination)
    await fs.write_data_file()
    return f"Copied: {cmd.source} -> {destination}"


async def handle_rm(cmd: RemoveCommand, fs: Filesystem) -> str:
    removed = fs.rm(cmd.path)
    await fs.write_data_file()
    kind = "directory" if isinstance(removed, DirectoryEntry) else "file"
    return f"Removed {kind}: {cmd.path}"


async def handle_sync_up(cmd: SyncUpCommand, fs: Filesystem) -> str:
    """
    Handle 'sync-up' command.

    The data file is rewritten afterwards because the pointer message id may
    have been created during the upload.
    """
    link = await CloudSync(fs).upload()
    await fs.write_data_file()
    return f"Snapshot published: {link}"


async def handle_sync_down(cmd: SyncDownCommand, fs: Filesystem) -> str:
    """Handle 'sync-down' command."""
    if not await CloudSync(fs).download():
        await fs.write_data_file()
        return "No snapshot published yet."

    await fs.write_data_file()
    count = sum(1 for _ in fs.walk('/'))
    return f"Snapshot downloaded: {count} file(s)."


async def handle_header(cmd: HeaderCommand, fs: Filesystem) -> str:
    return '\n'.join(f"{key}: {value}" for key, value in fs.header.items())
