"""Utility functions for CLI operations."""

import os
import sys
from datetime import datetime, timezone
from typing import Iterator

from cli.constants import GREEN, RESET

READ_CHUNK_SIZE = 64 * 1024


def read_file_with_progress(file_path: str, label: str) -> Iterator[bytes]:
    """
    Yield a local file in chunks while displaying upload progress to stdout.

    Args:
        file_path: Path of the local file
        label: Display name for the progress line

    Yields:
        File content chunks
    """
    file_size = os.path.getsize(file_path)
    uploaded = 0

    with open(file_path, 'rb') as f:
        while True:
            chunk = f.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            uploaded += len(chunk)
            write_progress("Uploading", label, uploaded, file_size)
            yield chunk

    sys.stdout.write('\n')
    sys.stdout.flush()


def write_progress(verb: str, label: str, done: int, total: int) -> None:
    """Rewrite the current terminal line with a progress report."""
    if total > 0:
        progress = (done / total) * 100
        sys.stdout.write(
            f"\r{verb} {label}: {format_file_size(done)} / {format_file_size(total)} ({GREEN}{progress:.1f}%{RESET})"
        )
    else:
        sys.stdout.write(f"\r{verb} {label}: {format_file_size(done)}")
    sys.stdout.flush()


def format_timestamp(created_at_ms: int) -> str:
    """Format a millisecond epoch timestamp as UTC ISO-8601 without microseconds."""
    moment = datetime.fromtimestamp(created_at_ms / 1000, tz=timezone.utc)
    return moment.replace(microsecond=0).isoformat()


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
