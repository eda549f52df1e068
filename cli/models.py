"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class ListCommand:
    """List a directory."""

    path: str = "/"
    command: Literal["ls"] = "ls"


@dataclass(frozen=True)
class TreeCommand:
    """List every file under a directory."""

    path: str = "/"
    command: Literal["tree"] = "tree"


@dataclass(frozen=True)
class UploadCommand:
    """Upload a local file to a remote path."""

    local_path: str
    remote_path: str
    comment: str = ""
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class DownloadCommand:
    """Download a remote file to a local path."""

    remote_path: str
    local_path: str
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class MoveCommand:
    """Move an entry."""

    source: str
    destination: str
    command: Literal["mv"] = "mv"


@dataclass(frozen=True)
class CopyCommand:
    """Copy an entry."""

    source: str
    destination: str
    command: Literal["cp"] = "cp"


@dataclass(frozen=True)
class RemoveCommand:
    """Remove an entry."""

    path: str
    command: Literal["rm"] = "rm"


@dataclass(frozen=True)
class SyncUpCommand:
    """Publish the namespace snapshot."""

    command: Literal["sync-up"] = "sync-up"


@dataclass(frozen=True)
class SyncDownCommand:
    """Replace the namespace with the published snapshot."""

    command: Literal["sync-down"] = "sync-down"


@dataclass(frozen=True)
class HeaderCommand:
    """Show the data file header."""

    command: Literal["header"] = "header"


CommandRequest = (
    ListCommand
    | TreeCommand
    | UploadCommand
    | DownloadCommand
    | MoveCommand
    | CopyCommand
    | RemoveCommand
    | SyncUpCommand
    | SyncDownCommand
    | HeaderCommand
)
