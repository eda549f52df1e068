"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
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


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL or command line

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]
    args = tokens[1:]

    if command_name == "ls":
        return _parse_single_path(args, "ls", ListCommand)
    elif command_name == "tree":
        return _parse_single_path(args, "tree", TreeCommand)
    elif command_name == "upload":
        return _parse_upload(args)
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "mv":
        source, destination = _parse_pair(args, "mv")
        return MoveCommand(source=source, destination=destination)
    elif command_name == "cp":
        source, destination = _parse_pair(args, "cp")
        return CopyCommand(source=source, destination=destination)
    elif command_name == "rm":
        return _parse_rm(args)
    elif command_name == "sync-up":
        _expect_no_args(args, "sync-up")
        return SyncUpCommand()
    elif command_name == "sync-down":
        _expect_no_args(args, "sync-down")
        return SyncDownCommand()
    elif command_name == "header":
        _expect_no_args(args, "header")
        return HeaderCommand()
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _expect_no_args(args: list[str], name: str) -> None:
    if args:
        raise ParseError(f"{name} takes no arguments")


def _parse_single_path(args: list[str], name: str, command_type):
    """Parse '<name> [path]' commands."""
    if len(args) > 1:
        raise ParseError(f"{name} takes at most 1 argument: [path]")
    return command_type(path=args[0] if args else "/")


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <local> <remote> [comment]' command."""
    if len(args) < 2:
        raise ParseError("upload requires at least 2 arguments: <local> <remote> [comment]")

    local_path, remote_path = args[0], args[1]
    comment = " ".join(args[2:])

    if remote_path.endswith("/"):
        remote_path += local_path.replace("\\", "/").rstrip("/").split("/")[-1]

    return UploadCommand(local_path=local_path, remote_path=remote_path, comment=comment)


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <remote> <local>' command."""
    if len(args) != 2:
        raise ParseError("download requires exactly 2 arguments: <remote> <local>")

    return DownloadCommand(remote_path=args[0], local_path=args[1])


def _parse_pair(args: list[str], name: str) -> tuple[str, str]:
    """Parse '<name> <from> <to>' commands."""
    if len(args) != 2:
        raise ParseError(f"{name} requires exactly 2 arguments: <from> <to>")
    return args[0], args[1]


def _parse_rm(args: list[str]) -> RemoveCommand:
    """Parse 'rm <path>' command."""
    if len(args) != 1:
        raise ParseError("rm requires exactly 1 argument: <path>")
    return RemoveCommand(path=args[0])
