"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from common.logging_config import get_logger
from cli.commands import (
    handle_cp,
    handle_download,
    handle_header,
    handle_ls,
    handle_mv,
    handle_rm,
    handle_sync_down,
    handle_sync_up,
    handle_tree,
    handle_upload,
)
from cli.completer import HookFSCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
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
from cli.parser import ParseError, parse_command
from filesystem.exceptions import HookFSError

logger = get_logger(__name__)

HANDLERS = {
    ListCommand: handle_ls,
    TreeCommand: handle_tree,
    UploadCommand: handle_upload,
    DownloadCommand: handle_download,
    MoveCommand: handle_mv,
    CopyCommand: handle_cp,
    RemoveCommand: handle_rm,
    SyncUpCommand: handle_sync_up,
    SyncDownCommand: handle_sync_down,
    HeaderCommand: handle_header,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


async def dispatch_command(cmd_obj, fs) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return await handler(cmd_obj, fs)


async def run_line(user_input: str, fs) -> str:
    """
    Parse and execute one command line.

    Raises:
        ParseError: If the line is not a valid command
        HookFSError: If the filesystem operation fails
        OSError: If a local file cannot be read or written
    """
    cmd_obj = parse_command(user_input)
    logger.debug(f"Dispatching {cmd_obj}")
    return await dispatch_command(cmd_obj, fs)


async def repl_loop(fs) -> None:
    """Start interactive REPL with prompt_toolkit."""
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=HookFSCompleter(fs), history=history, style=STYLE
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            user_input = await session.prompt_async([("class:prompt", PROMPT_TEXT)])
            line = user_input.strip()

            if not line:
                continue

            if line == "exit":
                print("Goodbye!")
                break

            if line == "help":
                print(HELP_TEXT)
                continue

            if line == "clear":
                clear_screen()
                show_welcome()
                continue

            print(await run_line(line, fs))

        except (ParseError, HookFSError, OSError) as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break
