"""Custom completer for hookfs CLI with remote path autocompletion."""

from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, REMOTE_PATH_COMMANDS
from filesystem.exceptions import HookFSError
from filesystem.types import DirectoryEntry


class HookFSCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Remote path completion from the in-memory namespace for path commands
    """

    def __init__(self, fs):
        self.fs = fs

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.

        For the first token, completes command names.
        For arguments of remote path commands, completes namespace entries.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command not in REMOTE_PATH_COMMANDS:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        yield from self._complete_remote_paths(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_remote_paths(self, partial: str) -> Iterable[Completion]:
        """
        Complete the last path segment against the directory it lives in.

        Directories are offered with a trailing '/' so completion can continue.
        """
        if not partial.startswith("/"):
            partial = "/" + partial if partial else "/"
            start_offset = len(partial) - 1
        else:
            start_offset = len(partial)

        directory, _, prefix = partial.rpartition("/")
        directory = directory or "/"

        try:
            items = self.fs.readdir(directory)
        except HookFSError:
            return

        base = directory.rstrip("/")
        for name, entry in items:
            if not name.startswith(prefix):
                continue
            suggestion = f"{base}/{name}"
            if isinstance(entry, DirectoryEntry):
                suggestion += "/"
            yield Completion(suggestion, start_position=-start_offset)
