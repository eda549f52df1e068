"""In-memory directory tree with path-addressed CRUD operations."""

import copy
import logging
import posixpath
from typing import Iterator, List, Tuple

from filesystem.exceptions import EntryNotFoundError, InvalidPathError, TypeMismatchError
from filesystem.types import DirectoryEntry, Entry, FileEntry

logger = logging.getLogger(__name__)

RESERVED_PATH_CHARACTERS = (':', '\n', '\r')


def split_path(path: str) -> List[str]:
    """
    Split a POSIX-style path into its non-empty segments.

    Args:
        path: Path relative to the root ("/a/b/", "a//b" and "/a/b" are equivalent)

    Returns:
        List of path segments
    """
    return [segment for segment in path.split('/') if segment]


def join_path(*segments: str) -> str:
    """Join segments into an absolute, normalized path."""
    return '/' + '/'.join(segment for part in segments for segment in split_path(part))


def resolve_target(src: str, dst: str) -> str:
    """
    Apply copy-into-directory semantics: a trailing separator on the
    destination appends the source's base name.
    """
    if dst.endswith('/'):
        return dst + posixpath.basename(src.rstrip('/'))
    return dst


def validate_path(path: str) -> List[str]:
    """
    Validate a path that is about to be written into the tree.

    Raises:
        InvalidPathError: If the path is the root or holds a reserved character
    """
    segments = split_path(path)
    if not segments:
        raise InvalidPathError(f"Cannot write to the root directory: '{path}'")

    for character in RESERVED_PATH_CHARACTERS:
        if character in path:
            raise InvalidPathError(f"Path contains reserved character {character!r}: '{path}'")

    return segments


class Namespace:
    """
    Path-addressed view over a single root directory.

    All operations are pure in-memory mutation and never suspend.
    """

    def __init__(self, root: DirectoryEntry = None):
        self.root = root if root is not None else DirectoryEntry()

    def clear(self) -> None:
        """Drop every entry."""
        self.root = DirectoryEntry()

    def get_entry(self, path: str) -> Entry:
        """
        Resolve a path to its entry.

        Args:
            path: Path of the file or directory

        Returns:
            The FileEntry or DirectoryEntry at the path (the root for "/")

        Raises:
            EntryNotFoundError: If any segment does not exist
        """
        current: Entry = self.root

        for segment in split_path(path):
            if not isinstance(current, DirectoryEntry) or segment not in current.items:
                raise EntryNotFoundError(f"No such file or directory: '{path}'")
            current = current.items[segment]

        return current

    def exists(self, path: str) -> bool:
        try:
            self.get_entry(path)
        except EntryNotFoundError:
            return False
        return True

    def check_insertable(self, path: str) -> None:
        """
        Check that set_entry(path, ...) would succeed, without mutating the tree.

        Raises:
            InvalidPathError: If the path is the root or holds a reserved character
            TypeMismatchError: If a parent segment is an existing file
        """
        segments = validate_path(path)
        current: Entry = self.root

        for index, segment in enumerate(segments[:-1]):
            current = current.items.get(segment)
            if current is None:
                return
            if not isinstance(current, DirectoryEntry):
                raise TypeMismatchError(
                    f"Not a directory: '{join_path(*segments[:index + 1])}'"
                )

    def set_entry(self, path: str, entry: Entry) -> None:
        """
        Insert or overwrite the entry at path, creating missing parent directories.

        Raises:
            InvalidPathError: If the path is the root or holds a reserved character
            TypeMismatchError: If a parent segment is an existing file
        """
        segments = validate_path(path)
        parent = self.root

        for index, segment in enumerate(segments[:-1]):
            child = parent.items.get(segment)
            if child is None:
                child = DirectoryEntry()
                parent.items[segment] = child
            elif not isinstance(child, DirectoryEntry):
                raise TypeMismatchError(
                    f"Not a directory: '{join_path(*segments[:index + 1])}'"
                )
            parent = child

        parent.items[segments[-1]] = entry

    def rm(self, path: str) -> Entry:
        """
        Remove the file or whole directory subtree at path.

        Returns:
            The removed entry

        Raises:
            InvalidPathError: If path is the root
            EntryNotFoundError: If the target or one of its parents does not exist
        """
        segments = split_path(path)
        if not segments:
            raise InvalidPathError("Cannot remove the root directory")

        parent = self.get_entry(join_path(*segments[:-1]))
        if not isinstance(parent, DirectoryEntry) or segments[-1] not in parent.items:
            raise EntryNotFoundError(f"No such file or directory: '{path}'")

        return parent.items.pop(segments[-1])

    def mv(self, src: str, dst: str) -> str:
        """
        Move an entry. A trailing separator on dst moves src into that directory.

        Returns:
            The resolved destination path
        """
        dst = resolve_target(src, dst)
        entry = self.get_entry(src)

        src_segments = split_path(src)
        dst_segments = validate_path(dst)

        if src_segments == dst_segments:
            return join_path(dst)

        if isinstance(entry, DirectoryEntry) and dst_segments[:len(src_segments)] == src_segments:
            raise InvalidPathError(f"Cannot move '{src}' into itself ('{dst}')")

        self.rm(src)
        try:
            self.set_entry(dst, entry)
        except Exception:
            self.set_entry(src, entry)
            raise

        logger.debug(f"Moved {src} -> {dst}")
        return join_path(dst)

    def cp(self, src: str, dst: str) -> str:
        """
        Deep-copy an entry. A trailing separator on dst copies src into that directory.

        Returns:
            The resolved destination path
        """
        dst = resolve_target(src, dst)
        entry = self.get_entry(src)

        self.set_entry(dst, copy.deepcopy(entry))

        logger.debug(f"Copied {src} -> {dst}")
        return join_path(dst)

    def walk(self, path: str = '/') -> Iterator[Tuple[FileEntry, str]]:
        """
        Depth-first traversal of every file under path.

        Yields:
            (FileEntry, full_path) pairs
        """
        entry = self.get_entry(path)
        base = join_path(path)

        if isinstance(entry, FileEntry):
            yield entry, base
            return

        yield from self._walk_directory(entry, base)

    def _walk_directory(self, directory: DirectoryEntry, prefix: str) -> Iterator[Tuple[FileEntry, str]]:
        for name, entry in list(directory.items.items()):
            full_path = posixpath.join(prefix, name)
            if isinstance(entry, DirectoryEntry):
                yield from self._walk_directory(entry, full_path)
            else:
                yield entry, full_path

    def readdir(self, path: str = '/') -> List[Tuple[str, Entry]]:
        """
        List the direct children of a directory, sorted by name.

        Raises:
            EntryNotFoundError: If the directory does not exist
            TypeMismatchError: If path is a file
        """
        entry = self.get_entry(path)
        if not isinstance(entry, DirectoryEntry):
            raise TypeMismatchError(f"Not a directory: '{path}'")

        return sorted(entry.items.items(), key=lambda item: item[0])
