"""
Metadata text format.

A namespace document is a block of ``Key: value`` header lines, one blank
line, then one ``path:size:ctime:pieceIndexHandle:comment`` line per file.
Directories are never written; they are re-derived from file paths on load.

The comment and handle fields are percent-escaped so they can never contain
a raw field separator, space or line break::

    %  -> %25
    :  -> %3A
    ' '-> %20
    \\n -> %0A
    \\r -> %0D
"""

import getpass
import re
from typing import Dict, Iterable, Iterator, List, Tuple

from common.constants import (
    FILESYSTEM_VERSION,
    HEADER_AUTHOR,
    HEADER_DESCRIPTION,
    HEADER_VERSION,
)
from filesystem.exceptions import MetadataParseError
from filesystem.tree import Namespace
from filesystem.types import FileEntry

FIELD_SEPARATOR = ':'
PIECE_SEPARATOR = ','

_ESCAPES = {
    '%': '%25',
    ':': '%3A',
    ' ': '%20',
    '\n': '%0A',
    '\r': '%0D',
}
_UNESCAPES = {token: character for character, token in _ESCAPES.items()}
_ESCAPE_PATTERN = re.compile('|'.join(re.escape(c) for c in _ESCAPES))
_UNESCAPE_PATTERN = re.compile('|'.join(re.escape(t) for t in _UNESCAPES))


def escape_field(value: str) -> str:
    return _ESCAPE_PATTERN.sub(lambda match: _ESCAPES[match.group(0)], value)


def unescape_field(value: str) -> str:
    return _UNESCAPE_PATTERN.sub(lambda match: _UNESCAPES[match.group(0)], value)


def default_header() -> Dict[str, str]:
    """Header written by a fresh filesystem; overridden by whatever the data file holds."""
    try:
        author = getpass.getuser()
    except (KeyError, OSError):
        author = 'null'

    return {
        HEADER_VERSION: FILESYSTEM_VERSION,
        HEADER_DESCRIPTION: 'File system',
        HEADER_AUTHOR: author,
    }


def _parse_int(value: str, name: str, line: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise MetadataParseError(f"Invalid {name} {value!r} in entry line: {line!r}")
    return int(value)


def serialize_entry(path: str, file: FileEntry) -> str:
    """
    Serialize a file entry to a single metadata line (without newline).

    Args:
        path: Absolute path of the file
        file: File attributes

    Returns:
        Colon-joined entry line
    """
    return FIELD_SEPARATOR.join([
        path,
        str(file.size),
        str(file.created_at),
        escape_field(file.piece_index_handle),
        escape_field(file.comment),
    ])


def parse_entry(line: str) -> Tuple[str, FileEntry]:
    """
    Parse a metadata entry line.

    Lines written before comments existed carry four fields; they load with
    an empty comment.

    Args:
        line: Entry line without trailing newline

    Returns:
        Tuple of (path, FileEntry)

    Raises:
        MetadataParseError: If the field count or numeric fields are invalid
    """
    fields = line.split(FIELD_SEPARATOR)

    if len(fields) == 4:
        path, size, created_at, handle = fields
        comment = ''
    elif len(fields) == 5:
        path, size, created_at, handle, comment = fields
    else:
        raise MetadataParseError(f"Expected 4 or 5 fields, got {len(fields)}: {line!r}")

    if not path:
        raise MetadataParseError(f"Empty path in entry line: {line!r}")

    return path, FileEntry(
        size=_parse_int(size, 'size', line),
        created_at=_parse_int(created_at, 'ctime', line),
        piece_index_handle=unescape_field(handle),
        comment=unescape_field(comment),
    )


def serialize_header_line(key: str, value: str) -> str:
    """
    Render one ``Key: value`` header line.

    Raises:
        MetadataParseError: If the pair could not be read back unchanged
    """
    if not key or key != key.strip() or any(c in key for c in (FIELD_SEPARATOR, '\n', '\r')):
        raise MetadataParseError(f"Invalid header key: {key!r}")
    if '\n' in value or '\r' in value:
        raise MetadataParseError(f"Header value for {key!r} contains a line break")
    return f"{key}: {value}"


def parse_header_line(line: str) -> Tuple[str, str]:
    """
    Split a header line on its first colon and trim both sides.

    Raises:
        MetadataParseError: If the line holds no colon
    """
    key, separator, value = line.partition(FIELD_SEPARATOR)
    if not separator:
        raise MetadataParseError(f"Header line without ':' separator: {line!r}")
    return key.strip(), value.strip()


def format_piece_index(handles: Iterable[str]) -> str:
    """Join piece handles into the piece index blob text."""
    handles = list(handles)
    for handle in handles:
        if not handle or PIECE_SEPARATOR in handle or handle != handle.strip():
            raise MetadataParseError(f"Invalid piece handle: {handle!r}")
    return PIECE_SEPARATOR.join(handles)


def parse_piece_index(text: str) -> List[str]:
    """
    Parse a comma-separated piece index blob.

    Raises:
        MetadataParseError: On empty items or embedded whitespace
    """
    handles = text.split(PIECE_SEPARATOR)
    for handle in handles:
        if not handle or any(character.isspace() for character in handle):
            raise MetadataParseError(f"Malformed piece index: {text[:200]!r}")
    return handles


def iter_namespace_lines(header: Dict[str, str], namespace: Namespace) -> Iterator[str]:
    """
    Yield the lines of a namespace document, each terminated by a newline.
    """
    for key, value in header.items():
        yield serialize_header_line(key, value) + '\n'

    yield '\n'

    for file, path in namespace.walk('/'):
        yield serialize_entry(path, file) + '\n'


def dump_namespace(header: Dict[str, str], namespace: Namespace) -> str:
    return ''.join(iter_namespace_lines(header, namespace))


def load_namespace(lines: Iterable[str], header: Dict[str, str], namespace: Namespace) -> int:
    """
    Replace header and tree with the content of a namespace document.

    The document is parsed into fresh containers first; header and namespace
    are only replaced once every line has parsed.

    Args:
        lines: Document lines (trailing newlines are stripped)
        header: Header mapping to replace in place
        namespace: Tree whose root is replaced

    Returns:
        Number of file entries loaded

    Raises:
        MetadataParseError: If a header or entry line is malformed
        HookFSError: If an entry path cannot be inserted
    """
    loaded_header = default_header()
    loaded_tree = Namespace()

    read_headers = False
    count = 0

    for raw_line in lines:
        line = raw_line.rstrip('\r\n')

        if not line:
            read_headers = True
            continue

        if not read_headers:
            key, value = parse_header_line(line)
            loaded_header[key] = value
        else:
            path, file = parse_entry(line)
            loaded_tree.set_entry(path, file)
            count += 1

    header.clear()
    header.update(loaded_header)
    namespace.root = loaded_tree.root

    return count
