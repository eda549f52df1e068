"""Namespace entry types (FileEntry, DirectoryEntry) and upload results."""

from dataclasses import dataclass, field
from typing import Dict, Union


@dataclass
class FileEntry:
    """
    A file whose content lives remotely behind a piece index blob.

    Attributes:
        size: Byte count of the plaintext content
        created_at: Creation time in milliseconds since the Unix epoch
        piece_index_handle: Handle of the uploaded comma-separated piece list
        comment: Free-text annotation
    """
    size: int
    created_at: int
    piece_index_handle: str
    comment: str = ""


@dataclass
class DirectoryEntry:
    """A directory mapping child names to entries."""
    items: Dict[str, "Entry"] = field(default_factory=dict)


Entry = Union[FileEntry, DirectoryEntry]


@dataclass(frozen=True)
class UploadResult:
    """
    Attributes surfaced by a finalized write stream.
    """
    size: int
    created_at: int
    piece_index_handle: str

    def to_entry(self, comment: str = "") -> FileEntry:
        return FileEntry(
            size=self.size,
            created_at=self.created_at,
            piece_index_handle=self.piece_index_handle,
            comment=comment,
        )
