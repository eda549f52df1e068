"""Snapshot-based sync of the whole namespace through a mutable pointer message."""

import logging
import re
import time
from typing import Optional

from common.constants import HEADER_SYNC_MESSAGE, SNAPSHOT_FILE_NAME
from filesystem.exceptions import MetadataParseError, TransportError
from transport.models import Message

logger = logging.getLogger(__name__)

POINTER_FORMAT_VERSION = 1

_POINTER_PATTERN = re.compile(r'^cloudsync(?: v(?P<version>\d+))? (?P<timestamp>\d+) --> \[(?P<link>[^\[\]\s]*)\]$')


def format_pointer_content(link: str = '', timestamp: Optional[int] = None) -> str:
    """
    Render pointer message content: ``cloudsync v1 <unix-ms> --> [<link>]``.
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    return f"cloudsync v{POINTER_FORMAT_VERSION} {timestamp} --> [{link}]"


def parse_pointer_content(content: str) -> Optional[str]:
    """
    Extract the snapshot link from pointer message content.

    The unversioned form written by older clients is accepted too.

    Returns:
        The link, or None when no snapshot has been published yet

    Raises:
        MetadataParseError: If the content is not a pointer record or its version is unknown
    """
    match = _POINTER_PATTERN.match(content.strip())
    if match is None:
        raise MetadataParseError(f"Not a cloudsync pointer record: {content[:200]!r}")

    version = match.group('version')
    if version is not None and int(version) > POINTER_FORMAT_VERSION:
        raise MetadataParseError(f"Unsupported pointer record version {version}")

    return match.group('link') or None


class CloudSync:
    """
    Publishes and retrieves whole-namespace snapshots.

    The snapshot blob handle is kept in a pointer message whose id is stored
    in the ``Sync-Message`` header. Last successful upload wins.
    """

    def __init__(self, fs):
        self.fs = fs

    async def create_pointer_message(self) -> Message:
        message = await self.fs.client.send_message(format_pointer_content())
        self.fs.header[HEADER_SYNC_MESSAGE] = message.id
        logger.info(f"Created pointer message {message.id}")
        return message

    async def get_pointer_message(self) -> Optional[Message]:
        message_id = self.fs.header.get(HEADER_SYNC_MESSAGE)
        if not message_id:
            return None

        message = await self.fs.client.get_message(message_id)
        if message is None or not message.id:
            logger.warning(f"Pointer message {message_id} is no longer valid")
            return None

        return message

    async def get_or_create_pointer_message(self) -> Message:
        message = await self.get_pointer_message()
        if message is not None:
            return message
        return await self.create_pointer_message()

    async def upload(self) -> str:
        """
        Overwrite the remote snapshot with the local state.

        Returns:
            URL of the uploaded snapshot blob

        Raises:
            TransportError: If the snapshot does not fit in a single blob
        """
        pointer = await self.get_or_create_pointer_message()

        data = self.fs.dump_data()
        if len(data) > self.fs.block_size:
            raise TransportError(
                f"Snapshot ({len(data)} bytes) exceeds maximum blob size ({self.fs.block_size} bytes)"
            )

        handle = await self.fs.client.upload_file(SNAPSHOT_FILE_NAME, data)
        link = self.fs.client.to_url(handle)

        await self.fs.client.edit_message(pointer.id, format_pointer_content(link))
        logger.info(f"Uploaded snapshot ({len(data)} bytes) -> pointer {pointer.id}")
        return link

    async def download(self) -> bool:
        """
        Overwrite the local state with the remote snapshot.

        Returns:
            True if a snapshot was loaded, False if none has been published yet
        """
        pointer = await self.get_or_create_pointer_message()
        link = parse_pointer_content(pointer.content)

        if link is None:
            logger.info("No snapshot published yet, nothing to download")
            return False

        data = await self.fs.client.fetch_blob(link)
        self.fs.load_data(data.decode('utf-8'))
        self.fs.header[HEADER_SYNC_MESSAGE] = pointer.id

        logger.info(f"Downloaded snapshot ({len(data)} bytes) from pointer {pointer.id}")
        return True
