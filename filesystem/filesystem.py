"""Filesystem facade: namespace, header, local data file and remote streams."""

import asyncio
import logging
import os
from pathlib import Path
from typing import AsyncIterable, Iterable, Iterator, List, Optional, Tuple, Union

from common.constants import BLOCK_SIZE
from filesystem.crypto import StreamCipher, cipher_from_config
from filesystem.exceptions import TransportError, TypeMismatchError
from filesystem.metadata import default_header, dump_namespace, load_namespace, parse_piece_index
from filesystem.streams import RemoteReadStream, RemoteWriteStream
from filesystem.tree import Namespace
from filesystem.types import DirectoryEntry, Entry, FileEntry
from transport.retry import FETCH_RETRY, RetryPolicy, retry_async
from transport.webhook_client import WebhookClient

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024

ByteSource = Union[bytes, bytearray, AsyncIterable[bytes], Iterable[bytes]]


class Filesystem:
    """
    A virtual filesystem whose file content lives on a webhook blob host.

    The namespace and header live in memory and are persisted to a single
    local data file. Tree operations never touch the network.
    """

    def __init__(
        self,
        data_file: Union[str, Path],
        client: WebhookClient,
        cipher: Optional[StreamCipher] = None,
        block_size: int = BLOCK_SIZE,
        fetch_retry: RetryPolicy = FETCH_RETRY,
    ):
        """
        Initialize filesystem.

        Args:
            data_file: Local path of the snapshot document
            client: Transport client used by streams and sync
            cipher: Optional piece encryption
            block_size: Maximum piece size in bytes
            fetch_retry: Retry policy for piece and piece index downloads
        """
        self.data_file = Path(data_file)
        self.client = client
        self.cipher = cipher
        self.block_size = block_size
        self.fetch_retry = fetch_retry
        self.header = default_header()
        self.tree = Namespace()

    @classmethod
    def from_config(cls, config) -> 'Filesystem':
        """
        Build a filesystem from a cli.config.Config instance.

        Raises:
            ValueError: If no webhook URL is configured
            EncryptionConfigError: If the encryption material is incomplete
        """
        retry_config = config.get_retry_config()
        key_hex, iv_hex = config.get_encryption_material()
        cipher = cipher_from_config(key_hex, iv_hex)

        client = WebhookClient(
            config.get_webhook_url(),
            timeout=config.get_timeout(),
            upload_retry=RetryPolicy(
                max_attempts=retry_config['max_retries'],
                delay=retry_config['upload_retry_delay'],
            ),
            attachment_base_url=config.get_attachment_base_url(),
        )

        return cls(
            config.get_data_file(),
            client,
            cipher=cipher,
            fetch_retry=RetryPolicy(
                max_attempts=retry_config['max_retries'],
                delay=retry_config['fetch_retry_delay'],
            ),
        )

    async def close(self) -> None:
        await self.client.close()

    def get_entry(self, path: str) -> Entry:
        return self.tree.get_entry(path)

    def set_entry(self, path: str, entry: Entry) -> None:
        self.tree.set_entry(path, entry)

    def exists(self, path: str) -> bool:
        return self.tree.exists(path)

    def rm(self, path: str) -> Entry:
        return self.tree.rm(path)

    def mv(self, src: str, dst: str) -> str:
        return self.tree.mv(src, dst)

    def cp(self, src: str, dst: str) -> str:
        return self.tree.cp(src, dst)

    def walk(self, path: str = '/') -> Iterator[Tuple[FileEntry, str]]:
        return self.tree.walk(path)

    def readdir(self, path: str = '/') -> List[Tuple[str, Entry]]:
        return self.tree.readdir(path)

    def load_data(self, text: str) -> int:
        """Replace header and tree with a namespace document."""
        count = load_namespace(text.split('\n'), self.header, self.tree)
        logger.info(f"Loaded {count} file entries")
        return count

    def dump_data(self) -> bytes:
        """Serialize header and tree into a namespace document."""
        return dump_namespace(self.header, self.tree).encode('utf-8')

    async def load_data_from_stream(self, stream: AsyncIterable[bytes]) -> int:
        chunks = []
        async for chunk in stream:
            chunks.append(chunk)
        return self.load_data(b''.join(chunks).decode('utf-8'))

    async def load_data_file(self) -> bool:
        """
        Load the local data file. No-op when it does not exist.

        Returns:
            True if a data file was loaded
        """
        if not self.data_file.exists():
            logger.info(f"Data file {self.data_file} does not exist yet, starting empty")
            return False

        text = await asyncio.to_thread(self.data_file.read_text, encoding='utf-8')
        self.load_data(text)
        return True

    async def write_data_file(self) -> None:
        """Create or replace the local data file."""
        data = self.dump_data()
        await asyncio.to_thread(self._write_atomically, data)
        logger.debug(f"Wrote data file {self.data_file} ({len(data)} bytes)")

    def _write_atomically(self, data: bytes) -> None:
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.data_file.with_name(self.data_file.name + '.tmp')
        temp_path.write_bytes(data)
        os.replace(temp_path, self.data_file)

    def create_write_stream(self) -> RemoteWriteStream:
        """Create a write stream; bind its result with set_entry after finalize()."""
        return RemoteWriteStream(self.client, block_size=self.block_size, cipher=self.cipher)

    async def write_file_from_stream(self, source: ByteSource, path: str, comment: str = '') -> FileEntry:
        """
        Upload content and record it at path once every piece is durable.

        Args:
            source: bytes, a binary file object, or a sync/async iterable of bytes chunks
            path: Target path in the namespace
            comment: Free-text annotation stored with the entry

        Returns:
            The inserted FileEntry

        Raises:
            InvalidPathError: If path cannot hold a file
            TypeMismatchError: If a parent of path is a file
        """
        self.tree.check_insertable(path)
        stream = self.create_write_stream()

        if isinstance(source, (bytes, bytearray, memoryview)):
            view = memoryview(source)
            for offset in range(0, len(view), STREAM_CHUNK_SIZE):
                await stream.write(view[offset:offset + STREAM_CHUNK_SIZE])
        elif hasattr(source, '__aiter__'):
            async for chunk in source:
                await stream.write(chunk)
        elif hasattr(source, 'read'):
            while True:
                chunk = source.read(STREAM_CHUNK_SIZE)
                if not chunk:
                    break
                await stream.write(chunk)
        else:
            for chunk in source:
                await stream.write(chunk)

        result = await stream.finalize()
        entry = result.to_entry(comment)
        self.tree.set_entry(path, entry)

        logger.info(f"Wrote {path} ({entry.size} bytes)")
        return entry

    async def write_bytes(self, path: str, data: bytes, comment: str = '') -> FileEntry:
        return await self.write_file_from_stream(data, path, comment)

    async def create_read_stream(self, path: str) -> RemoteReadStream:
        """
        Open a file for sequential reading.

        Raises:
            EntryNotFoundError: If path does not exist
            TypeMismatchError: If path is a directory
            MetadataParseError: If the piece index blob is malformed
        """
        entry = self.tree.get_entry(path)
        if isinstance(entry, DirectoryEntry):
            raise TypeMismatchError(f"Is a directory: '{path}'")

        blob = await retry_async(
            lambda: self.client.fetch_blob(entry.piece_index_handle),
            self.fetch_retry,
            f"Fetch of piece index for {path}",
            retry_on=(TransportError,),
        )
        pieces = parse_piece_index(blob.decode('utf-8'))

        return RemoteReadStream(self.client, pieces, cipher=self.cipher, retry=self.fetch_retry)

    async def read_bytes(self, path: str) -> bytes:
        stream = await self.create_read_stream(path)
        chunks = []
        async for chunk in stream:
            chunks.append(chunk)
        return b''.join(chunks)
