"""Chunked remote write/read streams over the webhook blob host."""

import enum
import logging
import time
from typing import List, Optional

from common.constants import BLOCK_SIZE, PIECE_FILE_NAME, PIECE_INDEX_FILE_NAME
from filesystem.crypto import StreamCipher
from filesystem.exceptions import TransportError
from filesystem.metadata import format_piece_index
from filesystem.types import UploadResult
from transport.retry import FETCH_RETRY, RetryPolicy, retry_async

logger = logging.getLogger(__name__)


class WriterState(enum.Enum):
    BUFFERING = "buffering"
    FLUSHING = "flushing"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class RemoteWriteStream:
    """
    Buffers written bytes and uploads them as pieces of at most block_size bytes.

    Usage:
        stream = RemoteWriteStream(client)
        await stream.write(chunk1)
        await stream.write(chunk2)
        result = await stream.finalize()

    The stream is not bound to a path: the caller inserts the file entry
    once finalize() has returned and the content is durable.
    """

    def __init__(self, client, block_size: int = BLOCK_SIZE, cipher: Optional[StreamCipher] = None):
        """
        Args:
            client: WebhookClient (or any object with an async upload_file(name, data))
            block_size: Maximum piece size in bytes
            cipher: Optional cipher; pieces are encrypted as one continuous stream
        """
        self.client = client
        self.block_size = block_size
        self.state = WriterState.BUFFERING
        self.pieces: List[str] = []
        self.written_bytes = 0
        self.uploaded_bytes = 0
        self._queue: List[bytes] = []
        self._queued_bytes = 0
        self._encryptor = cipher.encryptor() if cipher is not None else None

    async def _flush(self, data: bytes) -> None:
        """Upload one piece and record its handle."""
        if len(data) > self.block_size:
            logger.warning(
                f"Piece length ({len(data)} bytes) is bigger than maximum block size ({self.block_size} bytes)!"
            )

        handle = await self.client.upload_file(PIECE_FILE_NAME, data)
        self.pieces.append(handle)
        self.uploaded_bytes += len(data)
        logger.debug(f"Uploaded piece {len(self.pieces)} ({len(data)} bytes)")

    async def _flush_queue(self) -> None:
        """
        Upload the queued bytes as one piece. The queue is only cleared once the
        upload returned; a failed upload leaves the stream in the FAILED state.
        """
        try:
            await self._flush(b''.join(self._queue))
        except BaseException:
            self.state = WriterState.FAILED
            raise
        self._queue = []
        self._queued_bytes = 0

    def _check_writable(self) -> None:
        if self.state is WriterState.FAILED:
            raise ValueError("Stream failed after an unsuccessful upload")
        if self.state in (WriterState.FINALIZING, WriterState.DONE):
            raise ValueError("Stream already finalized")

    async def write(self, chunk: bytes) -> None:
        """
        Accept a chunk of plaintext bytes.

        Raises:
            TypeError: If chunk is not bytes-like
            ValueError: If the stream was already finalized or a piece upload failed
        """
        if not isinstance(chunk, (bytes, bytearray, memoryview)):
            raise TypeError(f"Expected bytes, got {type(chunk).__name__}")
        self._check_writable()

        self.written_bytes += len(chunk)
        chunk = bytes(chunk)

        if self._encryptor is not None:
            chunk = self._encryptor.update(chunk)
            if not chunk:
                return

        if self._queue and self._queued_bytes + len(chunk) >= self.block_size:
            self.state = WriterState.FLUSHING
            await self._flush_queue()
            self.state = WriterState.BUFFERING

        self._queue.append(chunk)
        self._queued_bytes += len(chunk)

    async def finalize(self) -> UploadResult:
        """
        Upload the remaining bytes, the cipher tail and the piece index.

        Returns:
            UploadResult with the plaintext size, creation time (ms) and piece index handle

        Raises:
            ValueError: If called twice or after a failed piece upload
        """
        self._check_writable()
        self.state = WriterState.FINALIZING

        await self._flush_queue()

        try:
            if self._encryptor is not None:
                await self._flush(self._encryptor.finalize())

            piece_index = format_piece_index(self.pieces)
            piece_index_handle = await self.client.upload_file(PIECE_INDEX_FILE_NAME, piece_index.encode('utf-8'))
        except BaseException:
            self.state = WriterState.FAILED
            raise

        self.state = WriterState.DONE
        logger.info(
            f"Finished upload: {self.written_bytes} bytes in {len(self.pieces)} piece(s) -> {piece_index_handle}"
        )

        return UploadResult(
            size=self.written_bytes,
            created_at=int(time.time() * 1000),
            piece_index_handle=piece_index_handle,
        )


class RemoteReadStream:
    """
    Sequential reader over a piece list: one piece in flight, strictly in order.

    Iterate with ``async for chunk in stream`` or call ``await stream.read()``
    until it returns b''.
    """

    def __init__(
        self,
        client,
        pieces: List[str],
        cipher: Optional[StreamCipher] = None,
        retry: RetryPolicy = FETCH_RETRY,
    ):
        self.client = client
        self.pieces = list(pieces)
        self.piece_index = 0
        self.read_bytes = 0
        self.retry = retry
        self._decryptor = cipher.decryptor() if cipher is not None else None
        self._finished = False

    async def _fetch_piece(self, handle: str) -> bytes:
        return await retry_async(
            lambda: self.client.fetch_blob(handle),
            self.retry,
            f"Fetch of piece {self.piece_index + 1}/{len(self.pieces)}",
            retry_on=(TransportError,),
        )

    async def read(self) -> bytes:
        """
        Return the next chunk of content, or b'' at end of stream.
        """
        while not self._finished:
            if self.piece_index >= len(self.pieces):
                self._finished = True
                tail = self._decryptor.finalize() if self._decryptor is not None else b''
                if tail:
                    self.read_bytes += len(tail)
                    return tail
                break

            data = await self._fetch_piece(self.pieces[self.piece_index])
            self.piece_index += 1

            if self._decryptor is not None:
                data = self._decryptor.update(data)

            if data:
                self.read_bytes += len(data)
                return data

        return b''

    def __aiter__(self) -> 'RemoteReadStream':
        return self

    async def __anext__(self) -> bytes:
        chunk = await self.read()
        if not chunk:
            raise StopAsyncIteration
        return chunk
