"""Shared pytest fixtures for all tests."""

import itertools
from collections import Counter
from typing import Dict, Optional

import pytest

from cli.config import Config
from common.constants import DEFAULT_ATTACHMENT_BASE_URL
from filesystem.exceptions import TransportError
from filesystem.filesystem import Filesystem
from transport.models import Message
from transport.retry import RetryPolicy


class FakeWebhookBackend:
    """
    Shared in-memory storage standing in for a webhook host.

    Several FakeWebhook clients can point at the same backend to model
    two machines using one webhook.
    """

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.messages: Dict[str, str] = {}
        self.upload_counts: Counter = Counter()
        self._ids = itertools.count(1000)

    def next_id(self) -> str:
        return str(next(self._ids))


class FakeWebhook:
    """In-memory drop-in for WebhookClient with the same async surface."""

    def __init__(self, backend: Optional[FakeWebhookBackend] = None):
        self.backend = backend or FakeWebhookBackend()
        self.attachment_base_url = DEFAULT_ATTACHMENT_BASE_URL
        self.fetch_failures = 0
        self.upload_failures: Counter = Counter()
        self.fetch_calls = 0
        self.closed = False

    def to_handle(self, url: str) -> str:
        if url.startswith(self.attachment_base_url):
            return url[len(self.attachment_base_url):]
        return url

    def to_url(self, handle: str) -> str:
        if handle.startswith(('http://', 'https://')):
            return handle
        return self.attachment_base_url + handle

    async def upload_file(self, file_name: str, data: bytes) -> str:
        if self.upload_failures[file_name] > 0:
            self.upload_failures[file_name] -= 1
            raise TransportError(f"simulated upload failure for {file_name}")
        message_id = self.backend.next_id()
        handle = f"1/{message_id}/{file_name}"
        self.backend.blobs[handle] = bytes(data)
        self.backend.upload_counts[file_name] += 1
        return handle

    async def fetch_blob(self, handle_or_url: str) -> bytes:
        self.fetch_calls += 1
        if self.fetch_failures > 0:
            self.fetch_failures -= 1
            raise TransportError("simulated fetch failure")

        handle = self.to_handle(handle_or_url)
        if handle not in self.backend.blobs:
            raise TransportError(f"unknown blob {handle}")
        return self.backend.blobs[handle]

    async def send_message(self, content: str) -> Message:
        message_id = self.backend.next_id()
        self.backend.messages[message_id] = content
        return Message(id=message_id, content=content)

    async def get_message(self, message_id: str) -> Optional[Message]:
        if message_id not in self.backend.messages:
            return None
        return Message(id=message_id, content=self.backend.messages[message_id])

    async def edit_message(self, message_id: str, content: str) -> Message:
        if message_id not in self.backend.messages:
            raise TransportError(f"unknown message {message_id}")
        self.backend.messages[message_id] = content
        return Message(id=message_id, content=content)

    async def close(self) -> None:
        self.closed = True


NO_WAIT_RETRY = RetryPolicy(max_attempts=5, delay=0)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .hookfs directory
    """
    config_dir = tmp_path / '.hookfs'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir, monkeypatch):
    """
    Create temporary config instance isolated from HOOKFS_* environment variables.
    """
    monkeypatch.delenv('HOOKFS_WEBHOOK', raising=False)
    monkeypatch.delenv('HOOKFS_DATA_FILE', raising=False)
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def backend():
    return FakeWebhookBackend()


@pytest.fixture
def fake_webhook(backend):
    return FakeWebhook(backend)


@pytest.fixture
def fs(tmp_path, fake_webhook):
    """Filesystem backed by the fake webhook, with a data file under tmp_path."""
    return Filesystem(tmp_path / 'data.nfs', fake_webhook, fetch_retry=NO_WAIT_RETRY)


@pytest.fixture
def make_fs(tmp_path, backend):
    """
    Factory for further Filesystem instances sharing the same fake backend.

    Returns:
        Callable taking a data file name
    """
    def factory(data_file_name: str) -> Filesystem:
        return Filesystem(tmp_path / data_file_name, FakeWebhook(backend), fetch_retry=NO_WAIT_RETRY)
    return factory


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path
