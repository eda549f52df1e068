"""Tests for the Filesystem facade."""

import io
import json
import os

import pytest

from common.constants import HEADER_AUTHOR, HEADER_SYNC_MESSAGE, PIECE_FILE_NAME
from filesystem.exceptions import (
    EncryptionConfigError,
    EntryNotFoundError,
    InvalidPathError,
    MetadataParseError,
    TypeMismatchError,
)
from filesystem.filesystem import Filesystem
from filesystem.types import FileEntry
from transport.webhook_client import WebhookClient


async def async_chunks(*chunks):
    for chunk in chunks:
        yield chunk


class TestWriteRead:
    @pytest.mark.asyncio
    async def test_write_bytes_then_read(self, fs):
        entry = await fs.write_bytes("/docs/a.txt", b"hello world", comment="greeting")

        assert entry.size == 11
        assert entry.comment == "greeting"
        assert fs.get_entry("/docs/a.txt") is entry
        assert await fs.read_bytes("/docs/a.txt") == b"hello world"

    @pytest.mark.asyncio
    async def test_write_from_async_iterable(self, fs):
        await fs.write_file_from_stream(async_chunks(b"ab", b"cd"), "/x")
        assert await fs.read_bytes("/x") == b"abcd"

    @pytest.mark.asyncio
    async def test_write_from_file_object(self, fs):
        await fs.write_file_from_stream(io.BytesIO(b"from file"), "/x")
        assert await fs.read_bytes("/x") == b"from file"

    @pytest.mark.asyncio
    async def test_write_from_sync_iterable(self, fs):
        await fs.write_file_from_stream(iter([b"1", b"2", b"3"]), "/x")
        assert await fs.read_bytes("/x") == b"123"

    @pytest.mark.asyncio
    async def test_invalid_target_uploads_nothing(self, fs, backend):
        await fs.write_bytes("/file", b"data")
        uploads_before = sum(backend.upload_counts.values())

        with pytest.raises(TypeMismatchError):
            await fs.write_bytes("/file/child", b"more")
        with pytest.raises(InvalidPathError):
            await fs.write_bytes("/", b"more")

        assert sum(backend.upload_counts.values()) == uploads_before

    @pytest.mark.asyncio
    async def test_read_directory_raises(self, fs):
        await fs.write_bytes("/dir/file", b"data")
        with pytest.raises(TypeMismatchError):
            await fs.create_read_stream("/dir")

    @pytest.mark.asyncio
    async def test_read_missing_raises(self, fs):
        with pytest.raises(EntryNotFoundError):
            await fs.create_read_stream("/missing")

    @pytest.mark.asyncio
    async def test_twenty_mib_file_entry(self, fs, backend):
        data = os.urandom(20 * 1024 * 1024)

        entry = await fs.write_bytes("/movies/a.mp4", data)

        assert entry.size == 20 * 1024 * 1024
        assert backend.upload_counts[PIECE_FILE_NAME] == 3
        assert fs.get_entry("/movies/a.mp4") is entry

    @pytest.mark.asyncio
    async def test_copy_shares_content(self, fs):
        await fs.write_bytes("/a", b"shared")
        fs.cp("/a", "/b")
        fs.rm("/a")
        assert await fs.read_bytes("/b") == b"shared"


class TestDataFile:
    @pytest.mark.asyncio
    async def test_missing_data_file_is_noop(self, fs):
        assert await fs.load_data_file() is False
        assert fs.readdir("/") == []

    @pytest.mark.asyncio
    async def test_write_then_load(self, fs, fake_webhook, tmp_path):
        await fs.write_bytes("/a/x", b"x", comment="note: one")
        fs.header[HEADER_SYNC_MESSAGE] = "42"
        await fs.write_data_file()

        other = Filesystem(tmp_path / "data.nfs", fake_webhook)
        assert await other.load_data_file() is True

        assert other.get_entry("/a/x") == fs.get_entry("/a/x")
        assert other.header[HEADER_SYNC_MESSAGE] == "42"
        assert not (tmp_path / "data.nfs.tmp").exists()

    @pytest.mark.asyncio
    async def test_load_data_from_stream(self, fs):
        document = b"Author: tester\n\n/f:3:100:h:\n"
        count = await fs.load_data_from_stream(async_chunks(document[:10], document[10:]))

        assert count == 1
        assert fs.header[HEADER_AUTHOR] == "tester"
        assert fs.get_entry("/f") == FileEntry(3, 100, "h", "")

    @pytest.mark.asyncio
    async def test_broken_document_keeps_previous_state(self, fs):
        await fs.write_bytes("/keep", b"data")
        fs.header["Description"] = "mine"

        with pytest.raises(MetadataParseError):
            fs.load_data("Description: theirs\n\n/a:1:1:h:\nbroken line\n")

        assert fs.header["Description"] == "mine"
        assert fs.exists("/keep")
        assert not fs.exists("/a")
        assert await fs.read_bytes("/keep") == b"data"

    @pytest.mark.asyncio
    async def test_unloadable_header_is_not_written(self, fs, tmp_path):
        fs.header["Description"] = "first\nsecond"

        with pytest.raises(MetadataParseError):
            await fs.write_data_file()

        assert not (tmp_path / "data.nfs").exists()

    def test_dump_data_is_utf8(self, fs):
        fs.set_entry("/ünïcode", FileEntry(1, 1, "h", "ok"))
        assert "/ünïcode:1:1:h:ok" in fs.dump_data().decode("utf-8")


class TestFromConfig:
    def test_builds_client_and_policies(self, temp_config, tmp_path):
        temp_config.data.update({
            "webhook_url": "https://discord.com/api/webhooks/1/token",
            "data_file": str(tmp_path / "custom.nfs"),
            "max_retries": 4,
            "fetch_retry_delay": 1.5,
        })

        fs = Filesystem.from_config(temp_config)

        assert isinstance(fs.client, WebhookClient)
        assert fs.data_file == tmp_path / "custom.nfs"
        assert fs.fetch_retry.max_attempts == 4
        assert fs.fetch_retry.delay == 1.5
        assert fs.client.upload_retry.max_attempts == 4
        assert fs.cipher is None

    def test_partial_encryption_config_rejected(self, temp_config):
        temp_config.data.update({
            "webhook_url": "https://discord.com/api/webhooks/1/token",
            "encryption_key": "ab" * 32,
        })

        with pytest.raises(EncryptionConfigError):
            Filesystem.from_config(temp_config)

    def test_written_config_round_trips(self, temp_config):
        temp_config.data["webhook_url"] = "https://discord.com/api/webhooks/1/token"
        temp_config.save()

        with open(temp_config.config_path) as f:
            assert json.load(f)["webhook_url"] == "https://discord.com/api/webhooks/1/token"
