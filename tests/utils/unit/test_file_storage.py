"""
Unit tests for utils/file_storage.py.
"""

import io
from pathlib import Path

import pytest
from unittest.mock import patch

from exceptions import StorageException
from utils.file_storage import LocalFileStorage, sanitize_filename


class TestSanitizeFilename:

    @pytest.mark.parametrize("name, expected", [
        ("bracket.step", "bracket.step"),
        ("Gear box (v2).step", "Gear_box__v2_.step"),
        ("../../etc/passwd", ".._.._etc_passwd"),
        ("Zahnrad_ä.png", "Zahnrad__.png"),
        ("", "file"),
        (None, "file"),
    ])
    def test_sanitize(self, name, expected):
        assert sanitize_filename(name) == expected


class TestLocalFileStorage:

    @pytest.mark.asyncio
    async def test_write_and_delete(self, file_storage):
        stored_name = await file_storage.write(io.BytesIO(b"hello"), "note.txt")

        assert stored_name.endswith("-note.txt")
        assert (file_storage.root / stored_name).read_bytes() == b"hello"
        assert await file_storage.delete(stored_name) is True
        assert await file_storage.exists(stored_name) is False

    @pytest.mark.asyncio
    async def test_same_name_twice_gets_two_files(self, file_storage):
        first = await file_storage.write(io.BytesIO(b"1"), "same.png")
        second = await file_storage.write(io.BytesIO(b"22"), "same.png")

        assert first != second
        assert await file_storage.disk_usage() == (3, 2)

    @pytest.mark.asyncio
    async def test_delete_missing_file_is_not_an_error(self, file_storage):
        assert await file_storage.delete("20240101000000-abc-gone.png") is False

    def test_name_escaping_root_rejected(self, file_storage):
        with pytest.raises(StorageException):
            file_storage.path_for("../outside.txt")

    @pytest.mark.asyncio
    async def test_write_failure_raises_storage_exception(self, tmp_path):
        # The "root" is a regular file, so nothing can be created below it
        blocker = tmp_path / "not-a-dir"
        blocker.write_bytes(b"")
        storage = LocalFileStorage(blocker, "/uploads")

        with pytest.raises(StorageException) as exc_info:
            await storage.write(io.BytesIO(b"data"), "a.png")
        assert exc_info.value.operation == "write"

    @pytest.mark.asyncio
    async def test_disk_usage_of_missing_root(self, tmp_path):
        storage = LocalFileStorage(tmp_path / "never-created", "/uploads")
        assert await storage.disk_usage() == (0, 0)

    def test_url_for(self, file_storage):
        assert file_storage.url_for("x.png") == "/uploads/x.png"

    @pytest.mark.asyncio
    async def test_write_copies_stream_in_chunks(self, file_storage):
        payload = bytes(range(256)) * 1024

        stored_name = await file_storage.write(io.BytesIO(payload), "body.step")

        assert (file_storage.root / stored_name).read_bytes() == payload

    @pytest.mark.asyncio
    async def test_disk_usage_skips_file_removed_while_scanning(self, file_storage):
        kept = await file_storage.write(io.BytesIO(b"12345"), "kept.png")
        vanished = file_storage.root / "20240101000000-abc-vanished.png"
        listing = [vanished, file_storage.root / kept]

        with patch.object(Path, 'rglob', return_value=iter(listing)):
            assert await file_storage.disk_usage() == (5, 1)
