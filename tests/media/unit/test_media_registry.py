"""
Unit Tests: MediaRegistry admission and release

Tests for services/media.py covering:
- admit() / admit_stream() / admit_upload() - quota check before write, record after write
- release() - record first, then best-effort file removal
- current_usage() / storage_stats()
- concurrent admissions against one quota
"""

import asyncio
import io

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from exceptions import (
    ItemNotFoundException,
    MediaNotFoundException,
    QuotaExceededException,
    StorageException,
    ValidationException,
)
from repositories.media_reference import MediaReferenceRepository


class TestAdmit:

    @pytest.mark.asyncio
    async def test_admit_stores_file_and_record(self, test_session, make_item, media_registry):
        item = await make_item("P-1")

        media = await media_registry.admit_upload(item.id, "image", b"\x89PNG" * 5, "front view.png",
                                                  "image/png", test_session)

        assert media.id is not None
        assert media.kind == "image"
        assert media.byte_size == 20
        assert media.stored_name.endswith("front_view.png")
        assert media.url == f"/uploads/{media.stored_name}"
        assert await media_registry.storage.exists(media.stored_name)
        assert await media_registry.current_usage(test_session) == 20

    @pytest.mark.asyncio
    async def test_quota_scenario(self, test_session, make_item, media_registry):
        """Quota 1000: 900 fits, 150 more does not, 90 more still fits."""
        item = await make_item("P-1")
        await media_registry.admit_upload(item.id, "model", b"m" * 900, "body.step", None, test_session)

        with pytest.raises(QuotaExceededException) as exc_info:
            await media_registry.admit_upload(item.id, "image", b"i" * 150, "big.png", None, test_session)

        assert exc_info.value.used == 900
        assert exc_info.value.requested == 150
        assert exc_info.value.limit == 1000
        assert await media_registry.current_usage(test_session) == 900

        await media_registry.admit_upload(item.id, "image", b"i" * 90, "small.png", None, test_session)
        assert await media_registry.current_usage(test_session) == 990

    @pytest.mark.asyncio
    async def test_exact_fit_is_admitted(self, test_session, make_item, media_registry):
        item = await make_item("P-1")

        await media_registry.admit_upload(item.id, "model", b"m" * 1000, "full.step", None, test_session)

        assert await media_registry.current_usage(test_session) == 1000

    @pytest.mark.asyncio
    async def test_rejected_admission_writes_no_file(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        write = AsyncMock(return_value="never.bin")

        with pytest.raises(QuotaExceededException):
            await media_registry.admit(item.id, "model", 1001, None, write, test_session)

        write.assert_not_awaited()
        assert await media_registry.storage.disk_usage() == (0, 0)

    @pytest.mark.asyncio
    async def test_oversized_stream_is_never_read(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        stream = MagicMock()
        stream.read.side_effect = AssertionError("stream read before admission")

        with pytest.raises(QuotaExceededException) as exc_info:
            await media_registry.admit_stream(item.id, "model", stream, 5_000_000, "huge.step", None, test_session)

        assert exc_info.value.requested == 5_000_000
        stream.read.assert_not_called()
        assert await media_registry.storage.disk_usage() == (0, 0)

    @pytest.mark.asyncio
    async def test_admitted_stream_copied_to_storage(self, test_session, make_item, media_registry):
        item = await make_item("P-1")

        media = await media_registry.admit_stream(item.id, "model", io.BytesIO(b"s" * 300), 300, "part.step",
                                                  "model/step", test_session)

        assert (media_registry.storage.root / media.stored_name).read_bytes() == b"s" * 300
        assert await media_registry.current_usage(test_session) == 300

    @pytest.mark.asyncio
    async def test_unknown_item_rejected_before_write(self, test_session, media_registry):
        write = AsyncMock(return_value="never.bin")

        with pytest.raises(ItemNotFoundException):
            await media_registry.admit(404, "image", 10, None, write, test_session)

        write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_kind_rejected(self, test_session, make_item, media_registry):
        item = await make_item("P-1")

        with pytest.raises(ValidationException) as exc_info:
            await media_registry.admit_upload(item.id, "video", b"v", "clip.mp4", None, test_session)

        assert exc_info.value.field == "kind"

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_record(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        write = AsyncMock(side_effect=StorageException("write", "x.bin", "disk full"))

        with pytest.raises(StorageException):
            await media_registry.admit(item.id, "image", 10, None, write, test_session)

        assert await MediaReferenceRepository.count(test_session) == 0

    @pytest.mark.asyncio
    async def test_failed_record_insert_removes_written_file(self, test_session, make_item, media_registry):
        item = await make_item("P-1")

        with patch('repositories.media_reference.MediaReferenceRepository.create',
                   side_effect=RuntimeError("insert failed")):
            with pytest.raises(RuntimeError):
                await media_registry.admit_upload(item.id, "image", b"data", "a.png", None, test_session)

        assert await media_registry.storage.disk_usage() == (0, 0)
        assert await media_registry.current_usage(test_session) == 0

    @pytest.mark.asyncio
    async def test_concurrent_admissions_respect_quota(self, tmp_path, media_registry):
        """Two 600 byte uploads against a 1000 byte quota: exactly one wins."""
        from db import create_engine_for, create_session_maker, create_db_and_tables
        from services.lifecycle import LifecycleService

        engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'concurrent.db'}")
        await create_db_and_tables(engine)
        session_maker = create_session_maker(engine)
        async with session_maker() as session:
            item = await LifecycleService.create_item({"code": "P", "name": "P", "kind": "Part"}, session)

        async def upload(name: str):
            async with session_maker() as session:
                return await media_registry.admit_upload(item.id, "model", b"m" * 600, name, None, session)

        try:
            results = await asyncio.gather(upload("one.step"), upload("two.step"), return_exceptions=True)

            admitted = [r for r in results if not isinstance(r, Exception)]
            rejected = [r for r in results if isinstance(r, QuotaExceededException)]
            assert len(admitted) == 1
            assert len(rejected) == 1
            async with session_maker() as session:
                assert await media_registry.current_usage(session) == 600
        finally:
            await engine.dispose()


class TestRelease:

    @pytest.mark.asyncio
    async def test_release_removes_record_and_file(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        media = await media_registry.admit_upload(item.id, "image", b"x" * 100, "a.png", None, test_session)

        await media_registry.release(media.id, test_session)

        assert await MediaReferenceRepository.get_by_id(media.id, test_session) is None
        assert not await media_registry.storage.exists(media.stored_name)
        assert await media_registry.current_usage(test_session) == 0

    @pytest.mark.asyncio
    async def test_release_frees_quota(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        media = await media_registry.admit_upload(item.id, "model", b"m" * 900, "a.step", None, test_session)
        await media_registry.release(media.id, test_session)

        await media_registry.admit_upload(item.id, "model", b"m" * 900, "b.step", None, test_session)

        assert await media_registry.current_usage(test_session) == 900

    @pytest.mark.asyncio
    async def test_release_unknown_media(self, test_session, media_registry):
        with pytest.raises(MediaNotFoundException):
            await media_registry.release(55, test_session)

    @pytest.mark.asyncio
    async def test_release_with_missing_file_still_succeeds(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        media = await media_registry.admit_upload(item.id, "image", b"x" * 10, "a.png", None, test_session)
        await media_registry.storage.delete(media.stored_name)

        await media_registry.release(media.id, test_session)

        assert await MediaReferenceRepository.count(test_session) == 0

    @pytest.mark.asyncio
    async def test_release_with_undeletable_file_still_succeeds(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        media = await media_registry.admit_upload(item.id, "image", b"x" * 10, "a.png", None, test_session)

        with patch.object(media_registry.storage, 'delete',
                          AsyncMock(side_effect=StorageException("delete", media.stored_name, "busy"))):
            await media_registry.release(media.id, test_session)

        assert await media_registry.current_usage(test_session) == 0

    @pytest.mark.asyncio
    async def test_release_all_for_item(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        other = await make_item("P-2")
        await media_registry.admit_upload(item.id, "image", b"x" * 10, "a.png", None, test_session)
        await media_registry.admit_upload(item.id, "model", b"y" * 20, "a.step", None, test_session)
        kept = await media_registry.admit_upload(other.id, "image", b"z" * 5, "b.png", None, test_session)

        released = await media_registry.release_all_for(item.id, test_session)

        assert released == 2
        assert [m.id for m in await media_registry.list_for_item(other.id, test_session)] == [kept.id]
        assert await media_registry.storage.disk_usage() == (5, 1)


class TestStorageStats:

    @pytest.mark.asyncio
    async def test_stats_report_usage_and_headroom(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        await media_registry.admit_upload(item.id, "image", b"x" * 300, "a.png", None, test_session)
        await media_registry.admit_upload(item.id, "model", b"y" * 200, "a.step", None, test_session)

        stats = await media_registry.storage_stats(test_session)

        assert stats.total_files == 2
        assert stats.total_bytes_used == 500
        assert stats.total_bytes_limit == 1000
        assert stats.total_bytes_available == 500
        assert stats.disk_files == 2
        assert stats.disk_bytes_used == 500

    @pytest.mark.asyncio
    async def test_list_for_item_in_upload_order(self, test_session, make_item, media_registry):
        item = await make_item("P-1")
        first = await media_registry.admit_upload(item.id, "image", b"1", "1.png", None, test_session)
        second = await media_registry.admit_upload(item.id, "model", b"2", "2.step", None, test_session)

        media = await media_registry.list_for_item(item.id, test_session)

        assert [m.id for m in media] == [first.id, second.id]
        assert all(m.url.startswith("/uploads/") for m in media)
