import asyncio
import io
import logging
from typing import Awaitable, BinaryIO, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from enums.media_kind import MediaKind
from exceptions import (
    ItemNotFoundException,
    MediaNotFoundException,
    QuotaExceededException,
    StorageException,
    ValidationException,
)
from models.media_reference import MediaReferenceDTO, StorageStatsDTO
from repositories.item import ItemRepository
from repositories.media_reference import MediaReferenceRepository
from utils.file_storage import LocalFileStorage
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class MediaRegistry:
    """
    Attaches uploaded files to items and keeps file and record lifecycles coupled.

    Admission order is check quota -> write file -> insert record. A file is
    never written for a rejected admission, and a written file is deleted again
    if its record cannot be stored.

    Admissions are serialized through one asyncio.Lock per registry, so within
    one process two uploads can't both pass the quota check before either is
    recorded. Several worker processes each hold their own lock; across them
    the total may briefly overshoot the limit.
    """

    def __init__(self, storage: LocalFileStorage, quota_bytes: int):
        if quota_bytes <= 0:
            raise ValueError(f"quota_bytes must be positive (got: {quota_bytes})")
        self.storage = storage
        self.quota_bytes = quota_bytes
        self._admission_lock = asyncio.Lock()

    def _with_url(self, media: MediaReferenceDTO) -> MediaReferenceDTO:
        return media.model_copy(update={'url': self.storage.url_for(media.stored_name)})

    async def current_usage(self, session: AsyncSession) -> int:
        """Sum of byte sizes over all media records, computed fresh on every call."""
        return await MediaReferenceRepository.total_bytes(session)

    async def list_for_item(self, item_id: int, session: AsyncSession) -> list[MediaReferenceDTO]:
        media = await MediaReferenceRepository.get_by_item_id(item_id, session)
        return [self._with_url(m) for m in media]

    async def admit(
        self,
        item_id: int,
        kind: str,
        byte_size: int,
        content_type: str | None,
        write: Callable[[], Awaitable[str]],
        session: AsyncSession,
    ) -> MediaReferenceDTO:
        """
        Admit a file for an item if it fits into the storage quota.

        Args:
            item_id: Owning item
            kind: "image" or "model"
            byte_size: Size of the file to store
            content_type: Declared MIME type
            write: Persists the file and returns its stored name; only called
                once the quota check has passed
            session: Database session

        Returns:
            MediaReferenceDTO of the new record, with its public URL

        Raises:
            ValidationException: unknown kind or negative size
            ItemNotFoundException: item does not exist
            QuotaExceededException: usage + byte_size would exceed the quota
            StorageException: the file could not be written
        """
        try:
            media_kind = MediaKind.from_string(kind)
        except ValueError as e:
            raise ValidationException(str(e), field='kind')
        if byte_size < 0:
            raise ValidationException("byte size must not be negative", field='byte_size')

        async with self._admission_lock:
            stored_name = None
            try:
                async with TransactionManager.atomic(session, "admit_media"):
                    if not await ItemRepository.exists(item_id, session):
                        raise ItemNotFoundException(item_id=item_id)

                    used = await self.current_usage(session)
                    if used + byte_size > self.quota_bytes:
                        logger.warning(
                            f"Rejected {media_kind.value} upload for item {item_id}: "
                            f"{byte_size} bytes requested, {used}/{self.quota_bytes} used"
                        )
                        raise QuotaExceededException(requested=byte_size, used=used, limit=self.quota_bytes)

                    stored_name = await write()
                    media = await MediaReferenceRepository.create(MediaReferenceDTO(
                        item_id=item_id,
                        kind=media_kind.value,
                        stored_name=stored_name,
                        content_type=content_type,
                        byte_size=byte_size,
                    ), session)
            except Exception:
                if stored_name is not None:
                    # The record didn't make it, the file must not stay behind
                    await self._discard_file(stored_name)
                raise

        logger.info(f"Admitted {media_kind.value} {stored_name} ({byte_size} bytes) for item {item_id}")
        return self._with_url(media)

    async def admit_stream(
        self,
        item_id: int,
        kind: str,
        source: BinaryIO,
        byte_size: int,
        filename: str | None,
        content_type: str | None,
        session: AsyncSession,
    ) -> MediaReferenceDTO:
        """
        Admit an upload of known size without buffering it.

        The stream is only read once the quota check has passed, and then
        copied to storage in chunks.
        """
        return await self.admit(
            item_id=item_id,
            kind=kind,
            byte_size=byte_size,
            content_type=content_type,
            write=lambda: self.storage.write(source, filename),
            session=session,
        )

    async def admit_upload(
        self,
        item_id: int,
        kind: str,
        data: bytes,
        filename: str | None,
        content_type: str | None,
        session: AsyncSession,
    ) -> MediaReferenceDTO:
        """Admit in-memory upload bytes, writing them to this registry's storage."""
        return await self.admit_stream(item_id, kind, io.BytesIO(data), len(data), filename, content_type, session)

    async def release(self, media_id: int, session: AsyncSession) -> None:
        """
        Delete one media record, then its file.

        The record goes first; a missing or undeletable file afterwards is
        logged, not raised.

        Raises:
            MediaNotFoundException: unknown media id
        """
        async with TransactionManager.atomic(session, "release_media"):
            media = await MediaReferenceRepository.get_by_id(media_id, session)
            if media is None:
                raise MediaNotFoundException(media_id=media_id)
            await MediaReferenceRepository.delete_by_id(media_id, session)

        await self._discard_file(media.stored_name)
        logger.info(f"Released media {media_id} of item {media.item_id}")

    async def release_all_for(self, item_id: int, session: AsyncSession) -> int:
        """Delete every media record of an item and their files. Returns the count."""
        async with TransactionManager.atomic(session, "release_all_media"):
            stored_names = await self.detach_all_for(item_id, session)
        await self.discard_files(stored_names)
        return len(stored_names)

    async def detach_all_for(self, item_id: int, session: AsyncSession) -> list[str]:
        """
        Delete an item's media records inside the caller's transaction.

        The files are left alone: the caller passes the returned names to
        discard_files after its transaction has committed, so a rollback
        never leaves records pointing at deleted files.
        """
        return await MediaReferenceRepository.delete_by_item_id(item_id, session)

    async def discard_files(self, stored_names: list[str]) -> None:
        for stored_name in stored_names:
            await self._discard_file(stored_name)

    async def _discard_file(self, stored_name: str) -> None:
        try:
            removed = await self.storage.delete(stored_name)
        except StorageException as e:
            logger.warning(f"Could not delete stored file {stored_name}: {e}")
            return
        if not removed:
            logger.info(f"Stored file {stored_name} was already gone")

    async def storage_stats(self, session: AsyncSession) -> StorageStatsDTO:
        used = await self.current_usage(session)
        total_files = await MediaReferenceRepository.count(session)
        disk_bytes, disk_files = await self.storage.disk_usage()
        return StorageStatsDTO(
            total_files=total_files,
            total_bytes_used=used,
            total_bytes_limit=self.quota_bytes,
            total_bytes_available=max(0, self.quota_bytes - used),
            disk_files=disk_files,
            disk_bytes_used=disk_bytes,
        )
