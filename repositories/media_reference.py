from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from models.media_reference import MediaReference, MediaReferenceDTO


class MediaReferenceRepository:

    @staticmethod
    async def get_by_id(media_id: int, session: AsyncSession) -> MediaReferenceDTO | None:
        stmt = select(MediaReference).where(MediaReference.id == media_id)
        result = await session.execute(stmt)
        media = result.scalar()
        if media is None:
            return None
        return MediaReferenceDTO.model_validate(media, from_attributes=True)

    @staticmethod
    async def get_by_item_id(item_id: int, session: AsyncSession) -> list[MediaReferenceDTO]:
        stmt = (select(MediaReference)
                .where(MediaReference.item_id == item_id)
                .order_by(MediaReference.id))
        result = await session.execute(stmt)
        return [MediaReferenceDTO.model_validate(media, from_attributes=True)
                for media in result.scalars().all()]

    @staticmethod
    async def total_bytes(session: AsyncSession) -> int:
        stmt = select(func.coalesce(func.sum(MediaReference.byte_size), 0))
        result = await session.execute(stmt)
        return int(result.scalar())

    @staticmethod
    async def count(session: AsyncSession) -> int:
        stmt = select(func.count()).select_from(MediaReference)
        result = await session.execute(stmt)
        return result.scalar()

    @staticmethod
    async def create(media_dto: MediaReferenceDTO, session: AsyncSession) -> MediaReferenceDTO:
        media = MediaReference(
            item_id=media_dto.item_id,
            kind=media_dto.kind,
            stored_name=media_dto.stored_name,
            content_type=media_dto.content_type,
            byte_size=media_dto.byte_size,
        )
        session.add(media)
        await session.flush()
        return MediaReferenceDTO.model_validate(media, from_attributes=True)

    @staticmethod
    async def delete_by_id(media_id: int, session: AsyncSession) -> int:
        stmt = delete(MediaReference).where(MediaReference.id == media_id)
        result = await session.execute(stmt)
        return result.rowcount

    @staticmethod
    async def delete_by_item_id(item_id: int, session: AsyncSession) -> list[str]:
        """
        Delete all media records of an item.

        Returns:
            list[str]: Stored names of the deleted records, so the caller can
            remove the files once the transaction has committed
        """
        stmt = select(MediaReference.stored_name).where(MediaReference.item_id == item_id)
        result = await session.execute(stmt)
        stored_names = list(result.scalars().all())
        if stored_names:
            await session.execute(delete(MediaReference).where(MediaReference.item_id == item_id))
        return stored_names
