from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint

from models.base import Base


class MediaReference(Base):
    __tablename__ = 'media_references'

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey('items.id'), nullable=False, index=True)
    kind = Column(String(16), nullable=False)
    stored_name = Column(String, nullable=False, unique=True)
    content_type = Column(String, nullable=True)
    byte_size = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("kind IN ('image', 'model')", name='check_media_kind'),
        CheckConstraint('byte_size >= 0', name='check_media_size_non_negative'),
    )


class MediaReferenceDTO(BaseModel):
    id: int | None = None
    item_id: int | None = None
    kind: str | None = None
    stored_name: str | None = None
    content_type: str | None = None
    byte_size: int | None = None
    url: str | None = None  # filled in by the media registry, not a column


class StorageStatsDTO(BaseModel):
    total_files: int
    total_bytes_used: int
    total_bytes_limit: int
    total_bytes_available: int
    disk_files: int
    disk_bytes_used: int
