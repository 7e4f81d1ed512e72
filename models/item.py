import math

from pydantic import AliasChoices, BaseModel, Field, field_validator
from sqlalchemy import Column, Integer, String, Float, CheckConstraint

from models.base import Base
from enums.item_kind import ItemKind

PHYSICAL_FIELDS = ("mass_kg", "length_mm", "width_mm", "height_mm")
REQUIRED_FIELDS = ("code", "name", "kind")


# Item is a catalog node: an assembly, a part or a standard component.
# Whether it is a root is never stored, it is derived from the composition edges.
class Item(Base):
    __tablename__ = 'items'

    id = Column(Integer, primary_key=True)
    code = Column(String, nullable=False, index=True)  # not unique, several revisions may share a code
    name = Column(String, nullable=False)
    kind = Column(String(16), nullable=False)

    # Physical properties, all optional
    mass_kg = Column(Float, nullable=True)
    length_mm = Column(Float, nullable=True)
    width_mm = Column(Float, nullable=True)
    height_mm = Column(Float, nullable=True)

    __table_args__ = (
        CheckConstraint("kind IN ('Assembly', 'Part', 'Standard')", name='check_item_kind'),
        CheckConstraint('mass_kg IS NULL OR mass_kg >= 0', name='check_mass_non_negative'),
        CheckConstraint('length_mm IS NULL OR length_mm >= 0', name='check_length_non_negative'),
        CheckConstraint('width_mm IS NULL OR width_mm >= 0', name='check_width_non_negative'),
        CheckConstraint('height_mm IS NULL OR height_mm >= 0', name='check_height_non_negative'),
    )


class ItemDTO(BaseModel):
    id: int | None = None
    code: str | None = None
    name: str | None = None
    kind: str | None = None
    mass_kg: float | None = None
    length_mm: float | None = None
    width_mm: float | None = None
    height_mm: float | None = None


class ItemAttributesDTO(BaseModel):
    """
    Incoming item attributes, as sent by the admin UI.

    Every field is optional here: which fields are required depends on the
    operation (creation needs code, name and kind; updates are partial).
    Use ``model_fields_set`` to tell an absent field from an explicit null.
    """

    code: str | None = None
    name: str | None = None
    kind: str | None = Field(default=None, validation_alias=AliasChoices("kind", "type"))
    mass_kg: float | None = None
    length_mm: float | None = None
    width_mm: float | None = None
    height_mm: float | None = None

    @field_validator('code', 'name', mode='before')
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return None
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str):
            raise ValueError("must be a string")
        v = v.strip()
        # Empty text is treated like null, the operation decides whether that is allowed
        return v or None

    @field_validator('kind', mode='before')
    @classmethod
    def validate_kind(cls, v):
        if v is None:
            return None
        if isinstance(v, ItemKind):
            return v.value
        if isinstance(v, str):
            if not v.strip():
                return None
            return ItemKind.from_string(v).value
        raise ValueError(f"Kind must be string or ItemKind enum, got {type(v).__name__}")

    @field_validator(*PHYSICAL_FIELDS, mode='before')
    @classmethod
    def validate_physical(cls, v):
        if v is None:
            return None
        if isinstance(v, bool):
            raise ValueError("must be a number")
        if isinstance(v, str):
            if not v.strip():
                return None
            try:
                v = float(v.strip().replace(",", "."))
            except ValueError:
                raise ValueError(f"'{v}' is not a number")
        if not isinstance(v, (int, float)):
            raise ValueError("must be a number")
        v = float(v)
        if math.isnan(v) or math.isinf(v):
            raise ValueError("must be a finite number")
        if v < 0:
            raise ValueError("must not be negative")
        return v
