from enum import Enum


class MediaKind(str, Enum):
    IMAGE = "image"  # 2D picture or drawing
    MODEL = "model"  # 3D model

    @classmethod
    def from_string(cls, value: str) -> 'MediaKind':
        if not value or not value.strip():
            raise ValueError("Media kind cannot be empty")

        normalized = value.strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind

        raise ValueError(f"kind must be image or model (got: '{value}')")
