from enum import Enum


class ItemKind(str, Enum):
    """
    Kinds of catalog items.

    The value is stored in the database as-is, so the capitalized spelling
    is part of the persisted format.
    """

    ASSEMBLY = "Assembly"
    PART = "Part"
    STANDARD = "Standard"

    @classmethod
    def from_string(cls, value: str) -> 'ItemKind':
        """
        Convert string to ItemKind enum.

        Handles case-insensitive matching and whitespace.

        Raises:
            ValueError: If value is not a valid kind

        Examples:
            >>> ItemKind.from_string("assembly")
            ItemKind.ASSEMBLY
            >>> ItemKind.from_string(" Part ")
            ItemKind.PART
        """
        if not value:
            raise ValueError("Kind cannot be empty")

        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("Kind cannot be empty")

        for kind in cls:
            if kind.value.lower() == normalized:
                return kind

        valid = ", ".join(kind.value for kind in cls)
        raise ValueError(f"Kind must be one of {valid} (got: '{value}')")
