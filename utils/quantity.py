import math

from exceptions import ValidationException

DEFAULT_QUANTITY = 1.0


def parse_quantity(value, field: str = "quantity", default: float = DEFAULT_QUANTITY) -> float:
    """
    Parse a quantity sent by a client.

    Absent values (None, empty string) become ``default``. The sign is not
    checked here: creation coerces non-positive values to 1, edge creation
    rejects them and the cart falls back to 1, so each caller decides.

    Raises:
        ValidationException: value is not a finite number

    Examples:
        >>> parse_quantity("2,5")
        2.5
        >>> parse_quantity(None)
        1.0
    """
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationException(f"{field} must be a number", field=field)
    if isinstance(value, str):
        if not value.strip():
            return default
        try:
            value = float(value.strip().replace(",", "."))
        except ValueError:
            raise ValidationException(f"{field} must be a number (got: '{value}')", field=field)
    if not isinstance(value, (int, float)):
        raise ValidationException(f"{field} must be a number", field=field)

    value = float(value)
    if math.isnan(value) or math.isinf(value):
        raise ValidationException(f"{field} must be a finite number", field=field)
    return value


def parse_id(value, field: str) -> int:
    """Parse a required positive integer id from a request body."""
    if value is None or isinstance(value, bool):
        raise ValidationException(f"{field} required", field=field)
    try:
        parsed = int(str(value).strip())
    except ValueError:
        raise ValidationException(f"{field} must be an integer id (got: '{value}')", field=field)
    if parsed <= 0:
        raise ValidationException(f"{field} must be a positive id", field=field)
    return parsed
