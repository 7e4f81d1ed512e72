"""
Unit tests for utils/quantity.py.

Tests cover:
- Defaults for absent values
- Comma decimals from form inputs
- Rejection of non-numeric input
- Id parsing for request bodies
"""

import math

import pytest

from exceptions import ValidationException
from utils.quantity import parse_quantity, parse_id


class TestParseQuantity:

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_absent_value_uses_default(self, value):
        assert parse_quantity(value) == 1.0
        assert parse_quantity(value, default=3.0) == 3.0

    @pytest.mark.parametrize("value, expected", [
        (2, 2.0),
        (0.25, 0.25),
        ("4", 4.0),
        (" 2.5 ", 2.5),
        ("2,5", 2.5),
        (-1, -1.0),
        (0, 0.0),
    ])
    def test_numbers_parsed_without_sign_check(self, value, expected):
        assert parse_quantity(value) == expected

    @pytest.mark.parametrize("value", ["abc", "1.2.3", True, [1], {"n": 1}, math.nan, "inf"])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ValidationException) as exc_info:
            parse_quantity(value, field="quantityInParent")
        assert exc_info.value.field == "quantityInParent"


class TestParseId:

    @pytest.mark.parametrize("value, expected", [(5, 5), ("12", 12), (" 7 ", 7)])
    def test_valid_ids(self, value, expected):
        assert parse_id(value, "parentId") == expected

    @pytest.mark.parametrize("value", [None, "", "x1", 0, -3, True, 1.5])
    def test_invalid_ids(self, value):
        with pytest.raises(ValidationException) as exc_info:
            parse_id(value, "childId")
        assert exc_info.value.field == "childId"
