"""
Tests for amount input validation.
"""
import pytest

from app.utils.validation import validate_decimal_amount, validate_and_normalize_amount


@pytest.mark.parametrize("value,expected", [
    ("100", "100"),
    ("100,5", "100.5"),
    (" 1500,00 ", "1500.00"),
])
def test_normalizes_comma(value, expected):
    assert validate_and_normalize_amount(value) == expected


@pytest.mark.parametrize("value,message", [
    ("abc", "Invalid amount"),
    ("-5", "Amount must be positive"),
    ("1.505", "At most 2 decimal places"),
])
def test_rejects(value, message):
    assert validate_decimal_amount(value) == (False, message)
    with pytest.raises(ValueError, match=message):
        validate_and_normalize_amount(value)
