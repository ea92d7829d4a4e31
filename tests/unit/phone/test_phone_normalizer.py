"""
Tests for phone number normalization.
"""

import pytest

from kvkk_widget.utils.phone import INVALID_PHONE, normalize_phone


@pytest.mark.parametrize(
    "raw",
    [
        "5321234567",
        "0532 123 45 67",
        "05321234567",
        "(0532) 123-45-67",
        "532.123.45.67",
        "905321234567",
        "+90 532 123 45 67",
        "+90 (532) 123 45 67",
        "0090 532 123 45 67",
        "  0532 123 45 67  ",
    ],
)
def test_recognized_shapes_normalize_to_national_number(raw):
    """Test that every recognized shape yields the national number."""
    assert normalize_phone(raw) == "5321234567"


def test_landline_numbers_are_accepted():
    """Test that landline numbers normalize like mobile numbers."""
    assert normalize_phone("0212 555 66 77") == "2125556677"


@pytest.mark.parametrize(
    "raw",
    [
        "0532 123 45 67",
        "+90 532 123 45 67",
        "2125556677",
        "0090 212 555 66 77",
    ],
)
def test_normalization_is_idempotent(raw):
    """Test that normalizing a normalized number leaves it unchanged."""
    once = normalize_phone(raw)

    assert once is not INVALID_PHONE
    assert normalize_phone(once) == once


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "532123456",          # 9 digits
        "0532 123 45 6",      # 10 digits with trunk prefix
        "05321234567 8",      # 12 digits, not a country code
        "12345678901",        # 11 digits without trunk prefix
        "1234567890",         # national number cannot start with 1
        "053212345678",       # too long
        "+1 555 123 4567",    # other country
        "+0090 532 123 45 67",
        "++90 532 123 45 67",
        "90+5321234567",
        "0532abc1234567",     # letters are never stripped
        "0532 123 45 67 ext 2",
        "tel:05321234567",
        "٥٣٢١٢٣٤٥٦٧",         # Arabic-Indic digits
        "٠٠٠٠٠٠٠٠٥٣",
        "０５３２１２３４５６７",  # full-width digits
        "0532 123 45 6٧",     # mixed scripts
    ],
)
def test_malformed_input_is_invalid(raw):
    """Test that malformed input is reported invalid instead of guessed."""
    assert normalize_phone(raw) is INVALID_PHONE


def test_non_string_input_is_invalid():
    """Test that non-string input is invalid."""
    assert normalize_phone(None) is INVALID_PHONE
    assert normalize_phone(5321234567) is INVALID_PHONE
