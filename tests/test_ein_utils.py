"""Tests for EIN normalization."""

import pytest

from nonprofit_pipeline.utils.ein_utils import ein_to_digits, normalize_ein, validate_and_format


@pytest.mark.parametrize("raw", ["75-3139219", "753139219", " 75 3139219 ", "75-313-9219"])
def test_normalize_variants(raw):
    assert normalize_ein(raw) == "75-3139219"


@pytest.mark.parametrize(
    "raw,message",
    [
        ("", "EIN is required"),
        ("12-345", "EIN must be exactly 9 digits (got 5)"),
        ("1234567890", "EIN must be exactly 9 digits (got 10)"),
        ("111111111", "EIN cannot be all same digit"),
        ("00-1234567", "EIN prefix cannot be 00"),
        ("EIN 75-3139219", "EIN may only contain digits, spaces and hyphens"),
    ],
)
def test_invalid(raw, message):
    assert validate_and_format(raw) == (False, None, message)
    assert normalize_ein(raw) is None


def test_digits():
    assert ein_to_digits("75-3139219") == "753139219"
    assert ein_to_digits("bogus") is None
