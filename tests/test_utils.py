"""
Service helper tests
"""
import pytest

from app.services.utils import to_int


@pytest.mark.parametrize("value, expected", [
    (5, 5),
    ("42", 42),
    (" 7 ", 7),
    ("-3", -3),
    (4.0, 4),
])
def test_to_int_accepts_whole_numbers(value, expected):
    assert to_int(value) == expected


@pytest.mark.parametrize("value", ["+-5", "5\n6", "1e3", "", "x", 2.5, True, None, [1]])
def test_to_int_rejects_everything_else(value):
    assert to_int(value) is None
