"""
Tests for adprofit.coercion module.
"""
import pytest

from adprofit.coercion import is_number, to_bool, to_float, to_int, to_optional_str, to_str


class TestToFloat:
    """Tests for to_float."""

    @pytest.mark.parametrize("value,expected", [
        (3, 3.0),
        ("4.5", 4.5),
        (" 7 ", 7.0),
    ])
    def test_numbers(self, value, expected):
        assert to_float(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", True, [1], {}, float("nan"), float("inf")])
    def test_defaults(self, value):
        assert to_float(value) == 0.0

    def test_custom_default(self):
        assert to_float("x", None) is None


class TestOtherCoercions:
    """Tests for to_int, to_str, to_bool and is_number."""

    def test_to_int_truncates(self):
        assert to_int("3.9") == 3
        assert to_int(None, 1) == 1

    def test_to_str(self):
        assert to_str("  a ") == "a"
        assert to_str(12.0) == "12"
        assert to_str(None) == "-"
        assert to_str({"a": 1}) == "-"

    def test_to_optional_str(self):
        assert to_optional_str("") is None
        assert to_optional_str(5) == "5"

    def test_to_bool(self):
        assert to_bool("true")
        assert not to_bool("false")
        assert not to_bool("0")
        assert to_bool(1)
        assert not to_bool(None)

    def test_is_number(self):
        assert is_number(1.5)
        assert not is_number(True)
        assert not is_number("1")

    def test_int_beyond_float_range(self):
        """Integers too large for a float are not numbers."""
        assert to_float(10**400) == 0.0
        assert to_float(10**400, None) is None
        assert to_float(str(10**400)) == 0.0
        assert to_int(10**400) == 0
        assert not is_number(10**400)
