"""Tests for the amount codec."""

import pytest

from fibrous_mcp.errors import InvalidFormatError
from fibrous_mcp.utils.amounts import (
    AmountOperation,
    convert_amount,
    parse_amount,
    pretty_format,
    to_human_unit,
    to_smallest_unit,
)


class TestToSmallestUnit:
    """Tests for human -> smallest unit conversion."""

    def test_whole_and_fraction(self):
        assert to_smallest_unit("1.5", 18) == "1500000000000000000"
        assert to_smallest_unit("100", 6) == "100000000"

    def test_leading_decimal_point(self):
        assert to_smallest_unit(".25", 6) == "250000"

    def test_excess_fraction_truncates(self):
        """Extra fractional digits are dropped, never rounded."""
        assert to_smallest_unit("1.23456789", 4) == "12345"
        assert to_smallest_unit("0.99999999", 2) == "99"

    def test_zero_decimals(self):
        assert to_smallest_unit("42.9", 0) == "42"

    def test_exceeds_float_precision(self):
        """Values beyond 2**53 survive unchanged."""
        assert to_smallest_unit("123456789.123456789123456789", 18) == "123456789123456789123456789"

    @pytest.mark.parametrize(
        "amount,message",
        [
            ("", "Amount cannot be empty"),
            ("-1", "Amount cannot be negative"),
            ("1e18", "Scientific notation is not supported"),
            ("1.2.3", "multiple decimal points"),
            ("12abc", "Invalid amount format"),
            (".", "Invalid amount format"),
            ("1.5\n", "Invalid amount format"),
            ("15\n", "Invalid amount format"),
        ],
    )
    def test_rejects_malformed(self, amount, message):
        with pytest.raises(InvalidFormatError, match=message):
            to_smallest_unit(amount, 18)

    def test_rejects_out_of_range_decimals(self):
        with pytest.raises(InvalidFormatError, match="between 0 and 30"):
            to_smallest_unit("1", 31)


class TestToHumanUnit:
    """Tests for smallest unit -> human conversion."""

    def test_strips_trailing_zeros(self):
        assert to_human_unit("1500000000000000000", 18) == "1.5"

    def test_whole_amount_has_no_point(self):
        assert to_human_unit("1000000", 6) == "1"

    def test_small_amount_pads(self):
        assert to_human_unit("1", 6) == "0.000001"

    def test_zero(self):
        assert to_human_unit("0", 18) == "0"

    def test_round_trip_is_lossless(self):
        for human, decimals in [("1.5", 18), ("0.000001", 6), ("987654321.12345678", 8)]:
            assert to_human_unit(to_smallest_unit(human, decimals), decimals) == human

    def test_rejects_non_digits(self):
        with pytest.raises(InvalidFormatError):
            to_human_unit("1.5", 18)

    def test_rejects_negative(self):
        with pytest.raises(InvalidFormatError, match="Amount cannot be negative"):
            to_human_unit("-1000", 18)

    def test_rejects_trailing_newline(self):
        with pytest.raises(InvalidFormatError, match="Invalid amount format"):
            to_human_unit("1000\n", 3)

    @pytest.mark.parametrize("decimals", [0, 1, 18, 30])
    @pytest.mark.parametrize(
        "amount",
        ["0", "1", "1000", str(2**53 + 1), "9" * 77],
    )
    def test_smallest_unit_round_trip(self, amount, decimals):
        """Smallest unit -> human -> smallest unit returns the input."""
        assert to_smallest_unit(to_human_unit(amount, decimals), decimals) == amount


class TestPrettyFormat:
    """Tests for display formatting."""

    def test_truncates_to_max_decimals(self):
        assert pretty_format("1234567890123456789", 18, 4) == "1.2345"

    def test_default_six_decimals(self):
        assert pretty_format("1999999999999999999", 18) == "1.999999"

    def test_drops_zero_fraction(self):
        assert pretty_format("1000001", 6, 2) == "1"


class TestParseAmount:
    """Tests for smallest-unit integer parsing."""

    def test_valid(self):
        assert parse_amount("1000000") == 1_000_000

    def test_max_length(self):
        assert parse_amount("9" * 77) == int("9" * 77)

    def test_overflow(self):
        with pytest.raises(InvalidFormatError, match="Amount overflow"):
            parse_amount("1" * 78)

    @pytest.mark.parametrize("amount", ["", "-5", "1.5", "0x10", " 1", "5\n"])
    def test_invalid(self, amount):
        with pytest.raises(InvalidFormatError):
            parse_amount(amount)


class TestConvertAmount:
    """Tests for the operation dispatcher."""

    def test_operations(self):
        assert convert_amount("1.5", 6, "toSmallestUnit") == "1500000"
        assert convert_amount("1500000", 6, AmountOperation.TO_HUMAN_UNIT) == "1.5"

    def test_legacy_aliases(self):
        assert convert_amount("2", 3, "parse") == "2000"
        assert convert_amount("2000", 3, "format") == "2"

    def test_unknown_operation(self):
        with pytest.raises(InvalidFormatError, match="Unknown amount operation"):
            convert_amount("1", 6, "double")
