"""
Test Group: Number Parsing and Formatting

Covers safe_decimal's tolerant parsing, the pt-PT currency formatter (grouping,
tiny values, digit clamping), annualized returns and percentage display.
"""

from decimal import Decimal, InvalidOperation

import pytest

from gains_engine import config
from gains_engine.utils.format_utils import NBSP, calculate_annualized_return, format_currency, format_percentage
from gains_engine.utils.type_utils import get_field, is_number, safe_decimal


# =============================================================================
# safe_decimal / is_number / get_field
# =============================================================================

class TestSafeDecimal:

    @pytest.mark.parametrize("raw, expected", [
        ("1,234.56", Decimal("1234.56")),
        ("12,34", Decimal("12.34")),
        ("1.234,56", Decimal("1234.56")),
        ("-12.345.678,9", Decimal("-12345678.9")),
        ("  -7.5 ", Decimal("-7.5")),
        (0.1, Decimal("0.1")),
        (42, Decimal("42")),
        (Decimal("3.14"), Decimal("3.14")),
    ])
    def test_parses_numeric_inputs(self, raw, expected):
        assert safe_decimal(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", True, "abc", "NaN", float("inf")])
    def test_returns_default_for_unusable_input(self, raw):
        assert safe_decimal(raw, default=Decimal("-1")) == Decimal("-1")

    def test_raise_error_reraises(self):
        with pytest.raises(InvalidOperation):
            safe_decimal("abc", raise_error=True)


class TestIsNumber:

    def test_numbers(self):
        assert is_number(Decimal("1"))
        assert is_number(3)
        assert is_number(2.5)

    def test_non_numbers(self):
        assert not is_number(True)
        assert not is_number("12")
        assert not is_number(None)
        assert not is_number(float("nan"))
        assert not is_number(Decimal("Infinity"))


class TestGetField:

    def test_dict_object_and_callable(self):
        class Row:
            amount = 5

        assert get_field({"amount": 3}, "amount") == 3
        assert get_field(Row(), "amount") == 5
        assert get_field(Row(), lambda r: r.amount * 2) == 10
        assert get_field(None, "amount", default="x") == "x"
        assert get_field({}, "missing", default=0) == 0


# =============================================================================
# format_currency
# =============================================================================

class TestFormatCurrency:

    def test_default_two_decimals(self):
        assert format_currency(Decimal("1234.56")) == f"1234,56{NBSP}€"

    def test_grouping_starts_at_five_integer_digits(self):
        assert format_currency(Decimal("12345.67")) == f"12{NBSP}345,67{NBSP}€"
        assert format_currency(Decimal("1234567")) == f"1{NBSP}234{NBSP}567,00{NBSP}€"

    def test_negative_values(self):
        assert format_currency(Decimal("-1234.5")) == f"-1234,50{NBSP}€"

    def test_tiny_values_get_four_decimals(self):
        assert format_currency(Decimal("0.005")) == f"0,0050{NBSP}€"
        assert format_currency(Decimal("-0.004")) == f"-0,0040{NBSP}€"

    def test_zero_is_not_tiny(self):
        assert format_currency(0) == f"0,00{NBSP}€"

    def test_unparseable_value_formats_as_zero(self):
        assert format_currency("abc") == f"0,00{NBSP}€"

    def test_inconsistent_digit_pair_is_clamped(self):
        assert format_currency(Decimal("1.5"), minimum_fraction_digits=3, maximum_fraction_digits=1) == f"1,5{NBSP}€"

    def test_explicit_digits(self):
        assert format_currency(Decimal("1234.56"), 0, 0) == f"1235{NBSP}€"
        assert format_currency(Decimal("10.50"), 0, 2) == f"10,5{NBSP}€"

    def test_excessive_fraction_digits_are_capped(self):
        assert format_currency(1, maximum_fraction_digits=30) == f"1,00{NBSP}€"
        assert format_currency(Decimal("0.5"), 30, 30) == f"0,{'5'.ljust(config.MAX_FRACTION_DIGITS, '0')}{NBSP}€"

    def test_amounts_wider_than_the_context_precision(self):
        assert format_currency(Decimal("1e27")) == "1" + f"{NBSP}000" * 9 + f",00{NBSP}€"
        assert format_currency(Decimal("-123456789012345678901234567.891")) == (
            f"-123{NBSP}456{NBSP}789{NBSP}012{NBSP}345{NBSP}678{NBSP}901{NBSP}234{NBSP}567,89{NBSP}€"
        )


# =============================================================================
# Returns and percentages
# =============================================================================

class TestAnnualizedReturn:

    def test_one_year_holding(self):
        assert calculate_annualized_return(Decimal("100"), Decimal("-1000"), 365) == Decimal("10")

    def test_half_year_holding_doubles(self):
        result = calculate_annualized_return(Decimal("50"), Decimal("1000"), Decimal("182.5"))
        assert result == Decimal("10")

    @pytest.mark.parametrize("net, cost, days", [
        (Decimal("100"), Decimal("0"), 365),
        (Decimal("100"), Decimal("1000"), 0),
        (Decimal("100"), Decimal("1000"), -3),
        (Decimal("100"), Decimal("1000"), 'N/A'),
        ("100", Decimal("1000"), 365),
        (None, Decimal("1000"), 365),
    ])
    def test_not_applicable(self, net, cost, days):
        assert calculate_annualized_return(net, cost, days) == 'N/A'


class TestFormatPercentage:

    def test_rounds_half_up(self):
        assert format_percentage(Decimal("12.345")) == "12.35%"

    def test_not_applicable_passthrough(self):
        assert format_percentage('N/A') == 'N/A'
        assert format_percentage(None) == 'N/A'
