"""Tests for the field normalizers."""

from datetime import date

import pytest

from statement_importer.parsers.normalizers import (
    NormalizationError,
    detect_installment,
    format_statement_period,
    parse_locale_amount,
    parse_locale_date,
    split_delimited_line,
)


class TestParseLocaleDate:
    """Test date parsing."""

    def test_parses_iso(self):
        """Should parse YYYY-MM-DD."""
        assert parse_locale_date("2024-01-15") == date(2024, 1, 15)

    def test_ignores_time_suffix(self):
        """Should drop a trailing time part."""
        assert parse_locale_date("2024-01-15T10:00:00") == date(2024, 1, 15)

    @pytest.mark.parametrize("text", ["15/01/2024", "15-01-2024", "15.01.2024"])
    def test_parses_day_first(self, text):
        """Should parse day-first dates with any common separator."""
        assert parse_locale_date(text) == date(2024, 1, 15)

    def test_two_digit_year(self):
        """Should read a two digit year as 20YY."""
        assert parse_locale_date("15/01/24") == date(2024, 1, 15)

    def test_missing_year_uses_default(self):
        """Should use the given year when the date has none."""
        assert parse_locale_date("15/01", default_year=2023) == date(2023, 1, 15)

    def test_missing_year_uses_current_year(self):
        """Should fall back to the current year."""
        assert parse_locale_date("15/01").year == date.today().year

    @pytest.mark.parametrize("text", ["1.5", "3-4", "1/5", "15.01", "15/01-2024"])
    def test_rejects_short_numeric_fields(self, text):
        """Should not read short numbers or mixed separators as dates."""
        with pytest.raises(NormalizationError, match="Invalid date"):
            parse_locale_date(text)

    def test_single_digit_day_with_year(self):
        """Should accept single-digit parts when the year is present."""
        assert parse_locale_date("5/1/2024") == date(2024, 1, 5)

    def test_strips_whitespace(self):
        """Should tolerate surrounding whitespace."""
        assert parse_locale_date("  2024-01-15 ") == date(2024, 1, 15)

    def test_rejects_impossible_date(self):
        """Should reject dates that do not exist."""
        with pytest.raises(NormalizationError, match="Invalid date"):
            parse_locale_date("31/02/2024")

    @pytest.mark.parametrize("text", ["", "not a date", "2024/13/45", "15 Jan 2024"])
    def test_rejects_garbage(self, text):
        """Should reject text that is not a date."""
        with pytest.raises(NormalizationError):
            parse_locale_date(text)

    def test_error_is_value_error(self):
        """NormalizationError should be catchable as ValueError."""
        with pytest.raises(ValueError):
            parse_locale_date("xx")


class TestParseLocaleAmount:
    """Test amount parsing."""

    @pytest.mark.parametrize(
        "text",
        ["1.234,56", "1,234.56", "1234,56", "1234.56", "R$ 1.234,56", "R$1234,56", "$1,234.56", "BRL 1.234,56"],
    )
    def test_decimal_conventions(self, text):
        """Should read both decimal conventions and strip currency markers."""
        assert parse_locale_amount(text) == pytest.approx(1234.56)

    def test_thousands_only(self):
        """Repeated separators or a single three-digit group are thousands separators."""
        assert parse_locale_amount("1.234.567") == 1234567
        assert parse_locale_amount("1,234,567") == 1234567
        assert parse_locale_amount("1,234") == 1234

    def test_leading_zero_group_is_decimal(self):
        """A zero integer part means the separator is decimal."""
        assert parse_locale_amount("0,500") == pytest.approx(0.5)

    def test_leading_minus(self):
        """Should read a leading minus as negative."""
        assert parse_locale_amount("-45.90") == pytest.approx(-45.90)

    def test_trailing_minus(self):
        """Should read a trailing minus as negative."""
        assert parse_locale_amount("45,90-") == pytest.approx(-45.90)

    def test_parentheses(self):
        """Should read parentheses as negative."""
        assert parse_locale_amount("(12,50)") == pytest.approx(-12.50)

    def test_plus_sign(self):
        """Should accept an explicit plus sign."""
        assert parse_locale_amount("+30.00") == pytest.approx(30.0)

    def test_non_breaking_space(self):
        """Should strip non-breaking spaces."""
        assert parse_locale_amount("R$\xa01.234,56") == pytest.approx(1234.56)

    def test_integer(self):
        """Should parse integers."""
        assert parse_locale_amount("150") == 150

    @pytest.mark.parametrize("text", ["", "R$", "abc", "12a.50", "-", "1.234,56,78"])
    def test_rejects_invalid(self, text):
        """Should reject text that is not an amount."""
        with pytest.raises(NormalizationError):
            parse_locale_amount(text)


class TestSplitDelimitedLine:
    """Test quote-aware splitting."""

    def test_plain_fields(self):
        """Should split on the delimiter."""
        assert split_delimited_line("2024-01-15,outros,Market,-45.90") == [
            "2024-01-15", "outros", "Market", "-45.90",
        ]

    def test_quoted_field_with_delimiter(self):
        """Should keep a quoted delimiter inside the field."""
        fields = split_delimited_line('2024-01-15,outros,"Market, Downtown",-45.90')
        assert fields == ["2024-01-15", "outros", "Market, Downtown", "-45.90"]

    def test_quoted_amount_with_comma(self):
        """Should keep a Brazilian amount in quotes as one field."""
        fields = split_delimited_line('15/01/2024,"LOJA ABC","1.234,56"')
        assert fields == ["15/01/2024", "LOJA ABC", "1.234,56"]

    def test_escaped_quotes(self):
        """Should unescape doubled quotes."""
        fields = split_delimited_line('a,"Bar ""Central""",b')
        assert fields == ["a", 'Bar "Central"', "b"]

    def test_trims_fields(self):
        """Should trim surrounding whitespace."""
        assert split_delimited_line(" a , b ,c ") == ["a", "b", "c"]

    def test_other_delimiter(self):
        """Should support other delimiters."""
        assert split_delimited_line("a;b;c", delimiter=";") == ["a", "b", "c"]


class TestDetectInstallment:
    """Test installment detection."""

    def test_detects_installment(self):
        """Should find k/n inside the description."""
        assert detect_installment("Loja ABC 2/10 Centro") == "2/10"

    def test_normalizes_leading_zeros(self):
        """Should drop leading zeros."""
        assert detect_installment("PARC 03/12 LOJA") == "3/12"

    def test_ignores_dates(self):
        """Should not read a date as an installment."""
        assert detect_installment("Compra 12/03/2024") is None

    def test_rejects_impossible_pairs(self):
        """Current installment cannot exceed the total and the total must be above one."""
        assert detect_installment("Loja 11/10") is None
        assert detect_installment("Loja 1/1") is None

    def test_no_installment(self):
        """Should return None when there is no pair."""
        assert detect_installment("Supermercado") is None
        assert detect_installment("") is None


class TestFormatStatementPeriod:
    """Test statement period formatting."""

    def test_formats_span(self):
        """Should format the earliest and latest month."""
        dates = [date(2024, 3, 5), date(2024, 1, 15), date(2024, 2, 1)]
        assert format_statement_period(dates) == "Jan 2024 - Mar 2024"

    def test_single_date(self):
        """Should repeat the month for a single date."""
        assert format_statement_period([date(2024, 1, 15)]) == "Jan 2024 - Jan 2024"

    def test_empty(self):
        """Should return an empty string without dates."""
        assert format_statement_period([]) == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
