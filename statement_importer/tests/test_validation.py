"""Tests for the parser validation module."""

from datetime import date

import pytest

from statement_importer.parsers.validation import (
    ParseStats,
    ValidationError,
    decode_prefix,
    decode_text,
    log_parse_result,
    normalize_description,
    validate_amount,
    validate_date,
    validate_file_contents,
)


class TestValidateFileContents:
    """Test file contents validation."""

    def test_rejects_empty_contents(self):
        """Should reject empty file contents."""
        with pytest.raises(ValidationError, match="empty"):
            validate_file_contents(b"")

    def test_rejects_oversized_contents(self):
        """Should reject files larger than the limit."""
        with pytest.raises(ValidationError, match="too large"):
            validate_file_contents(b"x" * 11, max_size=10)

    def test_accepts_valid_contents(self):
        """Should accept valid file contents."""
        validate_file_contents(b"Valid file contents here", max_size=100)
        validate_file_contents(b"no limit given")


class TestDecodeText:
    """Test decoding of statement bytes."""

    def test_decodes_utf8(self):
        """Should decode UTF-8 content."""
        assert decode_text("Data,Descrição,Valor".encode("utf-8")) == "Data,Descrição,Valor"

    def test_strips_utf8_bom(self):
        """Should drop the UTF-8 byte order mark."""
        assert decode_text(b"\xef\xbb\xbfdate,amount") == "date,amount"

    def test_falls_back_to_cp1252(self):
        """Should decode Windows exports."""
        assert decode_text("Descrição".encode("cp1252")) == "Descrição"

    def test_latin1_never_fails(self):
        """Bytes undefined in cp1252 still decode through latin-1."""
        assert decode_text(b"\x81abc") == "\x81abc"


class TestDecodePrefix:
    """Test decoding of file prefixes read during detection."""

    def test_drops_partial_character(self):
        """A prefix cut inside a multi-byte character should still decode as UTF-8."""
        encoded = "Data,Descrição".encode("utf-8")
        # Cut between the two bytes of "ç"
        cut = encoded[: encoded.index("ç".encode("utf-8")) + 1]
        assert decode_prefix(cut) == "Data,Descri"

    def test_strips_bom(self):
        """Should drop the UTF-8 byte order mark."""
        assert decode_prefix(b"\xef\xbb\xbfOFXHEADER:100") == "OFXHEADER:100"

    def test_non_utf8_prefix(self):
        """Should fall back to the single-byte encodings."""
        assert decode_prefix("Descrição".encode("cp1252")) == "Descrição"


class TestValidateAmount:
    """Test amount validation."""

    def test_accepts_normal_amounts(self):
        """Should accept normal transaction amounts."""
        assert validate_amount(100.0) is True
        assert validate_amount(-50.25) is True
        assert validate_amount(0) is True

    def test_rejects_extreme_amounts(self):
        """Should reject extremely large amounts."""
        assert validate_amount(2_000_000) is False
        assert validate_amount(-2_000_000) is False

    def test_rejects_nan_and_inf(self):
        """Should reject NaN and infinity."""
        assert validate_amount(float("nan")) is False
        assert validate_amount(float("inf")) is False

    def test_rejects_none(self):
        """Should reject None."""
        assert validate_amount(None) is False


class TestValidateDate:
    """Test date validation."""

    def test_accepts_reasonable_dates(self):
        """Should accept dates in range."""
        assert validate_date(date(2024, 1, 15)) is True

    def test_rejects_old_and_far_future_dates(self):
        """Should reject dates outside 2000-2100."""
        assert validate_date(date(1999, 12, 31)) is False
        assert validate_date(date(2101, 1, 1)) is False

    def test_rejects_none(self):
        """Should reject None."""
        assert validate_date(None) is False


class TestNormalizeDescription:
    """Test description normalization."""

    def test_collapses_whitespace(self):
        """Should collapse runs of whitespace."""
        assert normalize_description("  UBER   *TRIP \t SAO PAULO ") == "UBER *TRIP SAO PAULO"

    def test_caps_length(self):
        """Should cap the length when asked."""
        assert normalize_description("A" * 250, max_length=200) == "A" * 200

    def test_empty(self):
        """Should return an empty string for empty input."""
        assert normalize_description("") == ""
        assert normalize_description(None) == ""


class TestParseStats:
    """Test parse bookkeeping."""

    def test_success_rate(self):
        """Should compute the share of processed lines that became transactions."""
        stats = ParseStats(lines_processed=4, transactions_parsed=3)
        assert stats.success_rate == 75.0

    def test_success_rate_without_lines(self):
        """Should be zero when nothing was processed."""
        assert ParseStats().success_rate == 0.0

    def test_skip_records_warning(self):
        """Should count the skip and add a line-numbered warning."""
        stats = ParseStats()
        stats.skip(3, "Invalid date: xx")
        assert stats.lines_skipped == 1
        assert stats.warnings == ["Line 3: Invalid date: xx"]

    def test_log_parse_result(self, caplog):
        """Should log a summary line."""
        stats = ParseStats(lines_processed=2, transactions_parsed=2)
        with caplog.at_level("INFO", logger="statement_importer.parsers"):
            log_parse_result(stats, "Nubank CSV", duplicates_removed=1)
        assert "Nubank CSV: Parsed 2 transactions" in caplog.text
        assert "duplicates 1" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
