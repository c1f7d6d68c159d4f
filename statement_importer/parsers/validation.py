"""Shared validation utilities for statement parsers."""

import codecs
import logging
from dataclasses import dataclass, field
from datetime import date

# Configure logging for parsers
logger = logging.getLogger("statement_importer.parsers")

# Tried in order; latin-1 never fails so it closes the list
ENCODINGS = ["utf-8-sig", "utf-8", "cp1252", "latin-1"]


@dataclass
class ParseStats:
    """Per-parse bookkeeping collected while walking a statement."""

    lines_processed: int = 0
    lines_skipped: int = 0
    credits_ignored: int = 0
    transactions_parsed: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Calculate the parsing success rate."""
        if self.lines_processed == 0:
            return 0.0
        return (self.transactions_parsed / self.lines_processed) * 100

    def skip(self, line_number: int, reason: str) -> None:
        """Record a skipped line together with its warning."""
        self.lines_skipped += 1
        self.warnings.append(f"Line {line_number}: {reason}")


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


def validate_file_contents(contents: bytes, max_size: int | None = None) -> None:
    """
    Validate file contents before parsing.

    Args:
        contents: Raw file bytes
        max_size: Maximum accepted file size in bytes

    Raises:
        ValidationError: If validation fails
    """
    if not contents:
        raise ValidationError("File is empty")

    if max_size is not None and len(contents) > max_size:
        raise ValidationError(f"File too large ({len(contents)} bytes), maximum {max_size} bytes allowed")


def decode_text(contents: bytes) -> str:
    """
    Decode statement bytes into text.

    Args:
        contents: Raw file bytes

    Returns:
        Decoded text content

    Raises:
        ValidationError: If no supported encoding can decode the bytes
    """
    for encoding in ENCODINGS:
        try:
            return contents.decode(encoding)
        except UnicodeDecodeError:
            continue

    raise ValidationError(f"Could not decode file with any supported encoding ({', '.join(ENCODINGS)})")


def decode_prefix(prefix: bytes) -> str:
    """
    Decode the first bytes of a file for format probing.

    A prefix cut at an arbitrary byte may end inside a multi-byte UTF-8
    character; that partial character is dropped instead of forcing a
    fallback to a single-byte encoding.
    """
    if prefix.startswith(codecs.BOM_UTF8):
        prefix = prefix[len(codecs.BOM_UTF8):]

    try:
        return prefix.decode("utf-8")
    except UnicodeDecodeError as e:
        if e.reason == "unexpected end of data":
            try:
                return prefix[: e.start].decode("utf-8")
            except UnicodeDecodeError:
                pass

    return decode_text(prefix)


def validate_amount(amount: float, min_val: float = -1_000_000, max_val: float = 1_000_000) -> bool:
    """
    Validate that an amount is within reasonable bounds.

    Args:
        amount: The amount to validate
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        True if valid, False otherwise
    """
    if amount is None:
        return False

    # NaN or infinity
    if amount != amount or abs(amount) == float("inf"):
        return False

    return min_val <= amount <= max_val


def validate_date(txn_date: date, min_year: int = 2000, max_year: int = 2100) -> bool:
    """
    Validate that a date is within reasonable bounds.

    Args:
        txn_date: The date to validate
        min_year: Minimum allowed year
        max_year: Maximum allowed year

    Returns:
        True if valid, False otherwise
    """
    if txn_date is None:
        return False

    return min_year <= txn_date.year <= max_year


def normalize_description(description: str, max_length: int | None = None) -> str:
    """
    Collapse whitespace in a description and optionally cap its length.

    Args:
        description: Raw description
        max_length: Maximum number of characters kept

    Returns:
        Normalized description
    """
    if not description:
        return ""

    description = " ".join(description.split())

    if max_length is not None and len(description) > max_length:
        description = description[:max_length].rstrip()

    return description


def log_parse_result(stats: ParseStats, parser_name: str, duplicates_removed: int = 0) -> None:
    """
    Log parsing results for debugging.

    Args:
        stats: Bookkeeping for the finished parse
        parser_name: Name of the parser
        duplicates_removed: Transactions dropped as exact duplicates
    """
    logger.info(
        f"{parser_name}: Parsed {stats.transactions_parsed} transactions "
        f"(processed {stats.lines_processed}, "
        f"skipped {stats.lines_skipped}, "
        f"credits {stats.credits_ignored}, "
        f"duplicates {duplicates_removed})"
    )

    for warning in stats.warnings[:5]:  # Log first 5 warnings
        logger.debug(f"{parser_name}: {warning}")
