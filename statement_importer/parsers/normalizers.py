"""Locale-aware field normalizers shared by every statement parser."""

import csv
import re
from datetime import date, datetime
from typing import Iterable


class NormalizationError(ValueError):
    """Raised when a date or amount field cannot be normalized."""

    pass


_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T\s].*)?$")
_DAY_FIRST_DATE = re.compile(r"^(\d{1,2})([/.-])(\d{1,2})\2(\d{2}|\d{4})$")
# Without a year only two-digit DD/MM counts as a date
_DAY_MONTH_DATE = re.compile(r"^(\d{2})/(\d{2})$")

_CURRENCY_TOKENS = re.compile(r"R\$|US\$|BRL|USD|EUR|GBP|[$€£]", re.IGNORECASE)

_INSTALLMENT = re.compile(r"(?<![\d/])(\d{1,2})/(\d{1,2})(?![\d/])")


def parse_locale_date(text: str, default_year: int | None = None) -> date:
    """
    Parse a statement date.

    Supported forms:
    - ISO: 2024-01-15 (a trailing time part is ignored)
    - Day first: 15/01/2024, 15-01-2024, 15.01.2024, 15/01/24
    - Day first without year: 15/01 only (uses default_year, or the current year)

    Raises:
        NormalizationError: If the text is not a valid calendar date
    """
    if text is None:
        raise NormalizationError("Missing date")

    cleaned = text.strip()
    if not cleaned:
        raise NormalizationError("Missing date")

    iso = _ISO_DATE.match(cleaned)
    if iso:
        year, month, day = (int(g) for g in iso.groups())
        return _build_date(year, month, day, text)

    day_first = _DAY_FIRST_DATE.match(cleaned)
    if day_first:
        day, month = int(day_first.group(1)), int(day_first.group(3))
        year_str = day_first.group(4)
        year = 2000 + int(year_str) if len(year_str) == 2 else int(year_str)
        return _build_date(year, month, day, text)

    day_month = _DAY_MONTH_DATE.match(cleaned)
    if day_month:
        day, month = int(day_month.group(1)), int(day_month.group(2))
        return _build_date(default_year or datetime.now().year, month, day, text)

    raise NormalizationError(f"Invalid date: {text}")


def _build_date(year: int, month: int, day: int, original: str) -> date:
    try:
        return date(year, month, day)
    except ValueError:
        raise NormalizationError(f"Invalid date: {original}") from None


def parse_locale_amount(text: str) -> float:
    """
    Parse a signed monetary amount written in either decimal convention.

    "1.234,56", "1,234.56", "R$ 1234,56" and "1234.56" all give 1234.56.
    Parentheses and a trailing minus are read as negative.

    Raises:
        NormalizationError: If nothing numeric is left after stripping
    """
    if text is None:
        raise NormalizationError("Missing amount")

    cleaned = _CURRENCY_TOKENS.sub("", text)
    cleaned = re.sub(r"\s", "", cleaned)

    negative = False
    if cleaned.startswith("(") and cleaned.endswith(")"):
        negative = True
        cleaned = cleaned[1:-1]
    if cleaned.endswith("-"):
        negative = not negative
        cleaned = cleaned[:-1]
    if cleaned.startswith("-"):
        negative = not negative
        cleaned = cleaned[1:]
    elif cleaned.startswith("+"):
        cleaned = cleaned[1:]

    if not cleaned or not re.fullmatch(r"[\d.,]+", cleaned) or not re.search(r"\d", cleaned):
        raise NormalizationError(f"Invalid amount: {text}")

    number = _normalize_separators(cleaned)
    try:
        value = float(number)
    except ValueError:
        raise NormalizationError(f"Invalid amount: {text}") from None

    return -value if negative else value


def _normalize_separators(number: str) -> str:
    """Turn a digit string with "." and "," separators into a float literal."""
    last_dot = number.rfind(".")
    last_comma = number.rfind(",")

    if last_dot == -1 and last_comma == -1:
        return number

    # The right-most separator is the decimal one when both are present
    if last_dot != -1 and last_comma != -1:
        decimal_sep = "." if last_dot > last_comma else ","
        thousands_sep = "," if decimal_sep == "." else "."
        integer, _, fraction = number.rpartition(decimal_sep)
        if thousands_sep in fraction or decimal_sep in integer:
            raise NormalizationError(f"Invalid amount: {number}")
        return f"{integer.replace(thousands_sep, '')}.{fraction}"

    sep = "." if last_dot != -1 else ","
    parts = number.split(sep)
    # 1.234.567 or 1,234 (a single group of exactly three digits) are thousands
    if len(parts) > 2 or (len(parts[-1]) == 3 and parts[0] not in ("", "0")):
        if not all(len(p) == 3 for p in parts[1:]):
            raise NormalizationError(f"Invalid amount: {number}")
        return "".join(parts)
    return f"{parts[0] or '0'}.{parts[1]}"


def split_delimited_line(line: str, delimiter: str = ",") -> list[str]:
    """Split one delimited line, honouring quoted fields that contain the delimiter."""
    rows = list(csv.reader([line], delimiter=delimiter, skipinitialspace=True))
    if not rows:
        return []
    return [field.strip() for field in rows[0]]


def detect_installment(description: str) -> str | None:
    """Return "k/n" when the description carries an installment marker like "2/10"."""
    if not description:
        return None
    for match in _INSTALLMENT.finditer(description):
        current, total = int(match.group(1)), int(match.group(2))
        if 1 <= current <= total and total > 1:
            return f"{current}/{total}"
    return None


def format_statement_period(dates: Iterable[date]) -> str:
    """Format the span of the given dates as "Jan 2024 - Mar 2024"."""
    ordered = sorted(dates)
    if not ordered:
        return ""
    return f"{ordered[0].strftime('%b %Y')} - {ordered[-1].strftime('%b %Y')}"
