"""Common contract shared by every statement format parser."""

import csv
from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from statement_importer.config import Settings, settings
from statement_importer.models import (
    ParsedTransaction,
    ParseMetadata,
    ParseResult,
    ParserType,
    RawFile,
)
from statement_importer.parsers.normalizers import (
    NormalizationError,
    format_statement_period,
    split_delimited_line,
)
from statement_importer.parsers.validation import (
    ParseStats,
    ValidationError,
    decode_prefix,
    log_parse_result,
    logger,
    validate_amount,
    validate_date,
    validate_file_contents,
)
from statement_importer.services.dedup import deduplicate_transactions


class StatementParser(ABC):
    """
    A parser for one statement format.

    Subclasses declare which files they look at (extensions, media types),
    how much of a file they may read while probing, and implement
    _matches_signature() and parse().
    """

    name: str = ""
    parser_type: ParserType
    bank_name: Optional[str] = None
    extensions: tuple[str, ...] = ()
    media_types: tuple[str, ...] = ()

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or settings

    @property
    @abstractmethod
    def probe_bytes(self) -> int:
        """Maximum number of leading bytes read by can_parse()."""

    @property
    @abstractmethod
    def max_bytes(self) -> int:
        """Files declaring a larger size are never claimed."""

    def accepts(self, file: RawFile) -> bool:
        """Cheap filter on extension or media type, no content is read."""
        if file.extension in self.extensions:
            return True
        return bool(file.media_type) and file.media_type.lower() in self.media_types

    def can_parse(self, file: RawFile) -> bool:
        """Decide whether this parser claims the file. Never raises."""
        try:
            if not self.accepts(file):
                return False
            if file.size > self.max_bytes:
                logger.debug(f"{self.name}: {file.filename} exceeds {self.max_bytes} bytes")
                return False
            prefix = file.read_prefix(self.probe_bytes)
            return self._matches_signature(prefix)
        except Exception as e:
            logger.debug(f"{self.name}: probe failed for {file.filename}: {e}")
            return False

    @abstractmethod
    def _matches_signature(self, prefix: bytes) -> bool:
        """Inspect the probe prefix for the format's signature."""

    @abstractmethod
    def parse(self, file: RawFile) -> ParseResult:
        """Parse the whole file."""

    def _read_text(self, file: RawFile) -> str:
        """Validate and decode the whole file. Raises ValidationError."""
        validate_file_contents(file.content, self.max_bytes)
        return file.text()

    def _check_ranges(self, txn_date: date, amount: float) -> None:
        """Reject dates and amounts outside plausible statement bounds."""
        if not validate_date(txn_date):
            raise NormalizationError(f"Date out of range: {txn_date.isoformat()}")
        if not validate_amount(amount):
            raise NormalizationError(f"Amount out of range: {amount}")

    def _debit_amount(self, amount: float, stats: ParseStats) -> Optional[float]:
        """
        Apply the credit policy to an amount already signed so that debits are positive.

        Returns the amount to record, rounded to cents, or None when the record
        is a credit that is dropped. Raises NormalizationError for a non-zero
        amount that rounds to zero.
        """
        rounded = round(amount, 2)
        if amount != 0 and rounded == 0:
            raise NormalizationError(f"Amount rounds to zero: {amount}")
        if rounded > 0:
            return rounded
        if rounded < 0 and self.config.include_credits:
            return -rounded
        stats.credits_ignored += 1
        return None

    def _build_result(
        self,
        transactions: list[ParsedTransaction],
        stats: ParseStats,
        bank_name: Optional[str] = None,
        card_last4: Optional[str] = None,
    ) -> ParseResult:
        """Deduplicate, compute metadata and decide success for a finished parse."""
        unique = deduplicate_transactions(transactions)
        duplicates = len(transactions) - len(unique)
        stats.transactions_parsed = len(unique)

        log_parse_result(stats, self.name, duplicates)

        metadata = ParseMetadata(
            bank_name=bank_name or self.bank_name,
            total_amount=round(sum(txn.amount for txn in unique), 2),
            statement_period=format_statement_period(txn.date for txn in unique) or None,
            card_last4=card_last4,
            credits_ignored=stats.credits_ignored,
            duplicates_removed=duplicates,
        )

        return ParseResult(
            success=not stats.warnings or bool(unique),
            transactions=unique,
            errors=list(stats.warnings),
            metadata=metadata,
        )


class DelimitedStatementParser(StatementParser):
    """
    Line-oriented parser for institution CSV exports.

    The first non-blank line is the header. Every following non-blank line
    is split honouring quotes and handed to _parse_line(); a line that fails
    to normalize becomes a "Line N: reason" warning and is skipped.
    """

    delimiter: str = ","
    extensions = (".csv",)
    media_types = ("text/csv", "application/csv")

    # Every group must have at least one token present in the header line
    header_tokens: tuple[tuple[str, ...], ...] = ()

    @property
    def probe_bytes(self) -> int:
        return self.config.csv_probe_bytes

    @property
    def max_bytes(self) -> int:
        return self.config.csv_max_bytes

    def _matches_signature(self, prefix: bytes) -> bool:
        lines = decode_prefix(prefix).splitlines()
        if len(lines) < 2:
            return False
        return self._matches_header(lines[0])

    def _matches_header(self, header: str) -> bool:
        header_lower = header.lower()
        return all(any(token in header_lower for token in group) for group in self.header_tokens)

    def parse(self, file: RawFile) -> ParseResult:
        try:
            text = self._read_text(file)
        except ValidationError as e:
            logger.error(f"{self.name}: {e}")
            return ParseResult.failure(str(e))

        lines = [
            (line_number, line)
            for line_number, line in enumerate(text.splitlines(), start=1)
            if line.strip()
        ]
        if len(lines) < 2:
            return ParseResult.failure("CSV file is empty or invalid")

        stats = ParseStats()
        transactions: list[ParsedTransaction] = []

        # Skip header
        for line_number, line in lines[1:]:
            stats.lines_processed += 1
            try:
                fields = split_delimited_line(line, self.delimiter)
                transaction = self._parse_line(fields, line_number, stats)
            except (NormalizationError, ValueError, csv.Error) as e:
                stats.skip(line_number, str(e))
                continue

            if transaction is not None:
                transactions.append(transaction)

        return self._build_result(transactions, stats, card_last4=self._extract_card_last4(text))

    @abstractmethod
    def _parse_line(
        self, fields: list[str], line_number: int, stats: ParseStats
    ) -> Optional[ParsedTransaction]:
        """
        Turn the fields of one data line into a transaction.

        Returns None for credits dropped by the credit policy. Raises
        ValueError (usually NormalizationError) for malformed lines.
        """

    def _extract_card_last4(self, text: str) -> Optional[str]:
        return None

    def _require_fields(self, fields: list[str], count: int) -> None:
        if len(fields) < count:
            raise ValueError(f"Expected {count} fields, found {len(fields)}")
