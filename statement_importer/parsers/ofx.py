"""Parser for OFX/QFX (Open Financial Exchange) statements."""

import re
from datetime import date
from typing import Optional

from statement_importer.models import ParsedTransaction, ParseResult, ParserType, RawFile
from statement_importer.parsers.base import StatementParser
from statement_importer.parsers.normalizers import NormalizationError, parse_locale_amount
from statement_importer.parsers.validation import (
    ParseStats,
    ValidationError,
    decode_prefix,
    logger,
)
from statement_importer.services.categorizer import categorize_description

_STMTTRN = re.compile(r"<STMTTRN>(.*?)</STMTTRN>", re.IGNORECASE | re.DOTALL)
_OFX_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})")

DEFAULT_DESCRIPTION = "Transaction without description"
DEFAULT_BANK_NAME = "Generic Bank"


def extract_tag(content: str, tag: str) -> str:
    """
    Read a leaf element's value.

    Works for closed XML elements (<MEMO>text</MEMO>) and for SGML style
    OFX 1.x elements (<MEMO>text) whose value runs to the next tag or line end.
    """
    match = re.search(rf"<{tag}>\s*([^<\r\n]*)", content, re.IGNORECASE)
    return match.group(1).strip() if match else ""


def parse_ofx_date(date_str: str) -> date:
    """Parse an OFX date: YYYYMMDD[HHMMSS[.XXX][[TZ]]]. Only the day is kept."""
    match = _OFX_DATE.match(date_str or "")
    if not match:
        raise NormalizationError(f"Invalid date: {date_str}")
    year, month, day = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise NormalizationError(f"Invalid date: {date_str}") from None


class OFXParser(StatementParser):
    """
    Generic parser for OFX/QFX files as exported by most Brazilian banks.

    Every <STMTTRN> block is one transaction. TRNAMT is negative for
    charges; positive amounts are credits and are dropped.
    """

    name = "Generic OFX"
    parser_type = ParserType.GENERIC_OFX
    extensions = (".ofx", ".qfx")
    media_types = ("application/x-ofx", "application/ofx", "application/vnd.intu.qfx")

    @property
    def probe_bytes(self) -> int:
        return self.config.ofx_probe_bytes

    @property
    def max_bytes(self) -> int:
        return self.config.ofx_max_bytes

    def _matches_signature(self, prefix: bytes) -> bool:
        text = decode_prefix(prefix)
        return "<OFX>" in text or "OFXHEADER" in text

    def parse(self, file: RawFile) -> ParseResult:
        try:
            text = self._read_text(file)
        except ValidationError as e:
            logger.error(f"{self.name}: {e}")
            return ParseResult.failure(str(e))

        # OFX 1.x starts with a plain-text header before the markup
        ofx_start = text.find("<OFX>")
        if ofx_start == -1:
            return ParseResult.failure("Invalid OFX file: <OFX> tag not found")
        content = text[ofx_start:]

        stats = ParseStats()
        transactions: list[ParsedTransaction] = []

        for index, match in enumerate(_STMTTRN.finditer(content), start=1):
            stats.lines_processed += 1
            try:
                transaction = self._parse_transaction(match.group(1), stats)
            except ValueError as e:
                stats.lines_skipped += 1
                stats.warnings.append(f"Transaction {index}: {e}")
                continue

            if transaction is not None:
                transactions.append(transaction)

        result = self._build_result(transactions, stats, bank_name=self._extract_bank_name(content))
        if not result.transactions:
            result.success = False
            result.errors.append("No transactions found in OFX file")
        return result

    def _parse_transaction(self, content: str, stats: ParseStats) -> Optional[ParsedTransaction]:
        txn_date = parse_ofx_date(extract_tag(content, "DTPOSTED"))

        amount_str = extract_tag(content, "TRNAMT")
        if not amount_str:
            raise NormalizationError("Missing amount")
        original_amount = parse_locale_amount(amount_str)
        self._check_ranges(txn_date, original_amount)

        amount = self._debit_amount(-original_amount, stats)
        if amount is None:
            return None

        description = extract_tag(content, "MEMO") or extract_tag(content, "NAME") or DEFAULT_DESCRIPTION

        return ParsedTransaction(
            date=txn_date,
            description=description,
            amount=amount,
            category=categorize_description(description),
            raw_data={
                "trn_type": extract_tag(content, "TRNTYPE"),
                "original_amount": original_amount,
                "fit_id": extract_tag(content, "FITID"),
            },
        )

    def _extract_bank_name(self, content: str) -> str:
        org = extract_tag(content, "ORG")
        if org:
            return org

        fid = extract_tag(content, "FID")
        if fid:
            return f"Bank (FID: {fid})"

        return DEFAULT_BANK_NAME
