"""Best-effort parser for statements delivered as PDF documents."""

import re
from io import BytesIO
from typing import Optional

import pdfplumber

from statement_importer.models import ParsedTransaction, ParseResult, ParserType, RawFile
from statement_importer.parsers.base import StatementParser
from statement_importer.parsers.normalizers import (
    NormalizationError,
    detect_installment,
    parse_locale_amount,
    parse_locale_date,
)
from statement_importer.parsers.validation import (
    ParseStats,
    ValidationError,
    logger,
    normalize_description,
    validate_file_contents,
)
from statement_importer.services.categorizer import categorize_description

UNKNOWN_BANK = "Unknown Bank"
REVIEW_WARNING = "Best-effort PDF extraction: manual review required"
MIN_TEXT_LENGTH = 20
MIN_LINE_LENGTH = 10

# Short lines containing any of these are headers or summary rows
SKIP_KEYWORDS = [
    "TOTAL", "SALDO", "PAGAMENTO", "RESUMO", "FATURA",
    "VENCIMENTO", "FECHAMENTO", "LIMITE", "CARTÃO",
    "DATA", "DESCRIÇÃO", "VALOR", "ESTABELECIMENTO",
]
SKIP_KEYWORD_MAX_LINE = 50

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")

# Longest forms first so 15/01/2024 is not read as 15/01
_DATE_TOKEN = re.compile(
    r"(?<![\d/])(\d{4}-\d{2}-\d{2}|\d{2}/\d{2}/\d{4}|\d{2}/\d{2}/\d{2}|\d{2}/\d{2})(?![\d/])"
)
_AMOUNT_TOKEN = re.compile(
    r"(?P<sign>-\s*)?(?:(?:R\$|US\$|\$)\s*(?P<symbol_sign>-\s*)?)?"
    r"(?<![\d.,])(?P<number>\d{1,3}(?:[.,]\d{3})+[.,]\d{2}|\d+[.,]\d{2})(?!\d)"
)
_CURRENCY_SYMBOLS = re.compile(r"R\$|US\$|\$")


def _extract_with_pdfplumber(contents: bytes) -> str:
    """Extract the text layer of every page."""
    with pdfplumber.open(BytesIO(contents)) as pdf:
        return "\n".join(page.extract_text() or "" for page in pdf.pages)


def _decode_raw(contents: bytes) -> str:
    text = contents.decode("utf-8", errors="replace")
    if "\ufffd" in text:
        text = contents.decode("latin-1")
    return text


def clean_text(text: str) -> str:
    """Replace control characters and collapse horizontal whitespace, keeping line breaks."""
    text = _CONTROL_CHARS.sub(" ", text)
    text = _HORIZONTAL_SPACE.sub(" ", text)
    return "\n".join(line.strip() for line in text.splitlines() if line.strip())


def extract_text(contents: bytes) -> str:
    """
    Get searchable text out of a PDF.

    pdfplumber is tried first. When it fails or finds no text layer the raw
    bytes are decoded, which still works for simple uncompressed documents.
    """
    text = ""
    try:
        text = _extract_with_pdfplumber(contents)
    except Exception as e:
        logger.warning(f"PDF text extraction failed, decoding raw bytes: {e}")

    if not text.strip():
        text = _decode_raw(contents)

    return clean_text(text)


class PDFTextParser(StatementParser):
    """
    Scan PDF text line by line for a date followed by an amount.

    This is the last-resort parser. Results always carry a manual review
    warning, even when every line was read.
    """

    name = "PDF (best effort)"
    parser_type = ParserType.PDF
    extensions = (".pdf",)
    media_types = ("application/pdf",)

    @property
    def probe_bytes(self) -> int:
        return self.config.pdf_probe_bytes

    @property
    def max_bytes(self) -> int:
        return self.config.max_upload_bytes

    def _matches_signature(self, prefix: bytes) -> bool:
        return b"%PDF" in prefix

    def parse(self, file: RawFile) -> ParseResult:
        try:
            validate_file_contents(file.content, self.max_bytes)
        except ValidationError as e:
            logger.error(f"{self.name}: {e}")
            return ParseResult.failure(str(e))

        text = extract_text(file.content)
        if len(text) < MIN_TEXT_LENGTH:
            return ParseResult.failure(
                "PDF appears to be empty or encrypted",
                "Check that the PDF is not password protected",
            )

        bank_name = self.detect_bank(text)
        logger.debug(f"{self.name}: detected bank {bank_name} in {file.filename}")

        stats = ParseStats()
        transactions: list[ParsedTransaction] = []

        for line_number, line in enumerate(text.splitlines(), start=1):
            transaction = self._parse_line(line, line_number, stats)
            if transaction is not None:
                transactions.append(transaction)

        if not transactions:
            return ParseResult.failure(
                "No transactions found in PDF",
                f"Detected bank: {bank_name}",
                "Try the CSV or OFX export if your bank offers one",
            )

        result = self._build_result(transactions, stats, bank_name=bank_name)
        result.errors.append(f"{REVIEW_WARNING} ({len(result.transactions)} transactions found)")
        return result

    def detect_bank(self, text: str) -> str:
        """Find the issuing bank by name, first configured match wins."""
        text_lower = text.lower()
        for bank_name, variants in self.config.known_banks.items():
            if any(variant.lower() in text_lower for variant in variants):
                return bank_name
        return UNKNOWN_BANK

    def _parse_line(self, line: str, line_number: int, stats: ParseStats) -> Optional[ParsedTransaction]:
        if len(line) < MIN_LINE_LENGTH:
            return None

        line_upper = line.upper()
        if len(line) < SKIP_KEYWORD_MAX_LINE and any(keyword in line_upper for keyword in SKIP_KEYWORDS):
            return None

        date_match = _DATE_TOKEN.search(line)
        if not date_match:
            return None
        stats.lines_processed += 1

        amount_matches = list(_AMOUNT_TOKEN.finditer(line, date_match.end()))
        if not amount_matches:
            stats.lines_skipped += 1
            return None
        # The last amount on a line is usually the charge itself
        amount_match = amount_matches[-1]

        try:
            txn_date = parse_locale_date(date_match.group(1))
            amount = parse_locale_amount(amount_match.group("number"))
            self._check_ranges(txn_date, amount)
        except NormalizationError:
            stats.lines_skipped += 1
            return None

        if not 0 < amount <= self.config.pdf_max_amount:
            stats.lines_skipped += 1
            return None

        description = line[date_match.end():amount_match.start()]
        description = normalize_description(
            _CURRENCY_SYMBOLS.sub("", description), self.config.pdf_description_max_length
        )
        if len(description) < self.config.pdf_min_description_length:
            stats.lines_skipped += 1
            return None

        # A minus before or after the currency symbol marks a credit
        if amount_match.group("sign") or amount_match.group("symbol_sign"):
            debit = self._debit_amount(-amount, stats)
        else:
            debit = amount
        if debit is None:
            return None

        return ParsedTransaction(
            date=txn_date,
            description=description,
            amount=debit,
            category=categorize_description(description),
            installment=detect_installment(description),
            raw_data={"line_number": line_number, "line": line},
        )
