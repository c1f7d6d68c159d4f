"""Parser for Banco Inter credit card CSV exports."""

import re
from typing import Optional

from statement_importer.models import ParsedTransaction, ParserType
from statement_importer.parsers.base import DelimitedStatementParser
from statement_importer.parsers.normalizers import (
    detect_installment,
    parse_locale_amount,
    parse_locale_date,
)
from statement_importer.parsers.validation import ParseStats
from statement_importer.services.categorizer import categorize_description

_CARD_LAST4 = re.compile(r"cart[ãa]o[:\s]*\*+(\d{4})", re.IGNORECASE)


class InterCSVParser(DelimitedStatementParser):
    """
    Parse a Banco Inter CSV export.

    Expected format:
        Data,Descrição,Valor
        15/01/2024,"COMPRA LOJA ABC","1.234,56"

    Dates are day first and amounts use the Brazilian decimal comma.
    Positive amounts are charges; zero or negative amounts (refunds) are dropped.
    Inter exports carry no category column, so categories come from the description.
    """

    name = "Banco Inter CSV"
    parser_type = ParserType.INTER
    bank_name = "Banco Inter"
    header_tokens = (("data",), ("descrição", "descricao"), ("valor",))

    def _parse_line(
        self, fields: list[str], line_number: int, stats: ParseStats
    ) -> Optional[ParsedTransaction]:
        self._require_fields(fields, 3)
        date_str, description, amount_str = fields[:3]

        txn_date = parse_locale_date(date_str)
        original_amount = parse_locale_amount(amount_str)
        self._check_ranges(txn_date, original_amount)

        amount = self._debit_amount(original_amount, stats)
        if amount is None:
            return None

        if not description.strip():
            raise ValueError("Missing description")

        return ParsedTransaction(
            date=txn_date,
            description=description,
            amount=amount,
            category=categorize_description(description),
            installment=detect_installment(description),
            raw_data={
                "line_number": line_number,
                "original_amount": original_amount,
            },
        )

    def _extract_card_last4(self, text: str) -> Optional[str]:
        match = _CARD_LAST4.search(text)
        return match.group(1) if match else None
