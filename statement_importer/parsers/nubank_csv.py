"""Parser for Nubank credit card CSV exports."""

from typing import Optional

from statement_importer.models import ParsedTransaction, ParserType, TransactionCategory
from statement_importer.parsers.base import DelimitedStatementParser
from statement_importer.parsers.normalizers import (
    detect_installment,
    parse_locale_amount,
    parse_locale_date,
)
from statement_importer.parsers.validation import ParseStats
from statement_importer.services.categorizer import map_raw_category

# Nubank's own category labels
NUBANK_CATEGORIES: dict[str, TransactionCategory] = {
    "casa": TransactionCategory.HOME,
    "alimentação": TransactionCategory.FOOD,
    "alimentacao": TransactionCategory.FOOD,
    "transporte": TransactionCategory.TRANSPORT,
    "saúde": TransactionCategory.HEALTH,
    "saude": TransactionCategory.HEALTH,
    "lazer": TransactionCategory.LEISURE,
    "educação": TransactionCategory.EDUCATION,
    "educacao": TransactionCategory.EDUCATION,
    "compras": TransactionCategory.SHOPPING,
    "serviços": TransactionCategory.SERVICES,
    "servicos": TransactionCategory.SERVICES,
    "outros": TransactionCategory.OTHER,
    "viagem": TransactionCategory.TRAVEL,
    "eletrônicos": TransactionCategory.ELECTRONICS,
    "eletronicos": TransactionCategory.ELECTRONICS,
}


class NubankCSVParser(DelimitedStatementParser):
    """
    Parse a Nubank CSV export.

    Expected format:
        date,category,title,amount
        2024-01-15,outros,"Compra Loja XYZ",-150.00

    Amount handling:
    - Negative amounts = charges (negated and kept)
    - Positive or zero amounts = credits/refunds (dropped)
    """

    name = "Nubank CSV"
    parser_type = ParserType.NUBANK
    bank_name = "Nubank"
    header_tokens = (("date",), ("category",), ("title",), ("amount",))

    def _parse_line(
        self, fields: list[str], line_number: int, stats: ParseStats
    ) -> Optional[ParsedTransaction]:
        self._require_fields(fields, 4)
        date_str, raw_category, description, amount_str = fields[:4]

        txn_date = parse_locale_date(date_str)
        original_amount = parse_locale_amount(amount_str)
        self._check_ranges(txn_date, original_amount)

        # Nubank writes charges as negative numbers
        amount = self._debit_amount(-original_amount, stats)
        if amount is None:
            return None

        if not description.strip():
            raise ValueError("Missing description")

        return ParsedTransaction(
            date=txn_date,
            description=description,
            amount=amount,
            category=map_raw_category(raw_category, NUBANK_CATEGORIES),
            installment=detect_installment(description),
            raw_data={
                "line_number": line_number,
                "original_amount": original_amount,
                "original_category": raw_category,
            },
        )
