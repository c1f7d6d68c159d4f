"""Deduplication logic for imported statements."""

import hashlib
import logging
from datetime import date

from statement_importer.models import ParsedTransaction

logger = logging.getLogger(__name__)


def compute_file_hash(contents: bytes) -> str:
    """Compute SHA256 hash of file contents."""
    return hashlib.sha256(contents).hexdigest()


def compute_transaction_hash(txn_date: date, description: str, amount: float) -> str:
    """
    Compute the identity hash of a transaction.

    Two transactions are the same when date, trimmed description and amount
    to the cent all agree. The description comparison is case-sensitive.
    """
    normalized = f"{txn_date.isoformat()}|{description.strip()}|{amount:.2f}"
    return hashlib.sha256(normalized.encode()).hexdigest()


def deduplicate_transactions(transactions: list[ParsedTransaction]) -> list[ParsedTransaction]:
    """Remove duplicate transactions from one parse, keeping first occurrences in order."""
    seen_hashes = set()
    deduplicated = []

    for txn in transactions:
        txn_hash = compute_transaction_hash(txn.date, txn.description, txn.amount)
        if txn_hash not in seen_hashes:
            seen_hashes.add(txn_hash)
            deduplicated.append(txn)
        else:
            logger.debug(f"Skipping duplicate transaction: {txn.description} on {txn.date}")

    if len(deduplicated) < len(transactions):
        logger.info(f"Removed {len(transactions) - len(deduplicated)} duplicate transactions")

    return deduplicated
