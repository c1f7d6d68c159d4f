"""Data models for the statement importer."""

from datetime import date
from enum import Enum
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class TransactionCategory(str, Enum):
    """Internal category taxonomy every transaction is normalized into."""

    FOOD = "Food"
    GROCERIES = "Groceries"
    TRANSPORT = "Transport"
    FUEL = "Fuel"
    HEALTH = "Health"
    EDUCATION = "Education"
    HOME = "Home"
    HOUSING = "Housing"
    LEISURE = "Leisure"
    SHOPPING = "Shopping"
    CLOTHING = "Clothing"
    ELECTRONICS = "Electronics"
    SERVICES = "Services"
    SUBSCRIPTIONS = "Subscriptions"
    TRAVEL = "Travel"
    OTHER = "Other"


class ParserType(str, Enum):
    """Registered statement formats."""

    NUBANK = "nubank"
    INTER = "inter"
    GENERIC_OFX = "generic-ofx"
    PDF = "pdf"


class RawFile(BaseModel):
    """An uploaded statement file. Lives only for the duration of one import."""

    content: bytes
    filename: str
    size: int | None = None  # Declared size, defaults to len(content)
    media_type: str | None = None

    @model_validator(mode="after")
    def _default_size(self) -> "RawFile":
        if self.size is None:
            self.size = len(self.content)
        return self

    @property
    def extension(self) -> str:
        """Lower-case extension with the leading dot, or "" when there is none."""
        return PurePath(self.filename.lower()).suffix

    def read_prefix(self, num_bytes: int) -> bytes:
        """Return at most the first num_bytes of the file."""
        return self.content[:num_bytes]

    def text(self) -> str:
        """Return the full content decoded with the first encoding that fits."""
        from statement_importer.parsers.validation import decode_text

        return decode_text(self.content)


class ParsedTransaction(BaseModel):
    """A normalized debit transaction extracted from a statement."""

    date: date
    description: str
    amount: float  # Always positive, in the statement's currency
    category: TransactionCategory = TransactionCategory.OTHER
    installment: str | None = None  # "k/n"
    raw_data: dict[str, Any] | None = None  # Diagnostics only

    @field_validator("description")
    @classmethod
    def _strip_description(cls, v: str) -> str:
        return v.strip()

    @field_validator("amount")
    @classmethod
    def _positive_amount(cls, v: float) -> float:
        v = round(v, 2)
        if v <= 0:
            raise ValueError("Transaction amount must be positive")
        return v


class ParseMetadata(BaseModel):
    """Derived, best-effort information about a parsed statement."""

    bank_name: str | None = None
    total_amount: float | None = None
    statement_period: str | None = None  # e.g. "Jan 2024 - Mar 2024"
    card_last4: str | None = None
    credits_ignored: int = 0
    duplicates_removed: int = 0


class ParseResult(BaseModel):
    """Outcome of one import.

    When success is True, errors holds advisory warnings. When it is False,
    errors explains why nothing usable was produced.
    """

    success: bool
    transactions: list[ParsedTransaction] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    metadata: ParseMetadata | None = None

    @classmethod
    def failure(cls, *errors: str) -> "ParseResult":
        """Build a failed result with the given error messages."""
        return cls(success=False, transactions=[], errors=list(errors))
