"""Parser registry and format detection."""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional

from statement_importer.config import MIB, Settings, settings
from statement_importer.models import ParseResult, ParserType, RawFile
from statement_importer.parsers.base import StatementParser
from statement_importer.parsers.inter_csv import InterCSVParser
from statement_importer.parsers.nubank_csv import NubankCSVParser
from statement_importer.parsers.ofx import OFXParser
from statement_importer.parsers.pdf_text import PDFTextParser

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = "Supported formats: CSV (Nubank, Banco Inter), OFX/QFX (generic), PDF (best effort)"


@dataclass(frozen=True)
class ParserEntry:
    """A parser together with the extensions it is tried for and its priority."""

    parser_type: ParserType
    parser: StatementParser
    extensions: tuple[str, ...]
    priority: int


class ParserRegistry:
    """
    Ordered set of parsers, highest priority first.

    Detection is first-match: the first parser (by priority) whose
    extensions include the file's and whose can_parse() says yes parses
    the file, and its result is returned as is.
    """

    def __init__(self, entries: Iterable[ParserEntry], config: Optional[Settings] = None):
        # sorted() is stable, so equal priorities keep registration order
        self._entries = tuple(sorted(entries, key=lambda entry: -entry.priority))
        self.config = config or settings

    @property
    def entries(self) -> tuple[ParserEntry, ...]:
        return self._entries

    @property
    def supported_extensions(self) -> set[str]:
        return {ext for entry in self._entries for ext in entry.extensions}

    def get_parser(self, parser_type: ParserType) -> Optional[StatementParser]:
        """Return the registered parser for a format, if any."""
        for entry in self._entries:
            if entry.parser_type == parser_type:
                return entry.parser
        return None

    def available_parsers(self) -> list[ParserEntry]:
        return list(self._entries)

    def register(self, entry: ParserEntry) -> "ParserRegistry":
        """Return a new registry that also contains entry."""
        return ParserRegistry([*self._entries, entry], config=self.config)

    def validate(self, file: Optional[RawFile]) -> Optional[str]:
        """
        Check a file before any parser sees it.

        Returns:
            An error message, or None when the file may be parsed
        """
        if file is None:
            return "No file provided"

        if file.size == 0 or not file.content:
            return "File is empty"

        # The declared size may understate the content
        if max(file.size, len(file.content)) > self.config.max_upload_bytes:
            return f"File too large (maximum {self.config.max_upload_bytes / MIB:g}MB)"

        if file.extension not in self.supported_extensions:
            return f"Unsupported extension: {file.extension or '(none)'}"

        return None

    def detect(self, file: RawFile) -> ParseResult:
        """Validate the file, then hand it to the first parser that claims it."""
        error = self.validate(file)
        if error:
            return ParseResult.failure(error)

        for entry in self._entries:
            if file.extension not in entry.extensions:
                continue

            if entry.parser.can_parse(file):
                logger.info(f"Using parser: {entry.parser.name} for {file.filename}")
                return entry.parser.parse(file)

            logger.debug(f"{entry.parser.name} declined {file.filename}")

        logger.warning(f"No parser recognized {file.filename}")
        return ParseResult.failure(
            "Unrecognized file format.",
            f"Extension: {file.extension or '(none)'}",
            SUPPORTED_FORMATS,
        )


def build_registry(config: Optional[Settings] = None) -> ParserRegistry:
    """Build a registry with the built-in parsers and apply the configured log level."""
    (config or settings).configure_logging()
    return ParserRegistry(
        [
            ParserEntry(ParserType.NUBANK, NubankCSVParser(config), (".csv",), 100),
            ParserEntry(ParserType.INTER, InterCSVParser(config), (".csv",), 90),
            ParserEntry(ParserType.GENERIC_OFX, OFXParser(config), (".ofx", ".qfx"), 50),
            ParserEntry(ParserType.PDF, PDFTextParser(config), (".pdf",), 10),
        ],
        config=config,
    )


@lru_cache
def default_registry() -> ParserRegistry:
    """Registry with the built-in parsers and the global settings."""
    return build_registry()
