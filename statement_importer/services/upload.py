"""Statement import entry points."""

import asyncio
import logging
import time
from typing import Optional

from statement_importer.models import ParseResult, RawFile
from statement_importer.services.dedup import compute_file_hash
from statement_importer.services.registry import ParserRegistry, default_registry

logger = logging.getLogger(__name__)


def import_statement(file: Optional[RawFile], registry: Optional[ParserRegistry] = None) -> ParseResult:
    """
    Import one statement file.

    The file is validated (present, non-empty, within the size limit, known
    extension) before any parser sees it, then handed to the registry.
    Nothing raised by a parser escapes: it comes back as a failed result.
    """
    registry = registry or default_registry()

    error = registry.validate(file)
    if error:
        logger.warning(f"Rejected upload {file.filename if file else '<none>'}: {error}")
        return ParseResult.failure(error)

    started = time.perf_counter()
    file_hash = compute_file_hash(file.content)

    try:
        result = registry.detect(file)
    except Exception as e:
        logger.exception(f"Unexpected error while processing {file.filename} ({file_hash[:12]})")
        return ParseResult.failure("Unexpected error while processing the file", str(e))

    elapsed_ms = (time.perf_counter() - started) * 1000
    bank_name = result.metadata.bank_name if result.metadata else None
    logger.info(
        f"Imported {file.filename} ({file.size} bytes, {file_hash[:12]}): "
        f"success={result.success}, bank={bank_name}, "
        f"{len(result.transactions)} transactions, {len(result.errors)} messages "
        f"in {elapsed_ms:.1f}ms"
    )
    return result


def import_statement_bytes(
    filename: str,
    contents: bytes,
    media_type: Optional[str] = None,
    registry: Optional[ParserRegistry] = None,
) -> ParseResult:
    """Import a statement given as raw bytes."""
    return import_statement(
        RawFile(content=contents, filename=filename, media_type=media_type),
        registry=registry,
    )


async def process_upload(
    filename: str,
    contents: bytes,
    media_type: Optional[str] = None,
    registry: Optional[ParserRegistry] = None,
) -> ParseResult:
    """Process an uploaded statement without blocking the event loop."""
    return await asyncio.to_thread(import_statement_bytes, filename, contents, media_type, registry)
