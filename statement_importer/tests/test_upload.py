"""Tests for the statement import entry points."""

import logging
from unittest.mock import patch

import pytest

from statement_importer.config import Settings
from statement_importer.models import ParserType, RawFile
from statement_importer.services.registry import ParserRegistry, build_registry
from statement_importer.services.upload import (
    import_statement,
    import_statement_bytes,
    process_upload,
)

NUBANK_CSV = (
    "date,category,title,amount\n"
    "2024-01-15,outros,Market X,-45.90\n"
    "2024-01-16,transporte,Uber Trip,-12.00\n"
    "2024-01-20,outros,Pagamento recebido,300.00\n"
).encode("utf-8")


@pytest.fixture
def registry():
    return build_registry(Settings())


class TestImportStatement:
    """Test the synchronous import path."""

    def test_missing_file(self, registry):
        """Should fail without a file."""
        result = import_statement(None, registry=registry)

        assert result.success is False
        assert result.errors == ["No file provided"]

    def test_empty_file_is_not_detected(self, registry):
        """Should reject an empty file before detection."""
        with patch.object(ParserRegistry, "detect") as detect:
            result = import_statement(RawFile(content=b"", filename="a.csv"), registry=registry)

        detect.assert_not_called()
        assert result.errors == ["File is empty"]

    def test_unsupported_extension(self, registry):
        """Should reject unknown extensions."""
        result = import_statement_bytes("notes.xyz", b"hello", registry=registry)

        assert result.success is False
        assert result.errors == ["Unsupported extension: .xyz"]

    def test_nubank_import(self, registry):
        """Should import a Nubank export end to end."""
        result = import_statement_bytes("fatura.csv", NUBANK_CSV, "text/csv", registry=registry)

        assert result.success is True
        assert [t.description for t in result.transactions] == ["Market X", "Uber Trip"]
        assert result.metadata.bank_name == "Nubank"
        assert result.metadata.total_amount == 57.90
        assert result.metadata.credits_ignored == 1

    def test_unrecognized_file(self, registry):
        """Should explain when no parser claims the file."""
        result = import_statement_bytes("export.csv", b"foo,bar\n1,2\n", registry=registry)

        assert result.success is False
        assert result.errors[0] == "Unrecognized file format."

    def test_parser_exception(self, registry, caplog):
        """Should turn a parser crash into a failed result."""
        parser = registry.get_parser(ParserType.NUBANK)
        with patch.object(parser, "parse", side_effect=RuntimeError("boom")):
            with caplog.at_level(logging.ERROR, logger="statement_importer.services.upload"):
                result = import_statement_bytes("fatura.csv", NUBANK_CSV, registry=registry)

        assert result.success is False
        assert result.transactions == []
        assert result.errors == ["Unexpected error while processing the file", "boom"]
        assert "Unexpected error while processing fatura.csv" in caplog.text

    def test_logs_summary(self, registry, caplog):
        """Should log one summary line per import."""
        with caplog.at_level(logging.INFO, logger="statement_importer.services.upload"):
            import_statement_bytes("fatura.csv", NUBANK_CSV, registry=registry)

        assert "Imported fatura.csv" in caplog.text
        assert "2 transactions" in caplog.text


class TestProcessUpload:
    """Test the async wrapper."""

    @pytest.mark.asyncio
    async def test_process_upload(self, registry):
        """Should run the import off the event loop and return its result."""
        result = await process_upload("fatura.csv", NUBANK_CSV, registry=registry)

        assert result.success is True
        assert len(result.transactions) == 2

    @pytest.mark.asyncio
    async def test_process_upload_failure(self, registry):
        """Should return failures rather than raise."""
        result = await process_upload("fatura.csv", b"", registry=registry)

        assert result.success is False
        assert result.errors == ["File is empty"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
