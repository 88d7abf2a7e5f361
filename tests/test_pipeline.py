"""End-to-end tests for the pipeline coordinator."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from profit_ingest.errors import (
    DecodeError,
    EmptyInputError,
    ExtractionError,
    NoTransactionsFoundError,
    UnsupportedFormatError,
)
from profit_ingest.extractors.router import ExtractorRouter, normalize_extension
from profit_ingest.pipeline import TransactionPipeline, count_summary
from profit_ingest.schemas.transaction import TransactionType


class FakeEngine:
    """OCR engine stand-in returning canned text."""

    def __init__(self, text: str):
        self.text = text
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def recognize(self, data: bytes) -> str:
        return self.text


@pytest.fixture
def pipeline():
    return TransactionPipeline()


def assert_sign_invariant(transactions):
    for tx in transactions:
        if tx.type == TransactionType.EXPENSE:
            assert tx.amount <= 0
        else:
            assert tx.amount >= 0


class TestRouter:
    """Tests for extension dispatch."""

    @pytest.mark.parametrize("extension", ["csv", ".CSV", " Csv "])
    def test_normalize_extension(self, extension):
        assert normalize_extension(extension) == "csv"

    def test_supported_extensions(self):
        assert ExtractorRouter().supported_extensions == [
            "csv",
            "jpeg",
            "jpg",
            "json",
            "pdf",
            "xls",
            "xlsx",
            "xml",
        ]

    @pytest.mark.parametrize("extension", ["txt", "", None, "png"])
    def test_unsupported(self, extension):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            ExtractorRouter().route(extension)
        assert exc_info.value.stage == "route"


class TestProcess:
    """Tests for the full decode -> extract -> normalize -> categorize chain."""

    def test_csv(self, pipeline, sample_csv, reference_date):
        transactions = pipeline.process(sample_csv, "csv", reference_date=reference_date)

        assert [tx.category for tx in transactions] == ["Sales", "Rent", "Supplies"]
        rent = transactions[1]
        assert rent.date == date(2024, 3, 3)
        assert rent.amount == Decimal("-1200.00")
        assert rent.type == TransactionType.EXPENSE
        assert_sign_invariant(transactions)

    def test_json(self, pipeline, sample_json):
        transactions = pipeline.process(sample_json, ".json")

        assert [tx.id for tx in transactions] == ["T-1", "T-2"]
        assert transactions[0].amount == Decimal("500.00")
        assert transactions[0].category == "Services"
        assert transactions[1].amount == Decimal("-3000.50")
        assert transactions[1].category == "Salaries"

    def test_explicit_type_reconciles_sign(self, pipeline):
        transactions = pipeline.process(b'[{"amount": -50, "type": "revenue"}]', "json")
        assert transactions[0].amount == Decimal("50.00")

    def test_huge_json_amount_is_absorbed(self, pipeline):
        transactions = pipeline.process(b'[{"amount": 1e30, "description": "x"}]', "json")

        assert transactions[0].amount == Decimal("0.00")
        assert transactions[0].description == "x"

    def test_xml(self, pipeline, sample_xml):
        transactions = pipeline.process(sample_xml, "XML")

        assert [tx.category for tx in transactions] == ["Sales", "Utilities"]
        assert_sign_invariant(transactions)

    def test_xlsx(self, pipeline, xlsx_bytes):
        transactions = pipeline.process(xlsx_bytes, "xlsx")

        assert [tx.category for tx in transactions] == ["Investments", "Utilities"]
        assert [tx.id.split("-")[0] for tx in transactions] == ["excel", "excel"]

    def test_pdf(self, sample_statement_text):
        with patch(
            "profit_ingest.extractors.router.read_pdf_text", return_value=sample_statement_text
        ):
            transactions = TransactionPipeline().process(b"%PDF-1.4", "pdf")

        assert [tx.amount for tx in transactions] == [
            Decimal("-245.67"),
            Decimal("1500.00"),
            Decimal("-89.99"),
        ]
        assert transactions[2].category == "Rent"

    def test_pdf_table_columns(self, pipeline, table_statement_pdf):
        """Rows skipped line by line are recovered from the column layout."""
        transactions = pipeline.process(table_statement_pdf, "pdf")

        assert [tx.description for tx in transactions] == ["Homepage redesign", "Landing page copy"]
        assert [tx.amount for tx in transactions] == [Decimal("-1200.00"), Decimal("-350.00")]
        assert transactions[0].date == date(2024, 1, 5)

    def test_image_receipt(self, sample_receipt_text, reference_date):
        engine = FakeEngine(sample_receipt_text)
        pipeline = TransactionPipeline(ocr_engine_factory=lambda: engine)

        transactions = pipeline.process(b"\xff\xd8jpeg", "jpg", reference_date=reference_date)

        assert engine.closed
        assert [tx.description for tx in transactions] == ["Latte", "Bagel", "Item 1"]
        assert all(tx.date == reference_date for tx in transactions)
        assert all(tx.type == TransactionType.EXPENSE for tx in transactions)
        assert transactions[2].amount == Decimal("-7.75")

    def test_dayfirst_config(self):
        pipeline = TransactionPipeline()
        pipeline.config.extraction.dayfirst = True

        [tx] = pipeline.process(b"Date,Amount\n01/02/2024,5\n", "csv")

        assert tx.date == date(2024, 2, 1)


class TestStageErrors:
    """Tests for stage-prefixed errors."""

    def test_unsupported_before_decoding(self):
        with patch("profit_ingest.extractors.router.read_delimited_rows") as decode:
            pipeline = TransactionPipeline()
            with pytest.raises(UnsupportedFormatError, match="Unsupported file format: txt"):
                pipeline.process(b"a,b\n1,2\n", "txt")
        decode.assert_not_called()

    def test_empty_csv(self, pipeline):
        with pytest.raises(EmptyInputError) as exc_info:
            pipeline.process(b"", "csv")

        assert exc_info.value.message == "Failed to parse CSV file: No data found in CSV file"
        assert exc_info.value.stage == "decode"

    def test_header_only_csv(self, pipeline):
        with pytest.raises(EmptyInputError) as exc_info:
            pipeline.process(b"Date,Amount\n", "csv")
        assert exc_info.value.stage == "extract"

    def test_malformed_json(self, pipeline):
        with pytest.raises(DecodeError, match="^Failed to parse JSON file: Malformed JSON"):
            pipeline.process(b"{oops", "json")

    def test_no_transactions_in_pdf(self):
        with patch("profit_ingest.extractors.router.read_pdf_text", return_value="Nothing here"):
            with pytest.raises(NoTransactionsFoundError) as exc_info:
                TransactionPipeline().process(b"%PDF", "pdf")

        assert exc_info.value.message == (
            "Failed to parse PDF file: No transaction data could be extracted from PDF"
        )

    def test_unexpected_errors_wrapped(self, pipeline):
        pipeline.categorizer = MagicMock()
        pipeline.categorizer.categorize.side_effect = RuntimeError("boom")

        with pytest.raises(ExtractionError) as exc_info:
            pipeline.process(b"Date,Amount\n2024-01-01,5\n", "csv")

        assert exc_info.value.message == "Failed to parse CSV file: boom"
        assert exc_info.value.stage == "categorize"


class TestResponses:
    """Tests for the response-shaped wrapper."""

    def test_success_shape(self, pipeline, sample_csv):
        body = pipeline.process_to_response(sample_csv, "csv")

        assert body["message"] == "File processed successfully"
        assert body["summary"] == {"total": 3, "revenue": 1, "expenses": 2}
        assert body["transactions"][1]["amount"] == "-1200.00"
        assert body["transactions"][1]["type"] == "expense"

    def test_error_shape(self, pipeline):
        assert pipeline.process_to_response(b"", "doc") == {
            "message": "Unsupported file format: doc"
        }

    def test_process_file(self, pipeline, sample_csv, tmp_path):
        path = tmp_path / "export.CSV"
        path.write_bytes(sample_csv)

        assert len(pipeline.process_file(path)) == 3

    def test_process_file_declared_extension(self, pipeline, sample_json, tmp_path):
        path = tmp_path / "upload.bin"
        path.write_bytes(sample_json)

        assert len(pipeline.process_file(path, "json")) == 2

    def test_count_summary_empty(self):
        assert count_summary([]) == {"total": 0, "revenue": 0, "expenses": 0}
