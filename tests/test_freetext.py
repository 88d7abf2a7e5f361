"""Tests for the free-text extraction cascade."""

from datetime import date
from decimal import Decimal

import pytest

from profit_ingest.errors import EmptyInputError, NoTransactionsFoundError
from profit_ingest.extractors.freetext import (
    FreeTextExtractor,
    TextLayout,
    find_header_row,
    split_lines,
)
from profit_ingest.schemas.transaction import TransactionType


@pytest.fixture
def image_extractor():
    return FreeTextExtractor("image")


@pytest.fixture
def document_extractor():
    return FreeTextExtractor("pdf", table_aware=True, skip_report_lines=True)


class TestHelpers:
    """Tests for line handling helpers."""

    def test_split_lines(self):
        assert split_lines("  a  b \n\n   \nc\n") == ["a  b", "c"]

    def test_find_header_row(self):
        lines = ["ACME Statement", "Date   Description   Amount", "01/02/2024 x 5.00"]
        assert find_header_row(lines) == 1

    def test_header_must_be_near_top(self):
        lines = ["filler line"] * 10 + ["Date Amount"]
        assert find_header_row(lines) is None


class TestLineLocalTier:
    """Tests for lines carrying both a date and an amount."""

    def test_dated_purchase_line(self, image_extractor):
        [record] = image_extractor.extract("03/14/2024 Office Supplies Purchase $245.67")

        assert record["date"] == date(2024, 3, 14)
        assert record["amount"] == Decimal("245.67")
        assert record["type"] == TransactionType.EXPENSE
        assert record["description"] == "Office Supplies Purchase"

    def test_revenue_keyword(self, image_extractor):
        [record] = image_extractor.extract("2024-05-02 Interest income 12.40")
        assert record["type"] == TransactionType.REVENUE

    def test_short_lines_ignored(self, image_extractor):
        """Below the minimum length a line is not a dated candidate."""
        [record] = image_extractor.extract("1/2/24 $5\n2024-05-02 Bus ticket 2.80")
        assert record["description"] == "Bus ticket"

    def test_ids_assigned_in_order(self, image_extractor):
        records = image_extractor.extract("2024-05-02 Coffee 3.00\n2024-05-03 Lunch 9.50")

        assert records[0]["id"].startswith("image-")
        assert records[0]["id"].endswith("-0")
        assert records[1]["id"].endswith("-1")


class TestDocumentVariant:
    """Tests for statement-specific skipping rules."""

    def test_statement(self, document_extractor, sample_statement_text):
        records = document_extractor.extract(sample_statement_text)

        assert [r["description"] for r in records] == [
            "Office Supplies Purchase",
            "Client deposit received",
            "Printer lease",
        ]
        assert records[1]["type"] == TransactionType.REVENUE
        assert records[1]["amount"] == Decimal("1500.00")

    def test_parenthesized_amount_forces_expense(self, document_extractor):
        [record] = document_extractor.extract("03/20/2024 Credit card refund (40.00)")

        assert record["type"] == TransactionType.EXPENSE
        assert record["amount"] == Decimal("40.00")

    def test_lines_before_header_skipped(self, document_extractor):
        text = "Issued 01/01/2024 ref 100\nDate  Description  Amount\n01/05/2024 Fuel 60.00\n"
        [record] = document_extractor.extract(text)
        assert record["description"] == "Fuel"

    def test_page_and_total_lines_skipped(self, document_extractor):
        text = "01/05/2024 Fuel 60.00\nPage 2 printed 01/06/2024 1\nTOTAL 01/06/2024 60.00\n"
        records = document_extractor.extract(text)
        assert len(records) == 1

    def test_image_variant_keeps_report_lines(self, image_extractor):
        text = "01/05/2024 Fuel 60.00\nTOTAL 01/06/2024 60.00\n"
        assert len(image_extractor.extract(text)) == 2


class TestTableTier:
    """Tests for whitespace-aligned tables in documents."""

    TABLE = (
        "Date        Item               Qty    Amount\n"
        "01/05/2024  Homepage design    1      $800.00\n"
        "01/09/2024  Landing page copy  2      $150.00\n"
    )

    def test_table_rows(self, document_extractor):
        """Rows the line-local tier skips are picked up as table rows."""
        records = document_extractor.extract(self.TABLE)

        assert [r["description"] for r in records] == ["Homepage design", "Landing page copy"]
        assert [r["amount"] for r in records] == [Decimal("800.00"), Decimal("150.00")]
        assert records[0]["date"] == date(2024, 1, 5)

    def test_rightmost_amount_column(self, document_extractor):
        table = (
            "Date        Description     Units   Total\n"
            "02/01/2024  Pagers          3       45.00\n"
        )
        [record] = document_extractor.extract(table)

        assert record["amount"] == Decimal("45.00")
        assert record["description"] == "Pagers"

    def test_image_variant_has_no_table_tier(self, image_extractor):
        """Without report-line skipping, the line-local tier takes the same rows."""
        records = image_extractor.extract(self.TABLE)
        assert len(records) == 2


class TestWindowedTier:
    """Tests for dates whose amount sits on a following line."""

    def test_amount_on_next_line(self, image_extractor):
        [record] = image_extractor.extract("Date: 2024-02-29 Hardware store\nTotal due $89.90\n")

        assert record["date"] == date(2024, 2, 29)
        assert record["amount"] == Decimal("89.90")
        assert record["description"] == "Date: Hardware store Total due"

    def test_amount_beyond_lookahead(self):
        extractor = FreeTextExtractor("image", layout=TextLayout(lookahead_lines=1))
        text = "2024-02-29 Hardware store\nthanks\n$89.90\n"

        [record] = extractor.extract(text)

        # Falls through to the amount-only tier
        assert record["date"] is None
        assert record["description"] == "Item 1"

    def test_cursor_skips_consumed_lines(self, image_extractor):
        text = "2024-03-01 Taxi ride\n$25.00\n2024-03-02 Hotel night\n$140.00\n"
        records = image_extractor.extract(text)

        assert [r["amount"] for r in records] == [Decimal("25.00"), Decimal("140.00")]
        assert [r["date"] for r in records] == [date(2024, 3, 1), date(2024, 3, 2)]


class TestAmountOnlyTier:
    """Tests for undated receipts."""

    def test_receipt(self, image_extractor, sample_receipt_text):
        records = image_extractor.extract(sample_receipt_text)

        assert [r["description"] for r in records] == ["Latte", "Bagel", "Item 1"]
        assert [r["amount"] for r in records] == [
            Decimal("4.50"),
            Decimal("3.25"),
            Decimal("7.75"),
        ]
        assert all(r["date"] is None for r in records)
        assert all(r["type"] == TransactionType.EXPENSE for r in records)

    def test_item_counter_only_counts_blank_descriptions(self, image_extractor):
        records = image_extractor.extract("$1.00\nTea 2.00\n$3.00\n")
        assert [r["description"] for r in records] == ["Item 1", "Tea", "Item 2"]


class TestFailures:
    """Tests for empty and unusable text."""

    @pytest.mark.parametrize("text", ["", "   \n\t"])
    def test_blank_text(self, document_extractor, text):
        with pytest.raises(EmptyInputError, match="No text content found in PDF"):
            document_extractor.extract(text)

    def test_nothing_found(self, image_extractor):
        with pytest.raises(
            NoTransactionsFoundError,
            match="No transaction data could be extracted from image",
        ):
            image_extractor.extract("Thank you for shopping\nSee you soon")
