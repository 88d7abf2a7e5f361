"""
Free-text extractor for PDF text layers and OCR output.

Unstructured text is scanned with a fallback cascade; each tier only runs
when every earlier tier produced nothing:

1. line-local: a line carrying both a date and an amount
2. table-aware (documents only): whitespace-aligned table blocks
3. windowed: a date line whose amount sits on one of the next few lines
4. amount-only: any line with an amount, dated with the reference date
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..errors import EmptyInputError, NoTransactionsFoundError
from ..schemas.transaction import RawRecord, TransactionType
from .base import BaseExtractor
from .patterns import find_amount, find_amount_outside_date, find_date, strip_tokens

logger = logging.getLogger(__name__)

REVENUE_LINE_KEYWORDS = ("income", "revenue", "credit", "deposit", "received")

# Report furniture skipped in documents (page headers/footers, totals)
REPORT_LINE_KEYWORDS = ("page", "total")

# Header row detection: any pair present in one line
HEADER_KEYWORD_PAIRS = (
    ("date", "amount"),
    ("date", "description"),
    ("transaction", "amount"),
)
HEADER_SCAN_LINES = 10

TABLE_SEPARATOR_RE = re.compile(r"\s{2,}|\t")

SOURCE_LABELS = {
    "pdf": "PDF",
    "image": "image",
}


@dataclass
class TextLayout:
    """Line-splitting thresholds for the cascade."""

    lookahead_lines: int = 3
    min_line_length: int = 10
    min_amount_line_length: int = 5


def split_lines(text: str) -> list[str]:
    """Split text into stripped, non-blank lines (inner spacing kept)."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def find_header_row(lines: list[str]) -> Optional[int]:
    """Index of a column header line within the first lines, if any."""
    for index, line in enumerate(lines[:HEADER_SCAN_LINES]):
        lowered = line.lower()
        if any(a in lowered and b in lowered for a, b in HEADER_KEYWORD_PAIRS):
            return index
    return None


def _has_keyword(line: str, keywords: tuple[str, ...]) -> bool:
    lowered = line.lower()
    return any(keyword in lowered for keyword in keywords)


class FreeTextExtractor(BaseExtractor):
    """
    Heuristic extractor over unstructured text.

    Args:
        format_tag: Id tag for generated records ("pdf", "image")
        table_aware: Enable the table tier (document variant)
        skip_report_lines: Skip pre-header lines and page/total lines in the line-local tier
        layout: Line thresholds
    """

    def __init__(
        self,
        format_tag: str,
        table_aware: bool = False,
        skip_report_lines: bool = False,
        layout: Optional[TextLayout] = None,
    ):
        super().__init__(format_tag)
        self.table_aware = table_aware
        self.skip_report_lines = skip_report_lines
        self.layout = layout or TextLayout()

    @property
    def name(self) -> str:
        return f"freetext:{self.format_tag}"

    @property
    def source_label(self) -> str:
        return SOURCE_LABELS.get(self.format_tag, self.format_tag)

    def extract(self, text: str) -> list[RawRecord]:
        """
        Run the cascade over ``text``.

        Returns:
            Raw records from the first tier that found anything

        Raises:
            EmptyInputError: Blank text
            NoTransactionsFoundError: Every tier came up empty
        """
        if not text or not text.strip():
            raise EmptyInputError(f"No text content found in {self.source_label}")

        lines = split_lines(text)

        tiers = [("line-local", self._extract_line_local)]
        if self.table_aware:
            tiers.append(("table", self._extract_tables))
        tiers.append(("windowed", self._extract_windowed))
        tiers.append(("amount-only", self._extract_amount_only))

        for tier_name, tier in tiers:
            candidates = tier(lines)
            if candidates:
                logger.info(
                    "Extracted %d candidates from %s text (%s tier)",
                    len(candidates),
                    self.source_label,
                    tier_name,
                )
                ids = self.new_id_generator()
                for candidate in candidates:
                    candidate["id"] = ids.next_id()
                return candidates
            logger.debug("%s tier found nothing", tier_name)

        raise NoTransactionsFoundError(
            f"No transaction data could be extracted from {self.source_label}"
        )

    # -------------------------------------------------------------------------
    # Line-local tier
    # -------------------------------------------------------------------------

    def _extract_line_local(self, lines: list[str]) -> list[RawRecord]:
        start = 0
        if self.skip_report_lines:
            header = find_header_row(lines)
            if header is not None:
                start = header + 1

        candidates: list[RawRecord] = []
        for line in lines[start:]:
            if len(line) < self.layout.min_line_length:
                continue
            if self.skip_report_lines and _has_keyword(line, REPORT_LINE_KEYWORDS):
                continue

            date_token, amount_token = find_amount_outside_date(line)
            if not date_token or not amount_token:
                continue

            tx_type = TransactionType.EXPENSE
            if _has_keyword(line, REVENUE_LINE_KEYWORDS):
                tx_type = TransactionType.REVENUE
            if self.skip_report_lines and amount_token.negative:
                tx_type = TransactionType.EXPENSE

            candidates.append(
                {
                    "date": date_token.value,
                    "description": strip_tokens(line, date_token, amount_token),
                    "amount": amount_token.value,
                    "type": tx_type,
                }
            )
        return candidates

    # -------------------------------------------------------------------------
    # Windowed tier
    # -------------------------------------------------------------------------

    def _extract_windowed(self, lines: list[str]) -> list[RawRecord]:
        candidates: list[RawRecord] = []
        index = 0
        while index < len(lines):
            line = lines[index]
            date_token = find_date(line) if len(line) >= self.layout.min_line_length else None
            if not date_token:
                index += 1
                continue

            amount_token = find_amount(line, (date_token.start, date_token.end))
            amount_line = line
            offset = 0
            while (
                not amount_token
                and offset < self.layout.lookahead_lines
                and index + offset + 1 < len(lines)
            ):
                offset += 1
                amount_line = lines[index + offset]
                _, amount_token = find_amount_outside_date(amount_line)

            if not amount_token:
                index += 1
                continue

            if offset:
                parts = [strip_tokens(line, date_token), strip_tokens(amount_line, amount_token)]
                description = " ".join(part for part in parts if part)
            else:
                description = strip_tokens(line, date_token, amount_token)

            candidates.append(
                {
                    "date": date_token.value,
                    "description": description,
                    "amount": amount_token.value,
                    "type": TransactionType.EXPENSE,
                }
            )
            index += offset + 1
        return candidates

    # -------------------------------------------------------------------------
    # Table tier (documents)
    # -------------------------------------------------------------------------

    def _extract_tables(self, lines: list[str]) -> list[RawRecord]:
        candidates: list[RawRecord] = []
        block: list[str] = []

        for line in lines:
            if TABLE_SEPARATOR_RE.search(line):
                block.append(line)
                continue
            candidates.extend(self._table_block(block))
            block = []

        candidates.extend(self._table_block(block))
        return candidates

    def _table_block(self, block: list[str]) -> list[RawRecord]:
        """Rows of one table block; the first row is the header."""
        candidates: list[RawRecord] = []
        for row in block[1:]:
            columns = [col.strip() for col in TABLE_SEPARATOR_RE.split(row) if col.strip()]
            if len(columns) < 2:
                continue

            # First date column; rightmost amount column
            date_col = amount_col = None
            date_token = amount_token = None
            for position, column in enumerate(columns):
                if date_col is None:
                    token = find_date(column)
                    if token:
                        date_col, date_token = position, token
                        continue
                token = find_amount(column)
                if token:
                    amount_col, amount_token = position, token

            if date_col is None or amount_col is None:
                continue

            rest = [col for pos, col in enumerate(columns) if pos not in (date_col, amount_col)]
            description = max(rest, key=len) if rest else ""

            candidates.append(
                {
                    "date": date_token.value,
                    "description": description,
                    "amount": amount_token.value,
                    "type": TransactionType.EXPENSE,
                }
            )
        return candidates

    # -------------------------------------------------------------------------
    # Amount-only tier
    # -------------------------------------------------------------------------

    def _extract_amount_only(self, lines: list[str]) -> list[RawRecord]:
        candidates: list[RawRecord] = []
        item_count = 0
        for line in lines:
            if len(line) < self.layout.min_amount_line_length:
                continue
            date_token, amount_token = find_amount_outside_date(line)
            if not amount_token:
                continue

            description = strip_tokens(line, date_token, amount_token)
            if not description:
                item_count += 1
                description = f"Item {item_count}"

            candidates.append(
                {
                    "date": None,
                    "description": description,
                    "amount": amount_token.value,
                    "type": TransactionType.EXPENSE,
                }
            )
        return candidates
