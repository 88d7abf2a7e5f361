"""
PDF text-layer decoder.

Lines are rebuilt from word positions rather than taken from
``extract_text()``, which joins every word on a line with a single space.
Words separated by a wide horizontal gap are joined with a tab so that
column alignment survives for the table tier.
"""

import io
import logging

import pdfplumber

from ..errors import DecodeError, EmptyInputError

logger = logging.getLogger(__name__)

# Horizontal gap in points that separates two columns
COLUMN_GAP = 15

# Words whose tops differ by at most this many points share a line
LINE_TOLERANCE = 3


def page_lines(page) -> list[str]:
    """Text lines of one page, top to bottom; column gaps become tabs."""
    words = sorted(
        page.extract_words(x_tolerance=3, y_tolerance=LINE_TOLERANCE),
        key=lambda w: (w["top"], w["x0"]),
    )

    rows: list[list[dict]] = []
    for word in words:
        if rows and abs(word["top"] - rows[-1][0]["top"]) <= LINE_TOLERANCE:
            rows[-1].append(word)
        else:
            rows.append([word])

    lines = []
    for row in rows:
        row.sort(key=lambda w: w["x0"])
        parts = [row[0]["text"]]
        for previous, word in zip(row, row[1:]):
            parts.append("\t" if word["x0"] - previous["x1"] >= COLUMN_GAP else " ")
            parts.append(word["text"])
        lines.append("".join(parts))
    return lines


def read_pdf_text(data: bytes) -> str:
    """
    Extract the text layer of every page, pages joined by newlines.

    Scanned PDFs without a text layer yield an empty string; the free-text
    extractor reports that as missing text content.

    Raises:
        EmptyInputError: Empty file
        DecodeError: Not a readable PDF
    """
    if not data:
        raise EmptyInputError("No data found in PDF file")

    pages: list[str] = []
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            for page in pdf.pages:
                pages.append("\n".join(page_lines(page)))
    except Exception as e:
        logger.error("PDF decoding failed: %s", e)
        raise DecodeError(f"Unreadable PDF: {e}") from e

    logger.debug("Read %d PDF pages", len(pages))
    return "\n".join(pages)
