"""
Tabular extractor for delimited text and spreadsheets.

Rows are header-keyed mappings. Columns are sniffed once from the first row;
every row then yields one raw candidate record.
"""

import io
import logging
import zipfile
from typing import Any, Optional

import pandas as pd
from xlrd import XLRDError

from ..errors import DecodeError, EmptyInputError
from ..normalizer import is_missing
from ..schemas.transaction import RawRecord
from .base import BaseExtractor, resolve_type, type_from_sign
from .patterns import parse_signed_amount
from .sniffer import sniff

logger = logging.getLogger(__name__)

# Tried in order; latin1 accepts any byte sequence
CSV_ENCODINGS = ("utf-8-sig", "utf-8", "cp1252", "latin1")

SPREADSHEET_ENGINES = {
    "xlsx": "openpyxl",
    "xls": "xlrd",
}

CATEGORY_COLUMN = "category"


def _frame_to_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Drop all-missing rows and convert NaN/NaT to None."""
    df = df.dropna(how="all")
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def read_delimited_rows(data: bytes) -> list[dict[str, Any]]:
    """
    Decode CSV bytes into header-keyed rows.

    All cells are read as strings; blank cells become None.

    Raises:
        EmptyInputError: No header/content
        DecodeError: Malformed CSV or undecodable bytes
    """
    if not data or not data.strip():
        raise EmptyInputError("No data found in CSV file")

    for encoding in CSV_ENCODINGS:
        try:
            df = pd.read_csv(io.BytesIO(data), encoding=encoding, dtype=str, skipinitialspace=True)
        except UnicodeDecodeError:
            continue
        except pd.errors.EmptyDataError as e:
            raise EmptyInputError("No data found in CSV file") from e
        except pd.errors.ParserError as e:
            raise DecodeError(f"Malformed CSV: {e}") from e

        logger.debug("Decoded CSV with %s encoding (%d rows)", encoding, len(df))
        return _frame_to_rows(df)

    raise DecodeError(f"Could not decode CSV file with any of the tried encodings: {CSV_ENCODINGS}")


def read_spreadsheet_rows(data: bytes, extension: str) -> list[dict[str, Any]]:
    """
    Decode the first sheet of an XLSX/XLS workbook into header-keyed rows.

    Args:
        data: Workbook bytes
        extension: "xlsx" or "xls" (selects the reader engine)

    Raises:
        EmptyInputError: Empty file
        DecodeError: Not a readable workbook
    """
    if not data:
        raise EmptyInputError("No data found in Excel file")

    engine = SPREADSHEET_ENGINES.get(extension.lower().lstrip("."), "openpyxl")

    try:
        df = pd.read_excel(io.BytesIO(data), sheet_name=0, engine=engine)
    except (ValueError, OSError, KeyError, zipfile.BadZipFile, XLRDError) as e:
        raise DecodeError(f"Unreadable workbook: {e}") from e

    logger.debug("Decoded %s sheet with %d rows", extension, len(df))
    return _frame_to_rows(df)


class TabularExtractor(BaseExtractor):
    """
    Extractor for header-keyed rows (CSV, XLSX, XLS).

    Per row:
    - date from the sniffed date column
    - description from the sniffed description column
    - amount parsed signed from the sniffed amount column
    - type from the type column, or the amount sign when no type column exists
    - category carried from a column named exactly "category"
    """

    @property
    def name(self) -> str:
        return f"tabular:{self.format_tag}"

    def extract(self, rows: list[dict[str, Any]]) -> list[RawRecord]:
        """
        Map rows to raw candidate records.

        Args:
            rows: Header-keyed rows in source order

        Returns:
            One raw record per row

        Raises:
            EmptyInputError: If ``rows`` is empty
        """
        if not rows:
            raise EmptyInputError(f"No data found in {self.format_tag.upper()} file")

        columns = list(rows[0].keys())
        mapping = sniff(columns)
        category_column = _find_category_column(columns)
        ids = self.new_id_generator()

        logger.info(
            "Extracting %d rows (date=%s, description=%s, amount=%s, type=%s)",
            len(rows),
            mapping.date,
            mapping.description,
            mapping.amount,
            mapping.type,
        )

        records: list[RawRecord] = []
        for row in rows:
            amount = parse_signed_amount(row.get(mapping.amount)) if mapping.amount else None

            if mapping.type:
                raw_type = row.get(mapping.type)
                tx_type = resolve_type(None if is_missing(raw_type) else raw_type, None)
            else:
                tx_type = type_from_sign(amount)

            records.append(
                {
                    "id": ids.next_id(),
                    "date": row.get(mapping.date) if mapping.date else None,
                    "description": row.get(mapping.description) if mapping.description else None,
                    "amount": amount,
                    "type": tx_type,
                    "category": row.get(category_column) if category_column else None,
                }
            )

        return records


def _find_category_column(columns: list[Any]) -> Optional[Any]:
    for column in columns:
        if str(column).strip().lower() == CATEGORY_COLUMN:
            return column
    return None
