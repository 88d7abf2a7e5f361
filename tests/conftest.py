"""Test fixtures and utilities."""

import io
from datetime import date

import pandas as pd
import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

# Bank export with non-canonical headers and signed amounts
SAMPLE_CSV = b"""Txn Date,Narration,Amount
2024-03-01,Client invoice 1001,2500.00
2024-03-03,Monthly Rent Payment,-1200
2024-03-05,Office supplies,"-45.90"
"""

SAMPLE_JSON = b"""{
  "account": "Operating",
  "transactions": [
    {"id": "T-1", "date": "2024-02-10", "description": "Consulting retainer", "amount": 500, "type": "revenue"},
    {"id": "T-2", "date": "2024-02-12", "description": "Payroll February", "amount": -3000.50, "type": "expense"}
  ]
}
"""

SAMPLE_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<export>
  <transactions>
    <transaction id="X-1">
      <date>2024-01-15</date>
      <description>Customer order 77</description>
      <amount>120.00</amount>
      <type>revenue</type>
    </transaction>
    <transaction id="X-2">
      <date>2024-01-16</date>
      <description>Electric bill</description>
      <amount>-80.25</amount>
      <type>expense</type>
    </transaction>
  </transactions>
</export>
"""

SAMPLE_STATEMENT_TEXT = """ACME Corp Statement
Account 4411
Date        Description                 Amount
03/14/2024 Office Supplies Purchase $245.67
03/15/2024 Client deposit received $1,500.00
03/18/2024 Printer lease (89.99)
Page 1 of 1
Total 1,835.66
"""

SAMPLE_RECEIPT_TEXT = """CORNER CAFE
Latte 4.50
Bagel 3.25
$7.75
"""


@pytest.fixture
def sample_csv() -> bytes:
    """Bank export CSV with sniffable headers."""
    return SAMPLE_CSV


@pytest.fixture
def sample_json() -> bytes:
    """JSON export with a transactions list."""
    return SAMPLE_JSON


@pytest.fixture
def sample_xml() -> bytes:
    """XML export with attribute ids."""
    return SAMPLE_XML


@pytest.fixture
def sample_statement_text() -> str:
    """Text layer of a one-page PDF statement."""
    return SAMPLE_STATEMENT_TEXT


@pytest.fixture
def sample_receipt_text() -> str:
    """OCR output of an undated receipt."""
    return SAMPLE_RECEIPT_TEXT


@pytest.fixture
def reference_date() -> date:
    """Fixed batch reference date."""
    return date(2024, 6, 30)


@pytest.fixture
def xlsx_bytes() -> bytes:
    """Small XLSX workbook written in memory."""
    frame = pd.DataFrame(
        {
            "Date": ["2024-04-01", "2024-04-02"],
            "Description": ["Dividend payout", "Internet service"],
            "Amount": [150.0, -59.99],
        }
    )
    buffer = io.BytesIO()
    frame.to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


# Statement whose rows all mention "page", so only column alignment
# identifies them as transactions
TABLE_STATEMENT_ROWS = [
    ("Date", "Description", "Amount"),
    ("2024-01-05", "Homepage redesign", "1200.00"),
    ("2024-01-19", "Landing page copy", "350.00"),
]


@pytest.fixture
def table_statement_pdf() -> bytes:
    """Three-column statement PDF drawn with ReportLab."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setFont("Helvetica", 10)
    y = 780
    for row in TABLE_STATEMENT_ROWS:
        for x, text in zip((50, 200, 400), row):
            pdf.drawString(x, y, text)
        y -= 18
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
