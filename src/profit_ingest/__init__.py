"""
Financial export → Transaction extraction → Normalization → Profit/Loss reporting

A best-effort pipeline that turns spreadsheets, delimited text, JSON/XML
exports, PDF statements and scanned receipts into one canonical list of
revenue/expense transactions.
"""

__version__ = "0.1.0"
