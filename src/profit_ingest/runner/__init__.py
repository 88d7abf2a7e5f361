"""
CLI runner module.

Provides commands:
- process: Extract transactions from a file
- summary: Profit/loss summary and time series
- convert: Currency conversion
- init-config: Write a default config file
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
