"""
Profit/loss reporting.

Provides:
- summarize: headline totals and per-category sums
- time_series: revenue/expenses/profit per period
- category_breakdown: category totals with percentage shares
"""

from .summary import (
    PERIODS,
    CategoryShare,
    PeriodTotals,
    ProfitSummary,
    category_breakdown,
    summarize,
    time_series,
)

__all__ = [
    "summarize",
    "time_series",
    "category_breakdown",
    "ProfitSummary",
    "PeriodTotals",
    "CategoryShare",
    "PERIODS",
]
