"""
Profit/loss reporting over canonical transactions.

All totals are absolute amounts (expenses are reported as positive
figures); net profit is revenue minus expenses.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..schemas.transaction import CURRENCY_PRECISION, DEFAULT_CATEGORY, Transaction, TransactionType

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

PERIODS = ("daily", "weekly", "monthly", "quarterly", "yearly")

BREAKDOWN_TYPES = ("all", "revenue", "expense")


@dataclass
class ProfitSummary:
    """Headline figures for a set of transactions."""

    total_transactions: int = 0
    total_revenue: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_profit: Decimal = ZERO
    average_transaction: Decimal = ZERO
    revenue_by_category: dict[str, Decimal] = field(default_factory=dict)
    expenses_by_category: dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary."""
        return {
            "total_transactions": self.total_transactions,
            "total_revenue": str(self.total_revenue),
            "total_expenses": str(self.total_expenses),
            "net_profit": str(self.net_profit),
            "average_transaction": str(self.average_transaction),
            "revenue_by_category": {k: str(v) for k, v in self.revenue_by_category.items()},
            "expenses_by_category": {k: str(v) for k, v in self.expenses_by_category.items()},
        }


@dataclass
class PeriodTotals:
    """Revenue/expense totals for one reporting period."""

    label: str
    start: date
    revenue: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.expenses

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "start": self.start.isoformat(),
            "revenue": str(self.revenue),
            "expenses": str(self.expenses),
            "profit": str(self.profit),
        }


@dataclass
class CategoryShare:
    """One category's share of a breakdown."""

    category: str
    value: Decimal
    percentage: Decimal


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)


def summarize(transactions: Iterable[Transaction]) -> ProfitSummary:
    """
    Compute headline profit/loss figures.

    Returns:
        ProfitSummary (all zeros for an empty input)
    """
    summary = ProfitSummary()

    for tx in transactions:
        summary.total_transactions += 1
        amount = abs(tx.amount)
        category = tx.category or DEFAULT_CATEGORY

        if tx.type == TransactionType.REVENUE:
            summary.total_revenue += amount
            by_category = summary.revenue_by_category
        else:
            summary.total_expenses += amount
            by_category = summary.expenses_by_category
        by_category[category] = by_category.get(category, ZERO) + amount

    summary.net_profit = summary.total_revenue - summary.total_expenses
    if summary.total_transactions:
        summary.average_transaction = _quantize(
            (summary.total_revenue + summary.total_expenses) / summary.total_transactions
        )

    return summary


def period_start(day: date, period: str) -> date:
    """First day of the period containing ``day`` (weeks start on Monday)."""
    if period == "daily":
        return day
    if period == "weekly":
        return day - timedelta(days=day.weekday())
    if period == "monthly":
        return day.replace(day=1)
    if period == "quarterly":
        return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)
    if period == "yearly":
        return date(day.year, 1, 1)
    raise ValueError(f"Unknown period {period!r}; expected one of {', '.join(PERIODS)}")


def period_label(start: date, period: str) -> str:
    """Human-readable period label: 2024-03-14, 2024-W11, Mar 2024, Q1 2024, 2024."""
    if period == "daily":
        return start.isoformat()
    if period == "weekly":
        year, week, _ = start.isocalendar()
        return f"{year}-W{week:02d}"
    if period == "monthly":
        return start.strftime("%b %Y")
    if period == "quarterly":
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    if period == "yearly":
        return str(start.year)
    raise ValueError(f"Unknown period {period!r}; expected one of {', '.join(PERIODS)}")


def time_series(
    transactions: Iterable[Transaction],
    period: str = "monthly",
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[PeriodTotals]:
    """
    Group revenue/expenses by period.

    Args:
        transactions: Canonical transactions
        period: daily, weekly, monthly, quarterly or yearly
        start: Inclusive lower date bound
        end: Inclusive upper date bound

    Returns:
        Periods with activity, oldest first

    Raises:
        ValueError: Unknown period
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown period {period!r}; expected one of {', '.join(PERIODS)}")

    grouped: dict[date, PeriodTotals] = {}
    for tx in transactions:
        if start and tx.date < start:
            continue
        if end and tx.date > end:
            continue

        key = period_start(tx.date, period)
        totals = grouped.get(key)
        if totals is None:
            totals = grouped[key] = PeriodTotals(label=period_label(key, period), start=key)

        if tx.type == TransactionType.REVENUE:
            totals.revenue += abs(tx.amount)
        else:
            totals.expenses += abs(tx.amount)

    logger.debug("Grouped transactions into %d %s periods", len(grouped), period)
    return [grouped[key] for key in sorted(grouped)]


def category_breakdown(
    transactions: Iterable[Transaction],
    tx_type: str = "all",
) -> list[CategoryShare]:
    """
    Absolute totals and percentage shares per category.

    Args:
        transactions: Canonical transactions
        tx_type: "all", "revenue" or "expense"

    Returns:
        Shares in first-seen category order

    Raises:
        ValueError: Unknown type filter
    """
    if tx_type not in BREAKDOWN_TYPES:
        raise ValueError(f"Unknown type {tx_type!r}; expected one of {', '.join(BREAKDOWN_TYPES)}")

    totals: dict[str, Decimal] = {}
    for tx in transactions:
        if tx_type != "all" and tx.type.value != tx_type:
            continue
        category = tx.category or DEFAULT_CATEGORY
        totals[category] = totals.get(category, ZERO) + abs(tx.amount)

    grand_total = sum(totals.values(), ZERO)
    shares = []
    for category, value in totals.items():
        percentage = _quantize(value * 100 / grand_total) if grand_total else ZERO
        shares.append(CategoryShare(category=category, value=value, percentage=percentage))
    return shares
