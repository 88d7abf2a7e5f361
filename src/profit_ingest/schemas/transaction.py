"""
Canonical transaction record (SSOT).

Every extractor converges on this shape after normalization.
No other module may invent another output schema.
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

# Raw candidate record produced by an extractor before normalization.
# Keys are any of: id, date, description, amount, type, category.
RawRecord = dict[str, Any]

CURRENCY_PRECISION = Decimal("0.01")

DEFAULT_CATEGORY = "Other"

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TransactionType(str, Enum):
    """Direction of a transaction for profit/loss reporting."""

    REVENUE = "revenue"
    EXPENSE = "expense"


@dataclass
class Transaction:
    """
    Canonical transaction.

    Invariants (enforced by the normalizer):
    - amount <= 0 for expenses, amount >= 0 for revenue
    - description is never empty
    - date has day granularity
    """

    id: str
    date: date
    description: str
    amount: Decimal
    type: TransactionType
    category: str = DEFAULT_CATEGORY

    @property
    def is_revenue(self) -> bool:
        return self.type == TransactionType.REVENUE

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": str(self.amount),
            "type": self.type.value,
            "category": self.category,
        }


def validate_transaction(data: dict[str, Any]) -> list[str]:
    """Validate a transaction dictionary (e.g. an edited, persisted copy).

    Returns:
        List of validation errors (empty if valid)
    """
    errors: list[str] = []

    if not data.get("description"):
        errors.append("Description is required")

    amount = data.get("amount")
    if amount is None:
        errors.append("Amount is required")
    else:
        try:
            Decimal(str(amount))
        except (InvalidOperation, ValueError):
            errors.append("Amount must be a number")

    raw_date = data.get("date")
    if not raw_date:
        errors.append("Date is required")
    elif not isinstance(raw_date, date):
        if not ISO_DATE_RE.match(str(raw_date)):
            errors.append("Date must be in YYYY-MM-DD format")
        else:
            try:
                date.fromisoformat(str(raw_date))
            except ValueError:
                errors.append("Date must be in YYYY-MM-DD format")

    raw_type = data.get("type")
    if not raw_type:
        errors.append("Type is required")
    elif str(getattr(raw_type, "value", raw_type)) not in {t.value for t in TransactionType}:
        errors.append('Type must be either "revenue" or "expense"')

    return errors
