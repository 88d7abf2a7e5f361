"""
Rule-based transaction categorization.

Keyword rules keyed by transaction type; first match wins. Keywords match
anywhere in the description, case-insensitively, so "sale" matches
"Wholesale receipts" and "rent" matches "monthlyrent".

Transactions that already carry a category other than "Other" pass through.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Optional

from .schemas.transaction import DEFAULT_CATEGORY, Transaction, TransactionType

logger = logging.getLogger(__name__)

# ============================================================================
# Category rules (ordered; first match wins)
# ============================================================================

CATEGORY_RULES: dict[TransactionType, list[tuple[str, tuple[str, ...]]]] = {
    TransactionType.REVENUE: [
        ("Sales", ("sale", "order", "customer", "invoice")),
        ("Services", ("service", "consulting", "fee")),
        ("Investments", ("interest", "dividend", "investment")),
    ],
    TransactionType.EXPENSE: [
        ("Salaries", ("salary", "payroll", "wage")),
        ("Rent", ("rent", "lease")),
        ("Utilities", ("electric", "water", "gas", "internet", "phone")),
        ("Supplies", ("office", "supplies", "equipment")),
        ("Marketing", ("ad", "marketing", "promotion")),
        ("Insurance", ("insurance",)),
        ("Taxes", ("tax",)),
    ],
}

DEFAULT_TAXONOMY: dict[str, list[str]] = {
    "revenue": ["Sales", "Services", "Investments", "Other Income"],
    "expense": [
        "Salaries",
        "Rent",
        "Utilities",
        "Supplies",
        "Marketing",
        "Insurance",
        "Taxes",
        "Other Expenses",
    ],
}


def _keyword_pattern(keywords: Iterable[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(keyword) for keyword in keywords)
    return re.compile(alternatives, re.IGNORECASE)


class Categorizer:
    """
    Assigns categories from description keywords.

    Args:
        taxonomy: Allowed labels per type ("revenue"/"expense" -> labels).
            Rules whose category is not listed for its type are disabled.
            Defaults to DEFAULT_TAXONOMY.
    """

    def __init__(self, taxonomy: Optional[Mapping[str, Iterable[str]]] = None):
        self.taxonomy = {
            key: list(labels) for key, labels in (taxonomy or DEFAULT_TAXONOMY).items()
        }
        self._rules: dict[TransactionType, list[tuple[str, re.Pattern]]] = {}

        for tx_type, rules in CATEGORY_RULES.items():
            allowed = set(self.taxonomy.get(tx_type.value, []))
            self._rules[tx_type] = [
                (category, _keyword_pattern(keywords))
                for category, keywords in rules
                if category in allowed
            ]

    def category_for(self, description: str, tx_type: TransactionType) -> str:
        """Category for a description under the given type ("Other" if no rule matches)."""
        for category, pattern in self._rules.get(tx_type, []):
            if pattern.search(description or ""):
                return category
        return DEFAULT_CATEGORY

    def categorize(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        """
        Categorize a batch. Total and idempotent.

        Returns:
            New list; only "Other"/blank categories are replaced
        """
        result: list[Transaction] = []
        assigned = 0

        for tx in transactions:
            if tx.category and tx.category != DEFAULT_CATEGORY:
                result.append(tx)
                continue

            category = self.category_for(tx.description, tx.type)
            if category != DEFAULT_CATEGORY:
                assigned += 1
            result.append(replace(tx, category=category))

        logger.debug("Categorized %d of %d transactions", assigned, len(result))
        return result
