"""
Column/field sniffer.

Maps arbitrary header names onto the canonical fields by case-insensitive
substring match. First matching column (in iteration order) wins per field.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Field -> header substrings (checked in this order)
FIELD_HINTS = {
    "date": ("date", "time"),
    "description": ("desc", "narration", "particular"),
    "amount": ("amount", "value", "sum"),
    "type": ("type", "category"),
}


@dataclass(frozen=True)
class ColumnMapping:
    """Source column name chosen for each canonical field (None if unmatched)."""

    date: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[str] = None
    type: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any((self.date, self.description, self.amount, self.type))


def sniff(column_names: Iterable[str]) -> ColumnMapping:
    """
    Pick a source column for each canonical field.

    Args:
        column_names: Header names in source order

    Returns:
        ColumnMapping; deterministic for a given name sequence
    """
    found: dict[str, str] = {}

    for column in column_names:
        lowered = str(column).lower()
        for field_name, hints in FIELD_HINTS.items():
            if field_name in found:
                continue
            if any(hint in lowered for hint in hints):
                found[field_name] = column

    mapping = ColumnMapping(**found)
    logger.debug("Sniffed columns: %s", mapping)
    return mapping
