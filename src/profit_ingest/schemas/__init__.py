"""
SSOT (Single Source of Truth) schemas for the pipeline.

These canonical schemas are the ONLY models used across all modules.
"""

from .ids import BatchIdGenerator, parse_batch_id
from .transaction import (
    CURRENCY_PRECISION,
    DEFAULT_CATEGORY,
    RawRecord,
    Transaction,
    TransactionType,
    validate_transaction,
)

__all__ = [
    # Canonical output schema
    "Transaction",
    "TransactionType",
    "RawRecord",
    "validate_transaction",
    "CURRENCY_PRECISION",
    "DEFAULT_CATEGORY",
    # Ids
    "BatchIdGenerator",
    "parse_batch_id",
]
