"""
Base extractor interface and common helpers.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..normalizer import coerce_type
from ..schemas.ids import BatchIdGenerator
from ..schemas.transaction import RawRecord, TransactionType


class BaseExtractor(ABC):
    """
    Base class for all extractors.

    Each extractor handles one input shape:
    - Tabular rows (CSV, XLSX, XLS)
    - Structured trees (JSON, XML)
    - Free text (PDF text layer, OCR output)

    Extractors are stateless; every ``extract`` call starts a new batch.
    """

    def __init__(self, format_tag: str):
        self.format_tag = format_tag

    @property
    @abstractmethod
    def name(self) -> str:
        """Extractor name for logging."""
        pass

    @abstractmethod
    def extract(self, payload: Any) -> list[RawRecord]:
        """
        Extract raw candidate records.

        Args:
            payload: Decoded input (rows, tree or text depending on variant)

        Returns:
            Raw candidate records, in source order
        """
        pass

    def new_id_generator(self, started_at: Optional[datetime] = None) -> BatchIdGenerator:
        """Id generator for one extraction batch."""
        return BatchIdGenerator(self.format_tag, started_at)


def type_from_sign(amount: Optional[Decimal]) -> Optional[TransactionType]:
    """Infer the type from a signed amount; zero/unknown gives None."""
    if amount is None or amount == 0:
        return None
    return TransactionType.REVENUE if amount > 0 else TransactionType.EXPENSE


def resolve_type(raw_type: Any, amount: Optional[Decimal]) -> TransactionType:
    """Explicit type label when present, else the amount sign, else expense."""
    if raw_type is not None and str(raw_type).strip():
        return coerce_type(raw_type)
    return type_from_sign(amount) or TransactionType.EXPENSE
