"""
Field normalizer.

Coerces raw candidate records from any extractor into canonical
Transaction objects. Normalization is total: malformed fields fall back to
defaults, they never fail the batch.

Defaults:
- date: the batch reference date (today unless injected)
- description: "Transaction {n}" (1-based position in the batch)
- amount: 0
- type: expense
- category: "Other"
"""

import logging
import math
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as date_parser

from .schemas.ids import BatchIdGenerator
from .schemas.transaction import (
    CURRENCY_PRECISION,
    DEFAULT_CATEGORY,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Currency symbols, thousands separators and whitespace removed before parsing
AMOUNT_NOISE_RE = re.compile(r"[$€£¥₹,\s]")

# Leading numeric prefix (parseFloat semantics: "12.50abc" -> 12.50)
LEADING_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

REVENUE_KEYWORDS = ("revenue", "income", "credit", "deposit", "sale", "inflow")
REVENUE_EXACT = ("r", "in")
EXPENSE_KEYWORDS = ("expense", "debit", "payment", "withdrawal", "purchase", "outflow")
EXPENSE_EXACT = ("e", "out")


def is_missing(value: Any) -> bool:
    """True for None, NaN and NaT-like values."""
    if value is None:
        return True
    try:
        return bool(value != value)
    except (TypeError, ValueError):
        return False


def coerce_date(value: Any, default: date, dayfirst: bool = False) -> date:
    """Parse a date permissively, truncated to day granularity.

    Args:
        value: date/datetime (incl. pandas Timestamp), string, or anything else
        default: Returned for missing or unparseable values
        dayfirst: Read ambiguous 01/02/2024 as 1 February

    Returns:
        Calendar date
    """
    if is_missing(value):
        return default

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            return date_parser.parse(text, dayfirst=dayfirst).date()
        except (ValueError, OverflowError, TypeError):
            logger.debug("Unparseable date %r, using %s", text, default)
            return default

    return default


def coerce_string(value: Any, default: str = "") -> str:
    """Stringify a value; missing values become ``default``."""
    if is_missing(value):
        return default
    return str(value)


def coerce_amount(value: Any) -> Decimal:
    """Coerce to an absolute Decimal amount.

    Strings are stripped of currency symbols and thousands separators first.
    Non-numeric, missing, boolean and non-finite inputs become 0.
    """
    if is_missing(value) or isinstance(value, bool):
        return ZERO

    try:
        if isinstance(value, Decimal):
            number = value
        elif isinstance(value, int):
            number = Decimal(value)
        elif isinstance(value, float):
            number = Decimal(str(value))
        elif isinstance(value, str):
            match = LEADING_NUMBER_RE.match(AMOUNT_NOISE_RE.sub("", value))
            if not match:
                return ZERO
            number = Decimal(match.group(0))
        else:
            number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO

    if not number.is_finite():
        return ZERO

    try:
        return abs(number).quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More digits than the context precision allows at cent scale
        logger.warning("Amount %s out of range, using 0", number)
        return ZERO


def coerce_type(value: Any) -> TransactionType:
    """Map a free-form type label to revenue/expense (default expense)."""
    if isinstance(value, TransactionType):
        return value
    if is_missing(value):
        return TransactionType.EXPENSE

    text = str(value).strip().lower()
    if not text:
        return TransactionType.EXPENSE

    if text in REVENUE_EXACT or any(kw in text for kw in REVENUE_KEYWORDS):
        return TransactionType.REVENUE
    if text in EXPENSE_EXACT or any(kw in text for kw in EXPENSE_KEYWORDS):
        return TransactionType.EXPENSE

    return TransactionType.EXPENSE


def reconcile_sign(amount: Decimal, tx_type: TransactionType) -> Decimal:
    """Force the amount sign to agree with the type. Idempotent."""
    if tx_type == TransactionType.EXPENSE:
        return -abs(amount)
    return abs(amount)


def normalize_record(
    raw: Any,
    position: int,
    reference_date: date,
    dayfirst: bool = False,
) -> Transaction:
    """Normalize one raw record. The id is left empty for the batch to assign."""
    if not isinstance(raw, Mapping):
        raw = {}

    tx_type = coerce_type(raw.get("type"))
    amount = reconcile_sign(coerce_amount(raw.get("amount")), tx_type)

    description = coerce_string(raw.get("description")).strip()
    category = coerce_string(raw.get("category")).strip()

    return Transaction(
        id=coerce_string(raw.get("id")).strip(),
        date=coerce_date(raw.get("date"), reference_date, dayfirst=dayfirst),
        description=description or f"Transaction {position}",
        amount=amount,
        type=tx_type,
        category=category or DEFAULT_CATEGORY,
    )


def normalize(
    raw_records: Iterable[Any],
    *,
    reference_date: Optional[date] = None,
    dayfirst: bool = False,
    id_generator: Optional[BatchIdGenerator] = None,
) -> list[Transaction]:
    """
    Normalize raw candidate records into canonical transactions.

    Args:
        raw_records: Extractor output (any mapping-like records)
        reference_date: Fallback date for missing/invalid dates (default: today)
        dayfirst: Date parsing preference for ambiguous strings
        id_generator: Generator for missing/duplicate ids (default: "txn" tag)

    Returns:
        Transactions in input order, with unique ids and reconciled signs
    """
    reference_date = reference_date or date.today()
    id_generator = id_generator or BatchIdGenerator("txn")

    transactions: list[Transaction] = []
    seen_ids: set[str] = set()

    for position, raw in enumerate(raw_records, start=1):
        tx = normalize_record(raw, position, reference_date, dayfirst=dayfirst)

        while not tx.id or tx.id in seen_ids:
            tx.id = id_generator.next_id()
        seen_ids.add(tx.id)

        transactions.append(tx)

    logger.debug("Normalized %d records", len(transactions))
    return transactions


def is_finite_number(value: Any) -> bool:
    """True for ints, finite floats and finite Decimals (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return False
