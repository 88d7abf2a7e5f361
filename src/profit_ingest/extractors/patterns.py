"""
Shared date/amount token patterns.

Used by the free-text extractor (PDF text and OCR text) and by the tabular
and structured extractors for signed amount parsing.

Supported formats:
- Dates: D-M-Y / M-D-Y and Y-M-D with "-", "/" or "." separators, 2-4 digit year
- Amounts: optional sign, optional currency symbol ($ € £ ¥ ₹), optional
  thousands separators (1,234,567), optional 2-decimal fraction,
  optional accounting parentheses: (245.67)
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..normalizer import is_finite_number, is_missing

CURRENCY_SYMBOLS = "$€£¥₹"

CURRENCY_SYMBOL_RE = re.compile(f"[{re.escape(CURRENCY_SYMBOLS)}]")

DATE_RE = re.compile(
    r"\b(?:"
    r"(?P<y1>\d{4})(?P<s1>[-/.])(?P<m1>\d{1,2})(?P=s1)(?P<d1>\d{1,2})"
    r"|"
    r"(?P<a2>\d{1,2})(?P<s2>[-/.])(?P<b2>\d{1,2})(?P=s2)(?P<y2>\d{4}|\d{2})"
    r")\b"
)

AMOUNT_RE = re.compile(
    r"(?<![\w.,])"
    r"(?P<open>\()?"
    r"(?P<sign>-\s?)?"
    r"(?:(?P<symbol>[" + re.escape(CURRENCY_SYMBOLS) + r"])\s?)?"
    r"(?P<sign2>-)?"
    r"(?P<number>\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+(?:\.\d{2})?)"
    r"(?P<close>\))?"
    r"(?![\d,]|\.\d)"
)

# Signed prefix of a cleaned string (everything except digits, "." and "-" removed)
SIGNED_NUMBER_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")

WHITESPACE_RE = re.compile(r"\s+")

# Two-digit years below the pivot map to 20xx, the rest to 19xx
TWO_DIGIT_YEAR_PIVOT = 50


@dataclass
class DateToken:
    """A date found in a line of text."""

    text: str
    start: int
    end: int
    value: Optional[date]


@dataclass
class AmountToken:
    """An amount found in a line of text."""

    text: str
    start: int
    end: int
    value: Decimal
    negative: bool
    has_symbol: bool
    has_fraction: bool

    @property
    def rank(self) -> int:
        """Preference: currency symbol > 2-decimal fraction > bare integer."""
        if self.has_symbol:
            return 2
        if self.has_fraction:
            return 1
        return 0

    @property
    def signed_value(self) -> Decimal:
        return -self.value if self.negative else self.value


def _expand_year(year_text: str) -> int:
    year = int(year_text)
    if len(year_text) == 2:
        year += 2000 if year < TWO_DIGIT_YEAR_PIVOT else 1900
    return year


def parse_date_match(match: re.Match) -> Optional[date]:
    """Convert a DATE_RE match into a date.

    Year-last tokens are read month-first unless the first part exceeds 12.
    """
    try:
        if match.group("y1"):
            return date(int(match.group("y1")), int(match.group("m1")), int(match.group("d1")))

        first = int(match.group("a2"))
        second = int(match.group("b2"))
        year = _expand_year(match.group("y2"))
        if first > 12:
            return date(year, second, first)
        return date(year, first, second)
    except ValueError:
        return None


def find_date(text: str) -> Optional[DateToken]:
    """Return the first date-like token in ``text``."""
    match = DATE_RE.search(text)
    if not match:
        return None
    return DateToken(
        text=match.group(0),
        start=match.start(),
        end=match.end(),
        value=parse_date_match(match),
    )


def _amount_token(match: re.Match) -> Optional[AmountToken]:
    number = match.group("number")
    try:
        value = Decimal(number.replace(",", ""))
    except InvalidOperation:
        return None

    start, end = match.span()
    has_parens = bool(match.group("open") and match.group("close"))
    # An unbalanced parenthesis belongs to the surrounding text
    if match.group("open") and not has_parens:
        start += 1
    if match.group("close") and not has_parens:
        end -= 1

    return AmountToken(
        text=match.string[start:end],
        start=start,
        end=end,
        value=value,
        negative=bool(match.group("sign") or match.group("sign2") or has_parens),
        has_symbol=bool(match.group("symbol")),
        has_fraction="." in number,
    )


def find_amounts(text: str, exclude: Optional[tuple[int, int]] = None) -> list[AmountToken]:
    """Return all amount-like tokens, skipping any overlapping ``exclude`` span."""
    tokens: list[AmountToken] = []
    for match in AMOUNT_RE.finditer(text):
        if exclude and match.start() < exclude[1] and match.end() > exclude[0]:
            continue
        token = _amount_token(match)
        if token:
            tokens.append(token)
    return tokens


def find_amount(text: str, exclude: Optional[tuple[int, int]] = None) -> Optional[AmountToken]:
    """Return the most amount-like token in ``text`` (first of the best rank)."""
    tokens = find_amounts(text, exclude)
    if not tokens:
        return None
    best_rank = max(token.rank for token in tokens)
    return next(token for token in tokens if token.rank == best_rank)


def find_amount_outside_date(text: str) -> tuple[Optional[DateToken], Optional[AmountToken]]:
    """Find a date token and an amount token that does not overlap it."""
    date_token = find_date(text)
    exclude = (date_token.start, date_token.end) if date_token else None
    return date_token, find_amount(text, exclude)


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def strip_tokens(text: str, *tokens: Any) -> str:
    """Remove token substrings and currency symbols, collapse whitespace."""
    spans = sorted(
        ((token.start, token.end) for token in tokens if token is not None),
        reverse=True,
    )
    for start, end in spans:
        text = text[:start] + " " + text[end:]
    text = CURRENCY_SYMBOL_RE.sub("", text)
    return collapse_whitespace(text)


def parse_signed_amount(value: Any) -> Optional[Decimal]:
    """Parse a raw cell/field value keeping its sign.

    Numbers are taken as-is. Strings keep only digits, "." and "-" and the
    leading signed number is parsed; "(1,200.00)" is read as negative.

    Returns:
        Signed Decimal, or None when nothing numeric is present
    """
    if is_missing(value) or isinstance(value, bool):
        return None

    if is_finite_number(value):
        return Decimal(str(value)) if isinstance(value, float) else Decimal(value)

    if not isinstance(value, str):
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
        return number if number.is_finite() else None

    text = value.strip()
    negative_parens = text.startswith("(") and text.endswith(")")
    cleaned = re.sub(r"[^\d.\-]", "", text)
    match = SIGNED_NUMBER_RE.match(cleaned)
    if not match:
        return None
    try:
        number = Decimal(match.group(0))
    except InvalidOperation:
        return None
    if negative_parens and number > 0:
        number = -number
    return number
