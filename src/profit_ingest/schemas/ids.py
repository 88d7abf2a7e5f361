"""
Synthetic transaction id generation.

Ids only need to be unique within one batch. They are built from:
- a format tag (csv, excel, json, xml, pdf, image, txn)
- the batch timestamp (second resolution)
- a monotonic per-batch counter

The counter guarantees uniqueness; the timestamp is informational only.
"""

import itertools
from datetime import datetime
from typing import Optional

ID_SEPARATOR = "-"
TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S"


class BatchIdGenerator:
    """Generates ``{tag}-{timestamp}-{n}`` ids for one extraction batch."""

    def __init__(self, format_tag: str, started_at: Optional[datetime] = None):
        self.format_tag = format_tag
        self.started_at = started_at or datetime.now()
        self._stamp = self.started_at.strftime(TIMESTAMP_FORMAT)
        self._counter = itertools.count()

    def next_id(self) -> str:
        """Return the next id; the first call yields counter 0."""
        return ID_SEPARATOR.join([self.format_tag, self._stamp, str(next(self._counter))])


def parse_batch_id(value: str) -> Optional[tuple[str, str, int]]:
    """Split a generated id into (tag, timestamp, counter).

    Returns:
        Tuple of components, or None if ``value`` was not generated here
    """
    parts = value.rsplit(ID_SEPARATOR, 2)
    if len(parts) != 3 or not parts[2].isdigit():
        return None
    try:
        datetime.strptime(parts[1], TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return parts[0], parts[1], int(parts[2])
