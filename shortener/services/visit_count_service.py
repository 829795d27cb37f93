"""
Visit Count Service

Reads and writes click counters in the stats namespace. Counters are stored
as decimal strings keyed by short code.

The service works inside a transaction owned by the caller, so a counter
can be created in the same scope as its URL record and read in the same
snapshot as the record it belongs to.
"""

from typing import Optional

from shortener.core.exceptions import StorageError
from shortener.db.models import STATS_NAMESPACE
from shortener.db.store import Transaction


def parse_count(short_code: str, raw: Optional[str]) -> int:
    """
    Decode a stored counter.

    Args:
        short_code: Code the counter belongs to (for error messages)
        raw: Stored value, or None if the counter is missing

    Returns:
        The counter value (0 if missing)

    Raises:
        StorageError: If the stored value is not a decimal number
    """
    if raw is None:
        return 0
    if not (raw.isascii() and raw.isdigit()):
        raise StorageError(f"corrupt click counter for '{short_code}': {raw!r}")
    return int(raw)


class VisitCountService:
    """Counter operations bound to one store transaction."""

    def __init__(self, tx: Transaction):
        self.stats = tx.namespace(STATS_NAMESPACE)

    async def initialize(self, short_code: str) -> None:
        """Create the counter for a freshly created short code."""
        await self.stats.put(short_code, "0")

    async def increment_visit_count(self, short_code: str) -> int:
        """
        Add one click to a counter and return the new value.

        A missing counter starts at 1. Requires a read-write transaction;
        writers are serialized by the store, so the read-modify-write
        cannot interleave with another increment.
        """
        count = parse_count(short_code, await self.stats.get(short_code)) + 1
        await self.stats.put(short_code, str(count))
        return count

    async def get_visit_count(self, short_code: str) -> int:
        """
        Get the current visit count for a short code.

        Returns:
            Visit count (0 if not found)
        """
        return parse_count(short_code, await self.stats.get(short_code))
