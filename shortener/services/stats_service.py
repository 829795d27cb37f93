"""
Statistics Service

Aggregates service-wide statistics with a full scan of the store:
- total number of short URLs
- total number of clicks
- the most clicked short URLs

Both namespaces are scanned inside one read transaction, so totals and the
top list come from the same snapshot. Ties in the top list keep scan order,
which is the lexicographic order of the short codes.
"""

import heapq
import logging
from dataclasses import dataclass, field
from operator import attrgetter
from typing import List

from shortener.core.exceptions import StorageError
from shortener.db.models import STATS_NAMESPACE, URLS_NAMESPACE
from shortener.db.store import KeyValueStore
from shortener.services.url_service import URLInfo, load_record
from shortener.services.visit_count_service import parse_count

logger = logging.getLogger(__name__)

TOP_URLS_LIMIT = 5


@dataclass(frozen=True)
class StatsSummary:
    total_urls: int = 0
    total_clicks: int = 0
    top_urls: List[URLInfo] = field(default_factory=list)


class StatsService:
    """Service for service-wide URL statistics."""

    def __init__(self, store: KeyValueStore, base_url: str, top_n: int = TOP_URLS_LIMIT):
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.top_n = top_n

    async def get_stats(self) -> StatsSummary:
        """
        Scan every short URL and aggregate click statistics.

        A URL record that cannot be decoded still counts as a URL but is
        left out of the click total and the top list.

        Returns:
            StatsSummary with totals and at most top_n URLs, most clicked first
        """
        async with self.store.view() as tx:
            records = await tx.namespace(URLS_NAMESPACE).scan()
            counters = dict(await tx.namespace(STATS_NAMESPACE).scan())

        total_clicks = 0
        entries = []
        for short_code, raw in records:
            try:
                record = load_record(short_code, raw)
            except StorageError as e:
                logger.warning(f"Skipping unreadable record in stats: {e}")
                continue

            access_count = parse_count(short_code, counters.get(short_code))
            total_clicks += access_count
            entries.append(URLInfo(
                short_code=short_code,
                short_url=f"{self.base_url}/{short_code}",
                long_url=record.url,
                created_at=record.created_at,
                access_count=access_count,
            ))

        # nlargest keeps input order among equal counts
        top_urls = heapq.nlargest(self.top_n, entries, key=attrgetter("access_count"))

        return StatsSummary(
            total_urls=len(records),
            total_clicks=total_clicks,
            top_urls=top_urls,
        )
