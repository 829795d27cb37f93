"""
URL Shortening Service

This service handles the core business logic for URL shortening:
- Validating destination URLs and custom short codes
- Allocating short codes (custom or random) without overwriting existing ones
- Resolving short codes for redirection and queueing click increments
- Reading the merged record/counter view of a short code

Random codes are 6 characters from [A-Za-z0-9] by default (62^6, about 5.7e10
combinations). A collision is detected inside the same write transaction
that stores the record and simply triggers another draw, up to a bounded
number of attempts.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from shortener.core.exceptions import (
    InvalidSlugError,
    InvalidURLError,
    ShortCodeExhaustedError,
    ShortCodeNotFoundError,
    SlugConflictError,
    StorageError,
)
from shortener.core.validators import (
    generate_short_code,
    is_reserved_slug,
    is_valid_slug,
    is_valid_url,
)
from shortener.db.models import URLS_NAMESPACE, URLRecord, utcnow
from shortener.db.store import KeyValueStore, Namespace
from shortener.services.background_tasks import ClickCounterWorker
from shortener.services.visit_count_service import VisitCountService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShortenResult:
    short_code: str
    short_url: str
    long_url: str


@dataclass(frozen=True)
class URLInfo:
    short_code: str
    short_url: str
    long_url: str
    created_at: datetime
    access_count: int


def load_record(short_code: str, raw: str) -> URLRecord:
    """
    Deserialize a value of the urls namespace.

    Raises:
        StorageError: If the stored document is malformed
    """
    try:
        return URLRecord.model_validate_json(raw)
    except ValidationError as e:
        raise StorageError(f"corrupt URL record for '{short_code}'", original_error=e)


class URLShorteningService:
    """
    Core business logic for URL shortening.

    Handles validation, code allocation and lookups against the key-value
    store. Separated from the API layer for testability.
    """

    def __init__(
        self,
        store: KeyValueStore,
        base_url: str,
        code_length: int = 6,
        max_attempts: int = 5,
        click_counter: Optional[ClickCounterWorker] = None
    ):
        """
        Args:
            store: Opened key-value store
            base_url: Prefix of generated short links
            code_length: Length of random short codes
            max_attempts: Random codes drawn before giving up on collisions
            click_counter: Worker receiving clicks on resolve (optional)
        """
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.code_length = code_length
        self.max_attempts = max_attempts
        self.click_counter = click_counter

    def build_short_url(self, short_code: str) -> str:
        return f"{self.base_url}/{short_code}"

    async def create_short_url(
        self,
        long_url: str,
        custom_slug: Optional[str] = None
    ) -> ShortenResult:
        """
        Shorten long_url under custom_slug, or under a random code.

        The URL record and its zero counter are written in one transaction.

        Args:
            long_url: Destination URL (http:// or https://)
            custom_slug: Requested short code; empty means "generate one"

        Returns:
            ShortenResult with the allocated code

        Raises:
            InvalidURLError: If long_url is not acceptable
            InvalidSlugError: If custom_slug is malformed or reserved
            SlugConflictError: If custom_slug is already taken
            ShortCodeExhaustedError: If no free random code was found
            StorageError: If the store fails
        """
        if not is_valid_url(long_url):
            raise InvalidURLError(long_url)

        if custom_slug:
            if not is_valid_slug(custom_slug):
                raise InvalidSlugError(custom_slug)
            if is_reserved_slug(custom_slug):
                raise InvalidSlugError(custom_slug, reason=f"Custom slug '{custom_slug}' is reserved")

        record = URLRecord(url=long_url, created_at=utcnow())

        async with self.store.update() as tx:
            urls = tx.namespace(URLS_NAMESPACE)
            if custom_slug:
                if await urls.exists(custom_slug):
                    raise SlugConflictError(custom_slug)
                short_code = custom_slug
            else:
                short_code = await self._allocate_random_code(urls)

            await urls.put(short_code, record.model_dump_json())
            await VisitCountService(tx).initialize(short_code)

        logger.info(f"Short URL created: {short_code} -> {long_url}")
        return ShortenResult(
            short_code=short_code,
            short_url=self.build_short_url(short_code),
            long_url=long_url,
        )

    async def _allocate_random_code(self, urls: Namespace) -> str:
        for attempt in range(1, self.max_attempts + 1):
            short_code = generate_short_code(self.code_length)
            if not await urls.exists(short_code):
                return short_code
            logger.warning(f"Short code collision on attempt {attempt}: {short_code}")
        raise ShortCodeExhaustedError(self.max_attempts)

    async def resolve(self, short_code: str) -> str:
        """
        Look up the destination of short_code for redirection.

        Queues one click on the counter worker without waiting for it.

        Raises:
            ShortCodeNotFoundError: If the code does not exist
        """
        async with self.store.view() as tx:
            raw = await tx.namespace(URLS_NAMESPACE).get(short_code)

        if raw is None:
            raise ShortCodeNotFoundError(short_code)
        record = load_record(short_code, raw)

        if self.click_counter is not None:
            self.click_counter.submit(short_code)
        return record.url

    async def get_info(self, short_code: str) -> URLInfo:
        """
        Return the record of short_code merged with its click count.

        Both are read in the same snapshot.

        Raises:
            ShortCodeNotFoundError: If the code does not exist
        """
        async with self.store.view() as tx:
            raw = await tx.namespace(URLS_NAMESPACE).get(short_code)
            if raw is None:
                raise ShortCodeNotFoundError(short_code)
            access_count = await VisitCountService(tx).get_visit_count(short_code)

        record = load_record(short_code, raw)
        return URLInfo(
            short_code=short_code,
            short_url=self.build_short_url(short_code),
            long_url=record.url,
            created_at=record.created_at,
            access_count=access_count,
        )
