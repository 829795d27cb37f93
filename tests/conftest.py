"""
Shared fixtures.

Every test gets its own store file under pytest's tmp_path, so tests never
share state and never touch the working directory.
"""

import time

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from shortener.core.setting import Settings
from shortener.db.store import KeyValueStore
from shortener.main import create_app
from shortener.services.background_tasks import ClickCounterWorker
from shortener.services.stats_service import StatsService
from shortener.services.url_service import URLShorteningService

BASE_URL = "http://sho.rt"


@pytest_asyncio.fixture
async def store(tmp_path):
    store = KeyValueStore(str(tmp_path / "urls.db"))
    await store.open()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def click_counter(store):
    worker = ClickCounterWorker(store)
    await worker.start()
    yield worker
    await worker.stop()


@pytest.fixture
def url_service(store, click_counter):
    return URLShorteningService(store, base_url=BASE_URL, click_counter=click_counter)


@pytest.fixture
def stats_service(store):
    return StatsService(store, base_url=BASE_URL)


@pytest.fixture
def app_settings(tmp_path):
    return Settings(db_path=str(tmp_path / "api.db"), base_url=BASE_URL)


@pytest.fixture
def client(app_settings):
    app = create_app(app_settings)
    with TestClient(app) as c:
        yield c


def wait_for_access_count(client: TestClient, short_code: str, expected: int, timeout: float = 5.0) -> int:
    """Poll the info endpoint until the background counter catches up."""
    deadline = time.monotonic() + timeout
    while True:
        count = client.get(f"/api/info/{short_code}").json()["access_count"]
        if count == expected or time.monotonic() > deadline:
            return count
        time.sleep(0.02)
