"""Tests for background click counting."""

import logging

import pytest

from shortener.db.models import STATS_NAMESPACE
from shortener.db.store import KeyValueStore
from shortener.services.background_tasks import (
    ClickCounterWorker,
    increment_visit_count_background,
)
from shortener.services.visit_count_service import VisitCountService


async def read_counter(store, short_code):
    async with store.view() as tx:
        return await tx.namespace(STATS_NAMESPACE).get(short_code)


@pytest.mark.asyncio
async def test_increment_creates_missing_counter(store):
    await increment_visit_count_background(store, "fresh")
    assert await read_counter(store, "fresh") == "1"


@pytest.mark.asyncio
async def test_counter_lifecycle_in_one_scope(store):
    async with store.update() as tx:
        counts = VisitCountService(tx)
        await counts.initialize("life")
        assert await counts.get_visit_count("life") == 0
        assert await counts.increment_visit_count("life") == 1
        assert await counts.increment_visit_count("life") == 2

    assert await read_counter(store, "life") == "2"


@pytest.mark.asyncio
async def test_increment_failure_is_logged_not_raised(tmp_path, caplog):
    closed_store = KeyValueStore(str(tmp_path / "never-opened.db"))

    with caplog.at_level(logging.ERROR):
        await increment_visit_count_background(closed_store, "abc")

    assert "Failed to increment visit count for abc" in caplog.text


@pytest.mark.asyncio
async def test_worker_applies_submitted_clicks(store, click_counter):
    for _ in range(5):
        assert click_counter.submit("abc")
    click_counter.submit("xyz")

    await click_counter.drain()

    assert await read_counter(store, "abc") == "5"
    assert await read_counter(store, "xyz") == "1"
    assert click_counter.pending == 0


@pytest.mark.asyncio
async def test_worker_survives_corrupt_counter(store, click_counter, caplog):
    async with store.update() as tx:
        await tx.namespace(STATS_NAMESPACE).put("broken", "not-a-number")

    with caplog.at_level(logging.ERROR):
        click_counter.submit("broken")
        click_counter.submit("fine")
        await click_counter.drain()

    assert click_counter.running
    assert await read_counter(store, "broken") == "not-a-number"
    assert await read_counter(store, "fine") == "1"
    assert "Failed to increment visit count for broken" in caplog.text


@pytest.mark.asyncio
async def test_submit_requires_running_worker(store):
    worker = ClickCounterWorker(store)
    assert not worker.submit("abc")

    await worker.start()
    await worker.stop()
    assert not worker.submit("abc")
    assert await read_counter(store, "abc") is None


@pytest.mark.asyncio
async def test_stop_drains_queue(store):
    worker = ClickCounterWorker(store)
    await worker.start()
    for _ in range(3):
        worker.submit("abc")

    await worker.stop()

    assert not worker.running
    assert await read_counter(store, "abc") == "3"
