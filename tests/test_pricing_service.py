"""Tests for PriceIndexService."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from receiptvault.db.price_index import ConcurrentUpdateError, PriceIndexDB
from receiptvault.pricing.models import PriceObservation
from receiptvault.pricing.service import PriceIndexService

T0 = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


def _obs(store_id, price, minutes=0, currency="LBP"):
    return PriceObservation(
        store_id=store_id,
        price=price,
        currency=currency,
        recorded_at=T0 + timedelta(minutes=minutes),
    )


@pytest.fixture
def db(tmp_path):
    store = PriceIndexDB(db_path=tmp_path / "test.db")
    yield store
    store.close()


@pytest.fixture
def service(db):
    return PriceIndexService(db)


@pytest.mark.asyncio
async def test_record_first_observation(service, db):
    entry = await service.record("milk", _obs("spinneys", 95000))

    assert entry.version == 1
    assert entry.stores["spinneys"].trend == "stable"
    assert service.get("milk") == entry
    assert len(db.get_reports("milk")) == 1


@pytest.mark.asyncio
async def test_concurrent_observations_for_same_product(service):
    """Both stores survive when two reports arrive at once."""
    await asyncio.gather(
        service.record("milk", _obs("spinneys", 100)),
        service.record("milk", _obs("happy", 80)),
    )

    entry = service.get("milk")
    assert set(entry.stores) == {"spinneys", "happy"}
    assert entry.average_price == pytest.approx(90)
    assert entry.lowest_price.store_id == "happy"
    assert entry.version == 2


@pytest.mark.asyncio
async def test_same_store_updates_applied_in_arrival_order(service):
    prices = [100, 110, 120, 90]
    await asyncio.gather(
        *(service.record("milk", _obs("happy", p, minutes=i)) for i, p in enumerate(prices))
    )

    history = service.get("milk").stores["happy"].price_history
    assert [p.price for p in history] == [90, 120, 110, 100]
    assert service.get("milk").stores["happy"].trend == "down"


@pytest.mark.asyncio
async def test_products_are_independent(service):
    await asyncio.gather(
        service.record("milk", _obs("spinneys", 100)),
        service.record("bread", _obs("spinneys", 40)),
    )
    assert service.get("milk").average_price == 100
    assert service.get("bread").average_price == 40


@pytest.mark.asyncio
async def test_history_bounded_after_35_observations(service):
    for i in range(35):
        await service.record("rice", _obs("medco", 1000 + i, minutes=i))

    history = service.get("rice").stores["medco"].price_history
    assert len(history) == 30
    assert history[0].price == 1034


@pytest.mark.asyncio
async def test_custom_settings(db):
    service = PriceIndexService(db, history_limit=2, trend_threshold=0.5)
    for i, p in enumerate([100, 140, 160]):
        entry = await service.record("oil", _obs("happy", p, minutes=i))

    record = entry.stores["happy"]
    assert [p.price for p in record.price_history] == [160, 140]
    assert record.trend == "stable"


@pytest.mark.asyncio
async def test_failed_update_logs_no_report(db, monkeypatch):
    service = PriceIndexService(db, max_retries=1)
    monkeypatch.setattr(db, "compare_and_set", lambda *args, **kwargs: False)

    with pytest.raises(ConcurrentUpdateError):
        await service.record("milk", _obs("spinneys", 95000))

    assert db.get_reports("milk") == []
    assert db.get("milk") is None


@pytest.mark.asyncio
async def test_retry_after_failure_logs_report_once(db, monkeypatch):
    service = PriceIndexService(db, max_retries=1)
    with monkeypatch.context() as m:
        m.setattr(db, "compare_and_set", lambda *args, **kwargs: False)
        with pytest.raises(ConcurrentUpdateError):
            await service.record("milk", _obs("spinneys", 95000))

    await service.record("milk", _obs("spinneys", 95000))

    assert len(db.get_reports("milk")) == 1
    assert db.get("milk").stores["spinneys"].current_price == 95000


@pytest.mark.asyncio
async def test_locks_released_after_use(service):
    await asyncio.gather(
        service.record("milk", _obs("spinneys", 100)),
        service.record("milk", _obs("happy", 80)),
        service.record("bread", _obs("spinneys", 40)),
    )
    assert service.active_locks == 0


@pytest.mark.asyncio
async def test_lock_released_after_failure(db, monkeypatch):
    service = PriceIndexService(db, max_retries=1)
    monkeypatch.setattr(db, "compare_and_set", lambda *args, **kwargs: False)
    with pytest.raises(ConcurrentUpdateError):
        await service.record("milk", _obs("spinneys", 1))
    assert service.active_locks == 0
