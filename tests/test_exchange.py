"""Tests for exchange rate snapshots and storage."""

from datetime import datetime, timezone

import pytest

from receiptvault.config import RateConfig
from receiptvault.db.exchange_rates import ExchangeRateDB
from receiptvault.exchange import ExchangeRate, rates_from_config, sync_exchange_rates

NOW = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def db(tmp_path):
    rates = ExchangeRateDB(db_path=tmp_path / "test.db")
    yield rates
    rates.close()


def test_lbp_to_usd():
    rate = ExchangeRate(source="sayrafa", rate_type="mid", usd_to_lbp=89500, fetched_at=NOW)
    assert rate.lbp_to_usd == pytest.approx(1 / 89500)


def test_rates_from_config():
    rates = rates_from_config(
        [RateConfig(source="black_market"), RateConfig(source="bdl", usd_to_lbp=89700)],
        now=NOW,
    )
    assert [(r.source, r.usd_to_lbp) for r in rates] == [
        ("black_market", 89500.0),
        ("bdl", 89700),
    ]
    assert all(r.fetched_at == NOW for r in rates)


def test_rates_from_config_rejects_non_positive():
    with pytest.raises(ValueError, match="Invalid USD/LBP rate"):
        rates_from_config([RateConfig(source="bad", usd_to_lbp=0)])


def test_sync_replaces_active_rates(db):
    first = rates_from_config([RateConfig(source="black_market", usd_to_lbp=89000)], now=NOW)
    second = rates_from_config(
        [RateConfig(source="black_market"), RateConfig(source="sayrafa")], now=NOW
    )

    sync_exchange_rates(db, first)
    ids = sync_exchange_rates(db, second)

    assert len(ids) == 2
    active = db.get_active()
    assert [r["source"] for r in active] == ["black_market", "sayrafa"]
    assert all(r["usd_to_lbp"] == 89500.0 for r in active)
    assert active[0]["lbp_to_usd"] == pytest.approx(1 / 89500)
    assert db.count() == 3
