"""Tests for merging observations into a price index entry."""

from datetime import datetime, timedelta, timezone

import pytest

from receiptvault.pricing.index import apply_observation
from receiptvault.pricing.models import PriceIndexEntry, PriceObservation

T0 = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)
NOW = datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)


def _obs(store_id, price, currency="LBP", minutes=0):
    return PriceObservation(
        store_id=store_id,
        price=price,
        currency=currency,
        recorded_at=T0 + timedelta(minutes=minutes),
    )


class TestFirstObservation:
    def test_creates_entry(self):
        entry = apply_observation(None, "milk-1l", _obs("spinneys", 95000), now=NOW)

        assert entry.product_id == "milk-1l"
        assert list(entry.stores) == ["spinneys"]
        record = entry.stores["spinneys"]
        assert record.current_price == 95000
        assert record.currency == "LBP"
        assert len(record.price_history) == 1
        assert record.price_history[0].price == 95000
        assert record.trend == "stable"
        assert record.last_updated == T0
        assert entry.lowest_price.store_id == "spinneys"
        assert entry.lowest_price.price == 95000
        assert entry.average_price == 95000
        assert entry.updated_at == NOW


class TestSubsequentObservations:
    def test_history_is_newest_first(self):
        entry = apply_observation(None, "p", _obs("happy", 100))
        entry = apply_observation(entry, "p", _obs("happy", 110, minutes=1))

        prices = [p.price for p in entry.stores["happy"].price_history]
        assert prices == [110, 100]
        assert entry.stores["happy"].current_price == 110
        assert entry.stores["happy"].trend == "up"

    def test_trend_down(self):
        entry = apply_observation(None, "p", _obs("happy", 100))
        entry = apply_observation(entry, "p", _obs("happy", 90, minutes=1))
        assert entry.stores["happy"].trend == "down"

    def test_history_bounded_to_30(self):
        entry = None
        for i in range(35):
            entry = apply_observation(entry, "p", _obs("medco", 1000 + i, minutes=i))

        history = entry.stores["medco"].price_history
        assert len(history) == 30
        assert history[0].price == 1034
        assert history[-1].price == 1005
        assert all(p.price != 1000 for p in history)

    def test_custom_history_limit(self):
        entry = None
        for i in range(5):
            entry = apply_observation(entry, "p", _obs("medco", 10 + i), history_limit=3)
        assert [p.price for p in entry.stores["medco"].price_history] == [14, 13, 12]

    def test_new_store_starts_stable(self):
        entry = apply_observation(None, "p", _obs("spinneys", 100))
        entry = apply_observation(entry, "p", _obs("happy", 300))
        assert entry.stores["happy"].trend == "stable"
        assert len(entry.stores["happy"].price_history) == 1

    def test_lowest_and_average_across_stores(self):
        entry = apply_observation(None, "p", _obs("spinneys", 120))
        entry = apply_observation(entry, "p", _obs("happy", 90))
        entry = apply_observation(entry, "p", _obs("medco", 150))

        assert entry.lowest_price.store_id == "happy"
        assert entry.lowest_price.price == 90
        assert entry.average_price == pytest.approx(120)

    def test_lowest_recomputed_when_cheapest_store_raises_price(self):
        entry = apply_observation(None, "p", _obs("spinneys", 120))
        entry = apply_observation(entry, "p", _obs("happy", 90))
        entry = apply_observation(entry, "p", _obs("happy", 200))

        assert entry.lowest_price.store_id == "spinneys"
        assert entry.average_price == pytest.approx(160)

    def test_single_store_reprice_is_lowest(self):
        entry = apply_observation(None, "p", _obs("happy", 100))
        entry = apply_observation(entry, "p", _obs("happy", 120))
        assert entry.lowest_price.store_id == "happy"
        assert entry.lowest_price.price == 120

    def test_tie_keeps_first_store(self):
        entry = apply_observation(None, "p", _obs("spinneys", 100))
        entry = apply_observation(entry, "p", _obs("happy", 100))
        assert entry.lowest_price.store_id == "spinneys"

    def test_currencies_compared_as_plain_numbers(self):
        entry = apply_observation(None, "p", _obs("spinneys", 90000, "LBP"))
        entry = apply_observation(entry, "p", _obs("happy", 1.2, "USD"))

        assert entry.lowest_price.store_id == "happy"
        assert entry.lowest_price.currency == "USD"
        assert entry.average_price == pytest.approx((90000 + 1.2) / 2)

    def test_input_entry_not_modified(self):
        first = apply_observation(None, "p", _obs("spinneys", 100))
        apply_observation(first, "p", _obs("spinneys", 200))
        apply_observation(first, "p", _obs("happy", 50))

        assert list(first.stores) == ["spinneys"]
        assert first.stores["spinneys"].current_price == 100
        assert len(first.stores["spinneys"].price_history) == 1


class TestSerialization:
    def test_document_round_trip(self):
        entry = apply_observation(None, "p", _obs("spinneys", 100), now=NOW)
        entry = apply_observation(entry, "p", _obs("happy", 1.5, "USD"), now=NOW)

        doc = entry.to_dict()
        assert doc["stores"]["happy"]["priceHistory"][0]["currency"] == "USD"
        assert doc["lowestPrice"] == {"storeId": "happy", "price": 1.5, "currency": "USD"}
        assert PriceIndexEntry.from_dict(doc) == entry


class TestObservationFromReport:
    def test_lbp_wins(self):
        obs = PriceObservation.from_report("happy", 90000, 1.0, T0)
        assert (obs.price, obs.currency) == (90000, "LBP")

    def test_usd_only(self):
        obs = PriceObservation.from_report("happy", None, 1.0, T0)
        assert (obs.price, obs.currency) == (1.0, "USD")

    def test_neither(self):
        obs = PriceObservation.from_report("happy", None, None, T0)
        assert (obs.price, obs.currency) == (0, "USD")
