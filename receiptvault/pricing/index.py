"""Merge price observations into a product's price index entry."""

from __future__ import annotations

from datetime import datetime, timezone

from .models import (
    LowestPrice,
    PriceHistoryPoint,
    PriceIndexEntry,
    PriceObservation,
    StorePriceRecord,
)
from .trend import DEFAULT_THRESHOLD, calculate_trend

HISTORY_LIMIT = 30


def apply_observation(
    entry: PriceIndexEntry | None,
    product_id: str,
    observation: PriceObservation,
    *,
    history_limit: int = HISTORY_LIMIT,
    trend_threshold: float = DEFAULT_THRESHOLD,
    now: datetime | None = None,
) -> PriceIndexEntry:
    """Return the index entry after recording ``observation``.

    ``entry`` is None when the product has no index yet. The input entry is
    never modified.

    Lowest and average prices compare ``current_price`` values across stores
    as plain numbers, whatever their currency.
    """
    updated_at = now or datetime.now(timezone.utc)
    point = PriceHistoryPoint(
        price=observation.price,
        date=observation.recorded_at,
        currency=observation.currency,
    )

    if entry is None:
        return PriceIndexEntry(
            product_id=product_id,
            stores={
                observation.store_id: StorePriceRecord(
                    current_price=observation.price,
                    currency=observation.currency,
                    price_history=(point,),
                    trend="stable",
                    last_updated=observation.recorded_at,
                )
            },
            lowest_price=LowestPrice(
                store_id=observation.store_id,
                price=observation.price,
                currency=observation.currency,
            ),
            average_price=observation.price,
            updated_at=updated_at,
        )

    previous = entry.stores.get(observation.store_id)
    old_history = previous.price_history if previous else ()
    history = ((point,) + old_history)[:history_limit]

    stores = dict(entry.stores)
    stores[observation.store_id] = StorePriceRecord(
        current_price=observation.price,
        currency=observation.currency,
        price_history=history,
        trend=calculate_trend(history, trend_threshold),
        last_updated=observation.recorded_at,
    )

    return PriceIndexEntry(
        product_id=entry.product_id,
        stores=stores,
        lowest_price=_lowest_price(stores),
        average_price=sum(s.current_price for s in stores.values()) / len(stores),
        updated_at=updated_at,
        version=entry.version,
    )


def _lowest_price(stores: dict[str, StorePriceRecord]) -> LowestPrice:
    items = iter(stores.items())
    best_id, best = next(items)
    for store_id, record in items:
        # Strict comparison: on a tie the earlier store stays
        if record.current_price < best.current_price:
            best_id, best = store_id, record
    return LowestPrice(store_id=best_id, price=best.current_price, currency=best.currency)
