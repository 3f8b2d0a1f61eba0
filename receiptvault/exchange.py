"""USD/LBP exchange rate snapshots."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import RateConfig
    from .db import ExchangeRateDB

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExchangeRate:
    source: str  # black_market, sayrafa, ...
    rate_type: str
    usd_to_lbp: float
    fetched_at: datetime

    @property
    def lbp_to_usd(self) -> float:
        return 1 / self.usd_to_lbp


def rates_from_config(
    rates: list[RateConfig], now: datetime | None = None
) -> list[ExchangeRate]:
    """Snapshot the configured rates at ``now``.

    Raises:
        ValueError: If a configured rate is not positive.
    """
    fetched_at = now or datetime.now(timezone.utc)
    snapshot: list[ExchangeRate] = []
    for r in rates:
        if r.usd_to_lbp <= 0:
            raise ValueError(f"Invalid USD/LBP rate for {r.source!r}: {r.usd_to_lbp}")
        snapshot.append(
            ExchangeRate(
                source=r.source,
                rate_type=r.rate_type,
                usd_to_lbp=r.usd_to_lbp,
                fetched_at=fetched_at,
            )
        )
    return snapshot


def sync_exchange_rates(db: ExchangeRateDB, rates: list[ExchangeRate]) -> list[int]:
    """Replace the active exchange rates with ``rates``."""
    ids = db.replace_active(rates)
    logger.info("Exchange rates synced: %d rates", len(ids))
    return ids
