"""Apply price observations to the stored index, one product at a time."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import partial
from typing import TYPE_CHECKING

from .index import HISTORY_LIMIT, apply_observation
from .models import PriceIndexEntry, PriceObservation
from .trend import DEFAULT_THRESHOLD

if TYPE_CHECKING:
    from ..db.price_index import PriceIndexDB

logger = logging.getLogger(__name__)


class PriceIndexService:
    """Records price observations and keeps each product's index current.

    Observations for the same product are applied one at a time in arrival
    order (``asyncio.Lock`` is FIFO). Different products use different locks
    and never wait on each other. A lock lives only while some caller holds
    or awaits it.

    The lock orders callers within one event loop. The store write is a
    versioned compare-and-set, and that is what keeps writers on other
    connections or in other processes from losing each other's updates.
    """

    def __init__(
        self,
        db: PriceIndexDB,
        *,
        history_limit: int = HISTORY_LIMIT,
        trend_threshold: float = DEFAULT_THRESHOLD,
        max_retries: int = 5,
    ) -> None:
        self._db = db
        self._history_limit = history_limit
        self._trend_threshold = trend_threshold
        self._max_retries = max_retries
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _product_lock(self, product_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(product_id, asyncio.Lock())
        self._lock_users[product_id] = self._lock_users.get(product_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[product_id] -= 1
            if not self._lock_users[product_id]:
                del self._lock_users[product_id]
                del self._locks[product_id]

    @property
    def active_locks(self) -> int:
        return len(self._locks)

    async def record(self, product_id: str, observation: PriceObservation) -> PriceIndexEntry:
        """Merge ``observation`` into the product's index entry and log it.

        The observation is written to the report log in the same transaction
        as the index update, so a failed update leaves no report behind.

        Raises:
            ConcurrentUpdateError: If the index kept changing under us.
        """
        async with self._product_lock(product_id):
            merge = partial(
                self._merge, product_id=product_id, observation=observation
            )
            entry = self._db.update(
                product_id,
                merge,
                max_retries=self._max_retries,
                report=observation,
            )

        logger.info(
            "Price index updated: product=%s store=%s price=%s %s",
            product_id, observation.store_id, observation.price, observation.currency,
        )
        return entry

    def get(self, product_id: str) -> PriceIndexEntry | None:
        return self._db.get(product_id)

    def _merge(
        self,
        current: PriceIndexEntry | None,
        *,
        product_id: str,
        observation: PriceObservation,
    ) -> PriceIndexEntry:
        return apply_observation(
            current,
            product_id,
            observation,
            history_limit=self._history_limit,
            trend_threshold=self._trend_threshold,
        )
