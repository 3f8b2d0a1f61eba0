"""Per-store price trend classification."""

from __future__ import annotations

from collections.abc import Sequence

from .models import PriceHistoryPoint, Trend

DEFAULT_THRESHOLD = 0.05


def calculate_trend(
    history: Sequence[PriceHistoryPoint], threshold: float = DEFAULT_THRESHOLD
) -> Trend:
    """Classify the latest move in a newest-first price history.

    The move counts only when it exceeds ``threshold`` times the previous
    price. A history with fewer than two points is stable.
    """
    if len(history) < 2:
        return "stable"

    newest, previous = history[0].price, history[1].price
    diff = newest - previous
    limit = previous * threshold
    if diff > limit:
        return "up"
    if diff < -limit:
        return "down"
    return "stable"
