"""Cross-store price index with per-store trends."""

from .index import HISTORY_LIMIT, apply_observation
from .models import (
    LowestPrice,
    PriceHistoryPoint,
    PriceIndexEntry,
    PriceObservation,
    StorePriceRecord,
    Trend,
)
from .service import PriceIndexService
from .trend import calculate_trend

__all__ = [
    "apply_observation",
    "calculate_trend",
    "PriceIndexService",
    "PriceIndexEntry",
    "PriceObservation",
    "PriceHistoryPoint",
    "StorePriceRecord",
    "LowestPrice",
    "Trend",
    "HISTORY_LIMIT",
]
