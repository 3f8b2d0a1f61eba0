"""SQLite document store for receipts, price indexes, rates and insights."""

from .exchange_rates import ExchangeRateDB
from .insights import InsightDB
from .price_index import ConcurrentUpdateError, PriceIndexDB
from .receipts import ReceiptDB
from .schema import ensure_schema

__all__ = [
    "ReceiptDB",
    "PriceIndexDB",
    "ExchangeRateDB",
    "InsightDB",
    "ConcurrentUpdateError",
    "ensure_schema",
]
