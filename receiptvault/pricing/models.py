"""Data models for the cross-store price index."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from ..extraction.models import Currency

Trend = Literal["up", "down", "stable"]


def _ts(value: datetime) -> str:
    return value.isoformat()


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class PriceObservation:
    """One reported price for a product at a store."""

    store_id: str
    price: float
    currency: Currency
    recorded_at: datetime

    @classmethod
    def from_report(
        cls,
        store_id: str,
        price_lbp: float | None,
        price_usd: float | None,
        recorded_at: datetime,
    ) -> PriceObservation:
        """Build an observation from a report carrying both currency columns.

        The LBP price wins when it is set; a report with neither price is
        recorded as 0 USD.
        """
        price = price_lbp or price_usd or 0
        currency: Currency = "LBP" if price_lbp else "USD"
        return cls(store_id=store_id, price=price, currency=currency, recorded_at=recorded_at)


@dataclass(frozen=True)
class PriceHistoryPoint:
    price: float
    date: datetime
    currency: Currency

    def to_dict(self) -> dict:
        return {"price": self.price, "date": _ts(self.date), "currency": self.currency}

    @classmethod
    def from_dict(cls, data: dict) -> PriceHistoryPoint:
        return cls(
            price=data["price"],
            date=_parse_ts(data["date"]),
            currency=data["currency"],
        )


@dataclass(frozen=True)
class StorePriceRecord:
    """A store's current price for one product. History is newest first."""

    current_price: float
    currency: Currency
    price_history: tuple[PriceHistoryPoint, ...]
    trend: Trend
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "currentPrice": self.current_price,
            "currency": self.currency,
            "priceHistory": [p.to_dict() for p in self.price_history],
            "trend": self.trend,
            "lastUpdated": _ts(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict) -> StorePriceRecord:
        return cls(
            current_price=data["currentPrice"],
            currency=data["currency"],
            price_history=tuple(
                PriceHistoryPoint.from_dict(p) for p in data.get("priceHistory", [])
            ),
            trend=data.get("trend", "stable"),
            last_updated=_parse_ts(data["lastUpdated"]),
        )


@dataclass(frozen=True)
class LowestPrice:
    store_id: str
    price: float
    currency: Currency

    def to_dict(self) -> dict:
        return {"storeId": self.store_id, "price": self.price, "currency": self.currency}

    @classmethod
    def from_dict(cls, data: dict) -> LowestPrice:
        return cls(store_id=data["storeId"], price=data["price"], currency=data["currency"])


@dataclass(frozen=True)
class PriceIndexEntry:
    """Per-product price index document.

    ``stores`` keeps insertion order; that order decides ties for the
    lowest price.
    """

    product_id: str
    stores: dict[str, StorePriceRecord]
    lowest_price: LowestPrice
    average_price: float
    updated_at: datetime
    # Filled in by the store; not part of the document body.
    version: int = field(default=0, compare=False)

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "stores": {sid: rec.to_dict() for sid, rec in self.stores.items()},
            "lowestPrice": self.lowest_price.to_dict(),
            "averagePrice": self.average_price,
            "updatedAt": _ts(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict, version: int = 0) -> PriceIndexEntry:
        return cls(
            product_id=data["productId"],
            stores={
                sid: StorePriceRecord.from_dict(rec)
                for sid, rec in data.get("stores", {}).items()
            },
            lowest_price=LowestPrice.from_dict(data["lowestPrice"]),
            average_price=data["averagePrice"],
            updated_at=_parse_ts(data["updatedAt"]),
            version=version,
        )
