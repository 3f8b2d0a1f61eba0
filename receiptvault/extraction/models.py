"""Data models for receipts extracted from OCR text."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Currency = Literal["LBP", "USD"]


@dataclass(frozen=True)
class ExtractedItem:
    """A single line item read from a receipt."""

    name: str
    quantity: float = 1.0
    unit_price: float = 0.0
    total_price: float = 0.0
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "totalPrice": self.total_price,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ExtractedReceipt:
    """Structured receipt produced from one OCR invocation.

    Exactly one of ``total_lbp`` / ``total_usd`` is set when a total was
    resolved, chosen by ``currency``. Both are None otherwise.
    """

    store_name: str | None
    store_id: str | None
    date: str | None  # YYYY-MM-DD
    currency: Currency
    total_lbp: float | None
    total_usd: float | None
    raw_text: str
    confidence: float
    items: tuple[ExtractedItem, ...] = field(default_factory=tuple)

    @property
    def total(self) -> float | None:
        return self.total_lbp if self.currency == "LBP" else self.total_usd

    def to_dict(self) -> dict:
        return {
            "storeName": self.store_name,
            "storeId": self.store_id,
            "date": self.date,
            "items": [i.to_dict() for i in self.items],
            "totalLBP": self.total_lbp,
            "totalUSD": self.total_usd,
            "currency": self.currency,
            "rawText": self.raw_text,
            "confidence": self.confidence,
        }
