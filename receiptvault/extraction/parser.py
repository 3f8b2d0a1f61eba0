"""Assemble an ExtractedReceipt from raw OCR text."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .amounts import find_price_tokens, resolve_total
from .confidence import score_confidence
from .matchers import detect_currency, extract_date, match_store, normalize_lines
from .models import ExtractedItem, ExtractedReceipt

if TYPE_CHECKING:
    from ..ocr import OCRResult

logger = logging.getLogger(__name__)


def parse_receipt(raw_text: str, ocr_result: OCRResult | None = None) -> ExtractedReceipt:
    """Parse OCR text into a structured receipt.

    Each field is extracted independently of the others; anything that
    cannot be found is left as None. This function does not raise on
    unreadable input.

    Line items are not segmented: ``items`` is always empty.
    """
    lines = normalize_lines(raw_text)

    store_id, store_name = match_store(raw_text)
    date = extract_date(raw_text)
    currency = detect_currency(raw_text)
    total = resolve_total(lines, find_price_tokens(raw_text))
    confidence = score_confidence(ocr_result)
    items: tuple[ExtractedItem, ...] = ()

    logger.debug(
        "Parsed receipt: store=%s date=%s currency=%s total=%s confidence=%.2f",
        store_id, date, currency, total, confidence,
    )

    return ExtractedReceipt(
        store_name=store_name,
        store_id=store_id,
        date=date,
        currency=currency,
        total_lbp=total if currency == "LBP" else None,
        total_usd=total if currency == "USD" else None,
        raw_text=raw_text,
        confidence=confidence,
        items=items,
    )
