"""Receipt text extraction pipeline."""

from .amounts import find_price_tokens, parse_amount, resolve_total
from .confidence import score_confidence
from .matchers import (
    DATE_PATTERNS,
    STORE_PATTERNS,
    detect_currency,
    extract_date,
    match_store,
    normalize_lines,
)
from .models import Currency, ExtractedItem, ExtractedReceipt
from .parser import parse_receipt

__all__ = [
    "parse_receipt",
    "ExtractedReceipt",
    "ExtractedItem",
    "Currency",
    "normalize_lines",
    "match_store",
    "extract_date",
    "detect_currency",
    "find_price_tokens",
    "parse_amount",
    "resolve_total",
    "score_confidence",
    "STORE_PATTERNS",
    "DATE_PATTERNS",
]
