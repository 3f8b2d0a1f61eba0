"""Price token extraction and total resolution."""

from __future__ import annotations

import re

# Amount with optional thousands commas and 2-decimal fraction, optionally
# followed by a currency marker.
PRICE_PATTERN = re.compile(
    r"([0-9,]+(?:\.[0-9]{2})?)\s*(LBP|L\.L\.|ل\.ل|USD|\$|دولار)?", re.I
)
TOTAL_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"total|المجموع|الإجمالي", re.I),
]
_AMOUNT = re.compile(r"[0-9,]+(?:\.[0-9]{2})?")


def parse_amount(token: str) -> float | None:
    """Parse ``"12,500.00"`` → ``12500.0``. Returns None if not numeric."""
    try:
        return float(token.replace(",", ""))
    except ValueError:
        return None


def find_price_tokens(text: str) -> list[str]:
    """Return every price-like token in the text, in order of appearance."""
    return [m.group(1) for m in PRICE_PATTERN.finditer(text)]


def _total_from_lines(lines: list[str]) -> float | None:
    for line in reversed(lines):
        if not any(p.search(line) for p in TOTAL_PATTERNS):
            continue
        match = _AMOUNT.search(line)
        if match is None:
            continue
        value = parse_amount(match.group(0))
        # A zero or unparseable amount keeps the search going upward
        if value:
            return value
    return None


def resolve_total(lines: list[str], tokens: list[str]) -> float | None:
    """Find the receipt total.

    Lines are scanned bottom-up for a total keyword followed by an amount.
    Failing that, the largest parsed price token is assumed to be the total.
    """
    total = _total_from_lines(lines)
    if total is not None:
        return total

    prices = [p for p in (parse_amount(t) for t in tokens) if p is not None]
    if not prices:
        return None
    return max(prices)
