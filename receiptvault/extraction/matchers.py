"""Store, date and currency matchers for Lebanese receipt text."""

from __future__ import annotations

import re

from .models import Currency

# Priority order matters: the first entry that matches wins.
STORE_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("spinneys", re.compile(r"spinneys|سبينيز", re.I)),
    ("happy", re.compile(r"happy|هابي", re.I)),
    ("al_makhazen", re.compile(r"al.?makhazen|المخازن", re.I)),
    ("charcutier_aoun", re.compile(r"charcutier|aoun|عون", re.I)),
    ("total", re.compile(r"total|توتال", re.I)),
    ("medco", re.compile(r"medco|ميدكو", re.I)),
]

DATE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"([0-9]{2})/([0-9]{2})/([0-9]{4})"),  # DD/MM/YYYY
    re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})"),  # YYYY-MM-DD
    re.compile(r"([0-9]{2})-([0-9]{2})-([0-9]{4})"),  # DD-MM-YYYY
]

_LBP_MARKERS = re.compile(r"LBP|L\.L\.|ل\.ل", re.I)
_USD_MARKERS = re.compile(r"USD|\$", re.I)


def normalize_lines(text: str) -> list[str]:
    """Split text into stripped, non-empty lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def store_display_name(store_id: str) -> str:
    """``al_makhazen`` → ``Al Makhazen``."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), store_id.replace("_", " "))


def match_store(text: str) -> tuple[str | None, str | None]:
    """Return ``(store_id, store_name)`` for the first registered store found."""
    for store_id, pattern in STORE_PATTERNS:
        if pattern.search(text):
            return store_id, store_display_name(store_id)
    return None, None


def extract_date(text: str) -> str | None:
    """Find the first supported date in the text and return it as YYYY-MM-DD.

    The four-digit group is taken as the year. The result is not checked
    for calendar validity.
    """
    for pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        first, second, third = match.groups()
        if len(first) == 4:
            return f"{first}-{second}-{third}"
        if len(third) == 4:
            return f"{third}-{second}-{first}"
    return None


def detect_currency(text: str) -> Currency:
    """Decide the receipt currency.

    USD only when a USD marker is present and no LBP marker is; LBP
    otherwise, including when both or neither appear.
    """
    has_lbp = _LBP_MARKERS.search(text) is not None
    has_usd = _USD_MARKERS.search(text) is not None
    return "USD" if has_usd and not has_lbp else "LBP"
