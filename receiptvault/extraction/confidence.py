"""Receipt-level OCR confidence."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..ocr import OCRResult


def score_confidence(result: OCRResult | None) -> float:
    """Average the block confidences reported by the OCR provider.

    Blocks without a confidence (or with a zero one) carry no signal and are
    skipped. Returns 0.0 when nothing is left to average.
    """
    if result is None or not result.pages:
        return 0.0

    total = 0.0
    count = 0
    for page in result.pages:
        for block in page.blocks:
            if block.confidence:
                total += block.confidence
                count += 1

    return total / count if count else 0.0
