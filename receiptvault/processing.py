"""Receipt processing: OCR, extraction, and storage."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .extraction import ExtractedReceipt, parse_receipt

if TYPE_CHECKING:
    from .db import ReceiptDB
    from .ocr import OCRBackend

logger = logging.getLogger(__name__)


class ReceiptProcessingError(RuntimeError):
    """OCR or storage failed while processing a receipt. Safe to retry."""


@dataclass
class ProcessedReceipt:
    receipt_id: str
    status: str  # processed / pending
    receipt: ExtractedReceipt


class ReceiptProcessor:
    """Turns a receipt image into a stored, structured receipt."""

    def __init__(
        self,
        backend: OCRBackend,
        receipt_db: ReceiptDB,
        *,
        accept_threshold: float = 0.8,
    ) -> None:
        self._backend = backend
        self._db = receipt_db
        self._accept_threshold = accept_threshold

    async def process(self, image_path: str, user_id: str) -> ProcessedReceipt:
        """Run OCR on ``image_path``, parse it, and save it for ``user_id``.

        Receipts above the acceptance threshold are stored as ``processed``;
        the rest wait as ``pending`` for manual review.

        Raises:
            ReceiptProcessingError: If the OCR provider or the store fails.
        """
        logger.info("Processing receipt for user %s: %s", user_id, image_path)

        try:
            ocr_result = await self._backend.recognize(image_path)
        except json.JSONDecodeError as e:
            logger.exception("OCR returned an unreadable transcription for %s", image_path)
            raise ReceiptProcessingError(f"OCR failed: {e}") from e
        except (ValueError, ImportError):
            raise
        except Exception as e:
            logger.exception("OCR failed for %s", image_path)
            raise ReceiptProcessingError(f"OCR failed: {e}") from e

        receipt = parse_receipt(ocr_result.text, ocr_result)
        logger.info(
            "OCR completed: %d characters, confidence %.2f",
            len(ocr_result.text), receipt.confidence,
        )

        status = "processed" if receipt.confidence > self._accept_threshold else "pending"

        try:
            receipt_id = self._db.save_receipt(
                user_id, receipt, status=status, image_url=image_path
            )
        except sqlite3.Error as e:
            logger.exception("Failed to save receipt for user %s", user_id)
            raise ReceiptProcessingError(f"Failed to save receipt: {e}") from e

        logger.info(
            "Receipt saved: id=%s status=%s items=%d",
            receipt_id, status, len(receipt.items),
        )
        return ProcessedReceipt(receipt_id=receipt_id, status=status, receipt=receipt)
