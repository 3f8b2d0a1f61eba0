"""Receipt and receipt item storage."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from .schema import ensure_schema

if TYPE_CHECKING:
    from ..extraction.models import ExtractedReceipt

UNKNOWN_STORE = "Unknown Store"


class ReceiptDB:
    """Manages the receipts and receipt_items tables."""

    def __init__(self, db_path: str | Path = "~/.config/receiptvault/vault.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def save_receipt(
        self,
        user_id: str,
        receipt: ExtractedReceipt,
        *,
        status: str = "pending",
        image_url: str | None = None,
        category_id: str | None = None,
    ) -> str:
        """Insert an extracted receipt and its items in one transaction.

        A receipt without a detected date is filed under today's date.

        Returns:
            The new receipt ID.
        """
        conn = self._get_conn()
        receipt_id = uuid.uuid4().hex
        with conn:
            conn.execute(
                """INSERT INTO receipts
                   (id, user_id, store_name, store_id, category_id, receipt_date,
                    total_lbp, total_usd, currency, status, ocr_confidence,
                    raw_text, image_url)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    receipt_id,
                    user_id,
                    receipt.store_name or UNKNOWN_STORE,
                    receipt.store_id,
                    category_id,
                    receipt.date or date.today().isoformat(),
                    receipt.total_lbp,
                    receipt.total_usd,
                    receipt.currency,
                    status,
                    receipt.confidence,
                    receipt.raw_text,
                    image_url,
                ),
            )
            conn.executemany(
                """INSERT INTO receipt_items
                   (receipt_id, name, quantity, unit_price, total_price,
                    currency, ocr_confidence, position)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        receipt_id,
                        item.name,
                        item.quantity,
                        item.unit_price,
                        item.total_price,
                        receipt.currency,
                        item.confidence,
                        position,
                    )
                    for position, item in enumerate(receipt.items)
                ],
            )
        return receipt_id

    def get_receipt(self, receipt_id: str) -> dict | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM receipts WHERE id = ?", (receipt_id,)
        ).fetchone()
        return dict(row) if row else None

    def get_items(self, receipt_id: str) -> list[dict]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM receipt_items WHERE receipt_id = ? ORDER BY position",
            (receipt_id,),
        ).fetchall()
        return [dict(r) for r in rows]

    def list_receipts(self, user_id: str, start: str, end: str) -> list[dict]:
        """Return a user's receipts dated in ``[start, end)`` (ISO dates)."""
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM receipts
               WHERE user_id = ?
                 AND receipt_date >= ?
                 AND receipt_date < ?
               ORDER BY receipt_date""",
            (user_id, start, end),
        ).fetchall()
        return [dict(r) for r in rows]

    def list_user_ids(self) -> list[str]:
        """Return every user with at least one stored receipt."""
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT DISTINCT user_id FROM receipts ORDER BY user_id"
        ).fetchall()
        return [r["user_id"] for r in rows]
