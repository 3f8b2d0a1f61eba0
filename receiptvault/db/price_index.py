"""Price report log and versioned price index documents."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from .schema import ensure_schema

if TYPE_CHECKING:
    from ..pricing.models import PriceIndexEntry, PriceObservation

logger = logging.getLogger(__name__)


class ConcurrentUpdateError(RuntimeError):
    """A price index document kept changing under a writer until retries ran out."""


class PriceIndexDB:
    """Manages the price_reports and price_index tables.

    Index documents carry a version number. Writes are compare-and-set on
    that version, so two writers that read the same document cannot both
    commit.
    """

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

    def add_report(self, product_id: str, observation: PriceObservation) -> int:
        """Append a raw price observation to the report log.

        Returns:
            The inserted row ID.
        """
        conn = self._get_conn()
        with conn:
            return self._insert_report(conn, product_id, observation)

    @staticmethod
    def _insert_report(
        conn: sqlite3.Connection, product_id: str, observation: PriceObservation
    ) -> int:
        cur = conn.execute(
            """INSERT INTO price_reports
               (product_id, store_id, price, currency, recorded_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                product_id,
                observation.store_id,
                observation.price,
                observation.currency,
                observation.recorded_at.isoformat(),
            ),
        )
        return cur.lastrowid

    def get_reports(self, product_id: str) -> list[dict]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM price_reports WHERE product_id = ? ORDER BY id",
            (product_id,),
        ).fetchall()
        return [dict(r) for r in rows]

    def get(self, product_id: str) -> PriceIndexEntry | None:
        """Load a product's index entry, with its stored version."""
        from ..pricing.models import PriceIndexEntry

        conn = self._get_conn()
        row = conn.execute(
            "SELECT document, version FROM price_index WHERE product_id = ?",
            (product_id,),
        ).fetchone()
        if row is None:
            return None
        return PriceIndexEntry.from_dict(json.loads(row["document"]), version=row["version"])

    def compare_and_set(
        self,
        product_id: str,
        entry: PriceIndexEntry,
        expected_version: int | None,
        report: PriceObservation | None = None,
    ) -> bool:
        """Write ``entry`` only if the stored version is still ``expected_version``.

        ``expected_version=None`` means the document must not exist yet. A
        ``report`` is appended to the report log in the same transaction, so
        it is logged exactly when the index write goes through.

        Returns:
            True if the write was applied.
        """
        conn = self._get_conn()
        document = json.dumps(entry.to_dict(), ensure_ascii=False)
        updated_at = entry.updated_at.isoformat()

        if expected_version is None:
            try:
                with conn:
                    conn.execute(
                        """INSERT INTO price_index
                           (product_id, document, version, updated_at)
                           VALUES (?, ?, 1, ?)""",
                        (product_id, document, updated_at),
                    )
                    if report is not None:
                        self._insert_report(conn, product_id, report)
            except sqlite3.IntegrityError:
                return False
            return True

        with conn:
            cur = conn.execute(
                """UPDATE price_index
                   SET document = ?, version = version + 1, updated_at = ?
                   WHERE product_id = ? AND version = ?""",
                (document, updated_at, product_id, expected_version),
            )
            if cur.rowcount != 1:
                return False
            if report is not None:
                self._insert_report(conn, product_id, report)
        return True

    def update(
        self,
        product_id: str,
        fn: Callable[[PriceIndexEntry | None], PriceIndexEntry],
        *,
        max_retries: int = 5,
        report: PriceObservation | None = None,
    ) -> PriceIndexEntry:
        """Read-modify-write a product's index entry with optimistic retry.

        ``fn`` receives the current entry (None if absent) and returns the
        new one. It is re-run against fresh data after every conflict, so it
        must not have side effects.

        ``report``, if given, is logged together with the successful write and
        not at all if every attempt fails.

        Raises:
            ConcurrentUpdateError: If every attempt lost to another writer.
        """
        for attempt in range(1, max_retries + 1):
            current = self.get(product_id)
            expected = current.version if current is not None else None
            new_entry = fn(current)
            if self.compare_and_set(product_id, new_entry, expected, report):
                return replace(new_entry, version=(expected or 0) + 1)
            logger.warning(
                "Price index %s changed during update, retrying (%d/%d)",
                product_id, attempt, max_retries,
            )
        raise ConcurrentUpdateError(
            f"Price index {product_id!r} could not be updated after {max_retries} attempts"
        )
