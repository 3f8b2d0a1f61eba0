"""Exchange rate storage."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from .schema import ensure_schema

if TYPE_CHECKING:
    from ..exchange import ExchangeRate


class ExchangeRateDB:
    """Manages the exchange_rates table. Only the latest sync is active."""

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

    def replace_active(self, rates: list[ExchangeRate]) -> list[int]:
        """Deactivate all current rates and insert ``rates`` as the active set.

        Both steps commit together or not at all.

        Returns:
            List of inserted row IDs.
        """
        conn = self._get_conn()
        ids: list[int] = []
        with conn:
            conn.execute("UPDATE exchange_rates SET is_active = 0 WHERE is_active = 1")
            for rate in rates:
                cur = conn.execute(
                    """INSERT INTO exchange_rates
                       (source, rate_type, usd_to_lbp, lbp_to_usd, fetched_at, is_active)
                       VALUES (?, ?, ?, ?, ?, 1)""",
                    (
                        rate.source,
                        rate.rate_type,
                        rate.usd_to_lbp,
                        rate.lbp_to_usd,
                        rate.fetched_at.isoformat(),
                    ),
                )
                ids.append(cur.lastrowid)
        return ids

    def get_active(self) -> list[dict]:
        """Return the active rates."""
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM exchange_rates WHERE is_active = 1 ORDER BY id"
        ).fetchall()
        return [dict(r) for r in rows]

    def count(self) -> int:
        conn = self._get_conn()
        return conn.execute("SELECT COUNT(*) FROM exchange_rates").fetchone()[0]
