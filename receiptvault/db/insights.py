"""Spending insight storage."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from .schema import ensure_schema

if TYPE_CHECKING:
    from ..insights import SpendingInsight


class InsightDB:
    """Manages the spending_insights table, one row per user and period."""

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

    def save_insight(self, insight: SpendingInsight) -> None:
        """Insert or replace the insight for its user and period."""
        conn = self._get_conn()
        conn.execute(
            """INSERT OR REPLACE INTO spending_insights
               (user_id, period, insight_json, generated_at)
               VALUES (?, ?, ?, ?)""",
            (
                insight.user_id,
                insight.period,
                json.dumps(insight.to_dict(), ensure_ascii=False),
                insight.generated_at.isoformat(),
            ),
        )
        conn.commit()

    def get_insight(self, user_id: str, period: str) -> dict | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT insight_json FROM spending_insights WHERE user_id = ? AND period = ?",
            (user_id, period),
        ).fetchone()
        return json.loads(row["insight_json"]) if row else None
