"""Periodic spending insights per user."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .db import InsightDB, ReceiptDB

logger = logging.getLogger(__name__)

Direction = Literal["up", "down", "stable"]

# Percent change beyond which spending counts as moving
CHANGE_THRESHOLD_PCT = 5.0
TOP_N = 5


@dataclass
class SpendingInsight:
    user_id: str
    period: str  # "<first day>_<last day>"
    total_spent_lbp: float
    total_spent_usd: float
    receipt_count: int
    top_categories: list[tuple[str, float]] = field(default_factory=list)
    top_stores: list[tuple[str, float]] = field(default_factory=list)
    percent_change: float = 0.0
    direction: Direction = "stable"
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "period": self.period,
            "totalSpentLBP": self.total_spent_lbp,
            "totalSpentUSD": self.total_spent_usd,
            "receiptCount": self.receipt_count,
            "topCategories": [
                {"categoryId": c, "amount": a} for c, a in self.top_categories
            ],
            "topStores": [{"storeId": s, "amount": a} for s, a in self.top_stores],
            "comparedToLastPeriod": {
                "percentChange": self.percent_change,
                "direction": self.direction,
            },
            "generatedAt": self.generated_at.isoformat(),
        }


def _amount(row: dict) -> float:
    # A receipt carries one total; whichever currency it is in
    return row.get("total_lbp") or row.get("total_usd") or 0.0


def _top(spending: dict[str, float]) -> list[tuple[str, float]]:
    return sorted(spending.items(), key=lambda kv: kv[1], reverse=True)[:TOP_N]


def compute_insight(
    user_id: str,
    current: list[dict],
    previous: list[dict],
    period: str,
    generated_at: datetime | None = None,
) -> SpendingInsight:
    """Summarize one user's receipts for a period against the period before.

    Amounts in LBP and USD are added up as plain numbers for the category,
    store and change figures.
    """
    total_lbp = 0.0
    total_usd = 0.0
    by_category: dict[str, float] = defaultdict(float)
    by_store: dict[str, float] = defaultdict(float)

    for row in current:
        total_lbp += row.get("total_lbp") or 0.0
        total_usd += row.get("total_usd") or 0.0
        by_category[row.get("category_id") or "other"] += _amount(row)
        by_store[row.get("store_id") or "unknown"] += _amount(row)

    previous_total = sum(_amount(row) for row in previous)
    current_total = total_lbp or total_usd

    percent_change = 0.0
    direction: Direction = "stable"
    if previous_total > 0:
        percent_change = (current_total - previous_total) / previous_total * 100
        if percent_change > CHANGE_THRESHOLD_PCT:
            direction = "up"
        elif percent_change < -CHANGE_THRESHOLD_PCT:
            direction = "down"

    return SpendingInsight(
        user_id=user_id,
        period=period,
        total_spent_lbp=total_lbp,
        total_spent_usd=total_usd,
        receipt_count=len(current),
        top_categories=_top(by_category),
        top_stores=_top(by_store),
        percent_change=round(percent_change, 1),
        direction=direction,
        generated_at=generated_at or datetime.now(timezone.utc),
    )


def generate_insights(
    receipt_db: ReceiptDB,
    insight_db: InsightDB,
    *,
    today: date | None = None,
    days: int = 7,
) -> list[SpendingInsight]:
    """Generate and store insights for every user with receipts.

    The current period is the ``days`` days ending with ``today``; it is
    compared with the ``days`` days before it. A failure for one user is
    logged and the remaining users are still processed.
    """
    end = today or date.today()
    start = end - timedelta(days=days - 1)
    prev_start = start - timedelta(days=days)
    period = f"{start.isoformat()}_{end.isoformat()}"
    day_after = (end + timedelta(days=1)).isoformat()

    user_ids = receipt_db.list_user_ids()
    logger.info("Generating insights for %d users (%s)", len(user_ids), period)

    insights: list[SpendingInsight] = []
    for user_id in user_ids:
        try:
            current = receipt_db.list_receipts(user_id, start.isoformat(), day_after)
            previous = receipt_db.list_receipts(
                user_id, prev_start.isoformat(), start.isoformat()
            )
            insight = compute_insight(user_id, current, previous, period)
            insight_db.save_insight(insight)
            insights.append(insight)
            logger.info(
                "Insight generated for user %s: %d receipts",
                user_id, insight.receipt_count,
            )
        except Exception:
            logger.exception("Failed to generate insight for user %s", user_id)

    return insights
