"""Scheduled exchange-rate sync and spending-insight jobs."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class VaultScheduler:
    """Manages scheduled jobs for exchange rates and weekly insights.

    Uses APScheduler for cron-based scheduling.
    """

    def __init__(self, config) -> None:
        """Initialize scheduler with a VaultConfig.

        Args:
            config: VaultConfig instance.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install 'receiptvault[scheduler]'"
            )

        self._config = config
        self._timezone = config.scheduler.timezone
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._CronTrigger = CronTrigger
        self._running = False

    def setup_jobs(self) -> None:
        """Register scheduled jobs based on config."""
        trigger = self._parse_cron(self._config.exchange.schedule)
        self._scheduler.add_job(
            self._job_sync_rates,
            trigger=trigger,
            id="sync_exchange_rates",
            name="Exchange rate sync",
            replace_existing=True,
        )
        logger.info("Registered exchange rate job: %s", self._config.exchange.schedule)

        trigger = self._parse_cron(self._config.insights.schedule)
        self._scheduler.add_job(
            self._job_generate_insights,
            trigger=trigger,
            id="generate_insights",
            name="Weekly spending insights",
            replace_existing=True,
        )
        logger.info("Registered insights job: %s", self._config.insights.schedule)

    def start(self) -> None:
        """Start the scheduler."""
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started (%s)", self._timezone)

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
                timezone=self._timezone,
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    async def _job_sync_rates(self) -> None:
        """Snapshot the configured exchange rates into the store."""
        logger.info("Running exchange rate sync...")

        try:
            from .db import ExchangeRateDB
            from .exchange import rates_from_config, sync_exchange_rates

            db = ExchangeRateDB(self._config.database.path)
            try:
                sync_exchange_rates(db, rates_from_config(self._config.exchange.rates))
            finally:
                db.close()
        except Exception:
            logger.exception("Exchange rate sync job failed")

    async def _job_generate_insights(self) -> None:
        """Generate spending insights for every user."""
        logger.info("Running insights generation...")

        try:
            from .db import InsightDB, ReceiptDB
            from .insights import generate_insights

            receipt_db = ReceiptDB(self._config.database.path)
            insight_db = InsightDB(self._config.database.path)
            try:
                insights = generate_insights(
                    receipt_db, insight_db, days=self._config.insights.days
                )
                logger.info("Insights generation completed: %d users", len(insights))
            finally:
                receipt_db.close()
                insight_db.close()
        except Exception:
            logger.exception("Insights generation job failed")
