"""TOML configuration loader for receiptvault."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class ClaudeOCRConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiOCRConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class TesseractOCRConfig:
    lang: str = "ara+eng"
    config: str = "--oem 1 --psm 6"


@dataclass
class OCRConfig:
    backend: str = "tesseract"
    accept_threshold: float = 0.8
    claude: ClaudeOCRConfig = field(default_factory=ClaudeOCRConfig)
    gemini: GeminiOCRConfig = field(default_factory=GeminiOCRConfig)
    tesseract: TesseractOCRConfig = field(default_factory=TesseractOCRConfig)


@dataclass
class DatabaseConfig:
    path: str = "~/.config/receiptvault/vault.db"


@dataclass
class PricingConfig:
    history_limit: int = 30
    trend_threshold: float = 0.05
    max_retries: int = 5


@dataclass
class RateConfig:
    source: str
    rate_type: str = "mid"
    usd_to_lbp: float = 89500.0


@dataclass
class ExchangeConfig:
    schedule: str = "0 * * * *"
    rates: list[RateConfig] = field(default_factory=lambda: [
        RateConfig(source="black_market"),
        RateConfig(source="sayrafa"),
    ])


@dataclass
class InsightsConfig:
    schedule: str = "0 8 * * 1"
    days: int = 7


@dataclass
class SchedulerConfig:
    timezone: str = "Asia/Beirut"


@dataclass
class VaultConfig:
    ocr: OCRConfig = field(default_factory=OCRConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    insights: InsightsConfig = field(default_factory=InsightsConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)


def load_config(path: str | Path | None = None) -> VaultConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    ocr = raw.get("ocr", {})
    dbs = raw.get("database", {})
    prc = raw.get("pricing", {})
    exc = raw.get("exchange", {})
    ins = raw.get("insights", {})
    sch = raw.get("scheduler", {})

    claude_cfg = ocr.get("claude", {})
    gemini_cfg = ocr.get("gemini", {})
    tesseract_cfg = ocr.get("tesseract", {})

    # Resolve API keys: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )

    if "rates" in exc:
        rates = [
            RateConfig(
                source=r["source"],
                rate_type=r.get("rate_type", "mid"),
                usd_to_lbp=float(r.get("usd_to_lbp", 89500.0)),
            )
            for r in exc["rates"]
        ]
    else:
        rates = ExchangeConfig().rates

    return VaultConfig(
        ocr=OCRConfig(
            backend=ocr.get("backend", "tesseract"),
            accept_threshold=ocr.get("accept_threshold", 0.8),
            claude=ClaudeOCRConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
            gemini=GeminiOCRConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.0-flash"),
            ),
            tesseract=TesseractOCRConfig(
                lang=tesseract_cfg.get("lang", "ara+eng"),
                config=tesseract_cfg.get("config", "--oem 1 --psm 6"),
            ),
        ),
        database=DatabaseConfig(
            path=dbs.get("path", "~/.config/receiptvault/vault.db"),
        ),
        pricing=PricingConfig(
            history_limit=prc.get("history_limit", 30),
            trend_threshold=prc.get("trend_threshold", 0.05),
            max_retries=prc.get("max_retries", 5),
        ),
        exchange=ExchangeConfig(
            schedule=exc.get("schedule", "0 * * * *"),
            rates=rates,
        ),
        insights=InsightsConfig(
            schedule=ins.get("schedule", "0 8 * * 1"),
            days=ins.get("days", 7),
        ),
        scheduler=SchedulerConfig(
            timezone=sch.get("timezone", "Asia/Beirut"),
        ),
    )
