"""CLI entry point for receiptvault."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

from .config import load_config
from .extraction import parse_receipt


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="receiptvault",
        description="Receipt extraction and cross-store price tracking",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # parse
    parse_parser = sub.add_parser("parse", help="Parse OCR text from a file")
    parse_parser.add_argument("text_file", type=str, help="Text file ('-' for stdin)")

    # scan
    scan_parser = sub.add_parser("scan", help="OCR a receipt image and parse it")
    scan_parser.add_argument("image", type=str, help="Receipt image")
    scan_parser.add_argument("--user", type=str, default=None, help="Save for this user")
    scan_parser.add_argument("--json", action="store_true", help="Output JSON")

    # price
    price_parser = sub.add_parser("price", help="Record a price observation")
    price_parser.add_argument("product_id", type=str)
    price_parser.add_argument("store_id", type=str)
    price_parser.add_argument("price", type=float)
    price_parser.add_argument(
        "--currency", choices=["LBP", "USD"], default="LBP", help="Price currency"
    )
    price_parser.add_argument(
        "--at", type=str, default=None, metavar="ISO_TIME",
        help="Observation time (default: now)",
    )

    # index
    index_parser = sub.add_parser("index", help="Show a product's price index")
    index_parser.add_argument("product_id", type=str)

    # rates
    sub.add_parser("rates", help="Sync exchange rates from the configuration")

    # insights
    insights_parser = sub.add_parser("insights", help="Generate spending insights now")
    insights_parser.add_argument("--days", type=int, default=None)

    # serve
    sub.add_parser("serve", help="Run the job scheduler")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    load_dotenv()

    config = load_config(args.config)

    try:
        match args.command:
            case "parse":
                _cmd_parse(args)
            case "scan":
                asyncio.run(_cmd_scan(config, args))
            case "price":
                asyncio.run(_cmd_price(config, args))
            case "index":
                _cmd_index(config, args)
            case "rates":
                _cmd_rates(config)
            case "insights":
                _cmd_insights(config, args)
            case "serve":
                asyncio.run(_cmd_serve(config))
    except (ValueError, ImportError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _cmd_parse(args) -> None:
    if args.text_file == "-":
        text = sys.stdin.read()
    else:
        text = Path(args.text_file).read_text(encoding="utf-8")
    _print_json(parse_receipt(text).to_dict())


async def _cmd_scan(config, args) -> None:
    from .ocr import create_backend

    backend = create_backend(config)

    if args.user is None:
        result = await backend.recognize(args.image)
        receipt = parse_receipt(result.text, result)
        _print_json(receipt.to_dict())
        return

    from .db import ReceiptDB
    from .processing import ReceiptProcessor

    db = ReceiptDB(config.database.path)
    try:
        processor = ReceiptProcessor(
            backend, db, accept_threshold=config.ocr.accept_threshold
        )
        processed = await processor.process(args.image, args.user)
    finally:
        db.close()

    if args.json:
        _print_json({
            "receiptId": processed.receipt_id,
            "status": processed.status,
            "data": processed.receipt.to_dict(),
        })
    else:
        r = processed.receipt
        print(f"Receipt {processed.receipt_id} [{processed.status}]")
        print(f"  Store:      {r.store_name or '-'}")
        print(f"  Date:       {r.date or '-'}")
        total = f"{r.total:,.2f} {r.currency}" if r.total is not None else "-"
        print(f"  Total:      {total}")
        print(f"  Confidence: {r.confidence:.0%}")


async def _cmd_price(config, args) -> None:
    from .db import PriceIndexDB
    from .pricing import PriceIndexService, PriceObservation

    recorded_at = (
        datetime.fromisoformat(args.at) if args.at else datetime.now(timezone.utc)
    )
    observation = PriceObservation(
        store_id=args.store_id,
        price=args.price,
        currency=args.currency,
        recorded_at=recorded_at,
    )

    db = PriceIndexDB(config.database.path)
    try:
        service = PriceIndexService(
            db,
            history_limit=config.pricing.history_limit,
            trend_threshold=config.pricing.trend_threshold,
            max_retries=config.pricing.max_retries,
        )
        entry = await service.record(args.product_id, observation)
    finally:
        db.close()

    store = entry.stores[args.store_id]
    low = entry.lowest_price
    print(f"{args.product_id} @ {args.store_id}: {store.current_price} {store.currency} ({store.trend})")
    print(f"  Lowest:  {low.price} {low.currency} at {low.store_id}")
    print(f"  Average: {entry.average_price:.2f}")


def _cmd_index(config, args) -> None:
    from .db import PriceIndexDB

    db = PriceIndexDB(config.database.path)
    try:
        entry = db.get(args.product_id)
    finally:
        db.close()

    if entry is None:
        print(f"No price index for {args.product_id}", file=sys.stderr)
        sys.exit(1)
    _print_json(entry.to_dict())


def _cmd_rates(config) -> None:
    from .db import ExchangeRateDB
    from .exchange import rates_from_config, sync_exchange_rates

    db = ExchangeRateDB(config.database.path)
    try:
        ids = sync_exchange_rates(db, rates_from_config(config.exchange.rates))
    finally:
        db.close()
    print(f"Synced {len(ids)} exchange rates")


def _cmd_insights(config, args) -> None:
    from .db import InsightDB, ReceiptDB
    from .insights import generate_insights

    receipt_db = ReceiptDB(config.database.path)
    insight_db = InsightDB(config.database.path)
    try:
        insights = generate_insights(
            receipt_db, insight_db, days=args.days or config.insights.days
        )
    finally:
        receipt_db.close()
        insight_db.close()

    for i in insights:
        print(
            f"{i.user_id} {i.period}: {i.receipt_count} receipts, "
            f"{i.total_spent_lbp:,.0f} LBP / {i.total_spent_usd:,.2f} USD ({i.direction})"
        )


async def _cmd_serve(config) -> None:
    from .scheduler import VaultScheduler

    scheduler = VaultScheduler(config)
    scheduler.start()
    for job in scheduler.get_jobs():
        print(f"  {job['id']}: next run {job['next_run']}")
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
