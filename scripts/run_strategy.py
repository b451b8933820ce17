#!/usr/bin/env python3
"""Run a strategy config against a recorded block/price feed.

Usage:
    python -m scripts.run_strategy --strategy configs/ema_threshold.yaml --prices prices.jsonl
    python -m scripts.run_strategy --strategy s.json --prices prices.jsonl --max-blocks 100

Price feed format (JSONL):
    {"block": 17000000, "price": 1834.25}

Trade intents are logged, not executed. Prints a run summary on stdout.

Exit codes:
    0 - success
    1 - driver or feed failure
    2 - invalid strategy config
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from poolbot.driver import BackoffConfig, BlockDriver, LoggingExecutor, ReplayFeed
from poolbot.logging_config import setup_logging
from poolbot.settings import BotSettings
from poolbot.strategy import ConfigError, load_strategy

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a strategy over a recorded price feed")
    parser.add_argument(
        "--strategy",
        type=Path,
        required=True,
        help="Path to strategy config (.yaml, .yml or .json)",
    )
    parser.add_argument(
        "--prices",
        type=Path,
        required=True,
        help="Path to block/price JSONL feed",
    )
    parser.add_argument(
        "--max-blocks",
        type=int,
        default=None,
        help="Stop after N evaluated blocks (default: whole feed)",
    )
    parser.add_argument(
        "--poll-interval-ms",
        type=int,
        default=None,
        help="Wait between polls when no new block is seen (default: POOLBOT_POLL_INTERVAL_MS)",
    )
    parser.add_argument(
        "--pool",
        type=str,
        default="",
        help="Pool label for log lines",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging (one line per evaluated block)",
    )
    parser.add_argument(
        "--text-logs",
        action="store_true",
        help="Readable text log lines instead of JSON (overrides POOLBOT_JSON_LOGS)",
    )
    return parser


def setup_signal_handlers(driver: BlockDriver) -> dict[int, Any]:
    """
    Route SIGINT and SIGTERM to a graceful driver shutdown.

    The handler only sets the shutdown flag; the run loop exits after the
    current step.

    Args:
        driver: BlockDriver to stop.

    Returns:
        Previous handlers, keyed by signal number.
    """

    def signal_handler(sig: int, frame: object) -> None:
        logger.info("Received signal %s, initiating shutdown", signal.Signals(sig).name)
        driver.request_shutdown()

    previous: dict[int, Any] = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.getsignal(sig)
        signal.signal(sig, signal_handler)
    return previous


async def run(
    strategy_path: Path,
    prices_path: Path,
    *,
    max_blocks: int | None,
    poll_interval_ms: int,
    max_retries: int,
    pool: str = "",
) -> int:
    """Load config and feed, drive the strategy, print a summary.

    Returns:
        Exit code.
    """
    try:
        strategy = load_strategy(strategy_path)
    except ConfigError as e:
        logger.error("Invalid strategy config: %s", e)
        return 2

    try:
        feed = ReplayFeed.from_jsonl(prices_path)
    except (OSError, ValueError) as e:
        logger.error("Cannot load price feed: %s", e)
        return 1
    logger.info("Loaded price feed", extra={"records": len(feed)})

    executor = LoggingExecutor(pool=pool)
    driver = BlockDriver(
        strategy,
        feed,
        feed,
        executor,
        poll_interval_ms=poll_interval_ms,
        backoff_config=BackoffConfig(max_retries=max_retries),
    )

    previous_handlers = setup_signal_handlers(driver)
    try:
        stats = await driver.run(max_blocks=max_blocks)
    except Exception as e:
        logger.exception("Driver failed: %s", e)
        return 1
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    print(f"Blocks evaluated: {stats.blocks_evaluated}")
    print(f"Trades emitted:   {stats.trades_emitted} (buy={executor.buys}, sell={executor.sells})")
    print(f"Errors:           {stats.errors}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.max_blocks is not None and args.max_blocks <= 0:
        parser.error(f"--max-blocks must be > 0, got {args.max_blocks}")
    if args.poll_interval_ms is not None and args.poll_interval_ms < 0:
        parser.error(f"--poll-interval-ms must be >= 0, got {args.poll_interval_ms}")

    try:
        settings = BotSettings.from_env()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    level = logging.DEBUG if args.verbose else settings.log_level
    setup_logging(level=level, json_format=settings.json_logs and not args.text_logs)

    if not args.strategy.exists():
        logger.error("Strategy config not found: %s", args.strategy)
        return 2
    if not args.prices.exists():
        logger.error("Price feed not found: %s", args.prices)
        return 1

    return asyncio.run(
        run(
            args.strategy,
            args.prices,
            max_blocks=args.max_blocks,
            poll_interval_ms=(
                settings.poll_interval_ms
                if args.poll_interval_ms is None
                else args.poll_interval_ms
            ),
            max_retries=settings.max_retries,
            pool=args.pool,
        )
    )


if __name__ == "__main__":
    sys.exit(main())
