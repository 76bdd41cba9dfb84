# main.py
import argparse
import asyncio
import random
import sys

import questionary
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from order_runner.config import DEFAULT_CONFIG_PATH, BotConfig, load_config
from order_runner.logger import SUMMARY_HEADER, AsyncAuditLogger, setup_console_logger
from order_runner.market_engine import SnapshotClient
from order_runner.pricing import estimate_mid
from order_runner.reporting import format_price_adaptive
from order_runner.runner import OrderRunner

# --- UI HELPER FUNCTIONS ---

def render_banner(config: BotConfig) -> Panel:
    """Startup panel with the effective settings."""
    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Venue", config.base_url)
    table.add_row("Interval", f"{config.interval_ms}ms")
    table.add_row("Per-market delay", f"{config.per_market_delay_ms}ms")
    table.add_row("Maker offset", f"{config.maker_offset_bps:g} bps x {config.maker_levels} levels")
    table.add_row("Trades / market", f"{config.trades_min}-{config.trades_max}")
    table.add_row("Markets filter", ",".join(str(m) for m in sorted(config.markets)) or "all")
    table.add_row("Loops", str(config.loops) if config.loops else "forever")
    return Panel(table, title="Order runner", subtitle="Press Ctrl+C to stop.")


async def select_markets(config: BotConfig, logger) -> frozenset:
    """Interactive picker over the markets in the current snapshot."""
    client = SnapshotClient(config, logger)
    try:
        snapshot = await client.fetch_snapshot()
    finally:
        await client.shutdown()

    choices = [
        questionary.Choice(
            f"m{m.index} {m.pair} (mid ~{format_price_adaptive(estimate_mid(m))})",
            value=m.index,
            checked=config.accepts_market(m.index),
        )
        for m in sorted(snapshot.markets, key=lambda m: m.index)
    ]
    if not choices:
        print("No markets found in snapshot. Running with the configured filter.")
        return config.markets

    picked = await questionary.checkbox("Select markets to keep alive:", choices=choices).ask_async()
    if not picked:
        print("No markets selected. Exiting.")
        sys.exit()
    return frozenset(picked)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Keeps an order-book venue busy with maker and taker flow.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="YAML config file (optional)")
    parser.add_argument("--loops", type=int, help="stop after N iterations (0 = forever)")
    parser.add_argument("--markets", help="comma separated market indices")
    parser.add_argument("--interactive", action="store_true", help="pick markets from the live snapshot")
    parser.add_argument("--seed", type=int, help="seed for reproducible runs")
    return parser.parse_args(argv)

# --- MAIN CONTROLLER ---

async def run_bot(config: BotConfig, seed=None):
    logger = setup_console_logger("OrderRunner", config.log_level)
    client = SnapshotClient(config, logger)
    audit_log = AsyncAuditLogger(config.audit_log, header=SUMMARY_HEADER) if config.audit_log else None

    try:
        if audit_log is not None:
            await audit_log.start()
        if not await client.initialize():
            logger.warning("Venue not reachable yet, will keep retrying every loop.")

        runner = OrderRunner(config, client, logger, rng=random.Random(seed), audit_log=audit_log)
        await runner.run()
    finally:
        if audit_log is not None:
            await audit_log.stop()
        await client.shutdown()


def main(argv=None) -> int:
    args = parse_args(argv)
    config = load_config(args.config, loops=args.loops, markets=args.markets)

    try:
        import uvloop
        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
    except ImportError:
        pass

    try:
        if args.interactive:
            bootstrap_logger = setup_console_logger("OrderRunner", config.log_level)
            markets = asyncio.run(select_markets(config, bootstrap_logger))
            config = load_config(args.config, loops=args.loops, markets=",".join(str(m) for m in markets))

        Console().print(render_banner(config))
        asyncio.run(run_bot(config, seed=args.seed))
    except KeyboardInterrupt:
        print("\nOrder runner stopped by user.")
        return 0
    except Exception as e:
        print(f"fatal: {e!r}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
