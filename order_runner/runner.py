# order_runner/runner.py
import asyncio
import logging
import random
from typing import Dict, Optional

from .config import BotConfig
from .logger import AsyncAuditLogger
from .market_engine import SnapshotClient
from .session import SleepFn
from .strategy import MarketStrategy


class OrderRunner:
    """
    Driver loop. Each iteration fetches a snapshot and steps every eligible
    market in index order, one at a time.

    Failures are isolated per market and per iteration: they are logged and the
    loop carries on with the next market or the next scheduled pass.
    """
    def __init__(self, config: BotConfig, client: SnapshotClient, logger: logging.Logger,
                 rng: Optional[random.Random] = None, sleep: SleepFn = asyncio.sleep,
                 audit_log: Optional[AsyncAuditLogger] = None):
        self.config = config
        self.client = client
        self.logger = logger
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.audit_log = audit_log
        self.strategy = MarketStrategy(client, config, logger, self.rng, sleep=sleep)
        # market index -> drift in bps; lives as long as the process
        self.drift_by_market: Dict[int, float] = {}
        self.loops = 0

    async def run(self):
        cfg = self.config
        while cfg.loops == 0 or self.loops < cfg.loops:
            try:
                await self.run_once()
            except Exception as e:
                self.logger.error(f"loop error: {e}")

            self.loops += 1
            await self.sleep(cfg.interval)

    async def run_once(self) -> int:
        """Steps every eligible market once. Returns how many markets were attempted."""
        snapshot = await self.client.fetch_snapshot()
        markets = sorted(
            (m for m in snapshot.markets if self.config.accepts_market(m.index)),
            key=lambda m: m.index,
        )
        if not markets:
            self.logger.info("No markets found in snapshot.")
            return 0

        for market in markets:
            try:
                summary = await self.strategy.run_market(market, self.drift_by_market)
            except Exception as e:
                self.logger.error(f"market step error: m{market.index}: {e}")
                continue

            self.logger.info(summary.format_line())
            if self.audit_log is not None:
                await self.audit_log.log_row(summary.as_row())

        if snapshot.warning:
            self.logger.warning(f"warning: {snapshot.warning}")
        return len(markets)
