# order_runner/session.py
import asyncio
import logging
import math
import random
from typing import Awaitable, Callable, Dict

import aiohttp

from .config import BotConfig
from .inventory import RoleRotation
from .market_engine import SnapshotClient, VenueApiError
from .models import MarketView, OrderResult, Side, StepStats, SubmissionOutcome
from .pricing import (
    derive_execution_price,
    estimate_mid,
    fair_mid,
    nudge_drift,
    pick_amount_base,
    price_bounds_for_reference,
    update_drift,
)

SleepFn = Callable[[float], Awaitable[None]]

# Errors a single submission may raise that only cost us this attempt.
SUBMISSION_ERRORS = (VenueApiError, aiohttp.ClientError, asyncio.TimeoutError, ValueError)


class MarketSession:
    """
    Working state of one market for one loop iteration.

    Holds the latest market view, the price model for this iteration (mid, bounds,
    drift, fair mid), sizing, the role rotation and the step counters. The drift map
    is owned by the runner; the session reads the previous value from it and writes
    every change back.
    """
    def __init__(self, client: SnapshotClient, config: BotConfig, logger: logging.Logger,
                 rng: random.Random, drift_by_market: Dict[int, float], market: MarketView,
                 sleep: SleepFn = asyncio.sleep):
        self.client = client
        self.config = config
        self.logger = logger
        self.rng = rng
        self.sleep = sleep
        self.drift_by_market = drift_by_market
        self.index = market.index
        self.pair = market.pair
        self.market = market

        self.mid = estimate_mid(market)
        self.bounds = price_bounds_for_reference(self.mid)
        self.drift = update_drift(drift_by_market.get(self.index, 0.0), rng,
                                  config.drift_step_bps, config.drift_max_bps)
        drift_by_market[self.index] = self.drift
        self.fair_mid = fair_mid(self.mid, self.drift, self.bounds)

        self.taker_amount_base = pick_amount_base(self.fair_mid)
        self.maker_amount_base = max(1, math.floor(self.taker_amount_base * rng.uniform(0.35, 0.75)))
        self.roles = RoleRotation(rng.randint(0, 10_000), config.role_slots)
        self.stats = StepStats()

    # --- suspension points ---

    async def pause(self, seconds: float):
        await self.sleep(seconds)

    async def refresh(self) -> MarketView:
        """
        Re-reads this market from a fresh snapshot. On any failure the previous
        view is kept.
        """
        try:
            snapshot = await self.client.fetch_snapshot()
        except Exception as e:
            self.logger.debug(f"m{self.index} refresh failed, keeping previous view: {e!r}")
            return self.market
        self.market = snapshot.find_market(self.index) or self.market
        return self.market

    async def submit(self, action: str, call: Awaitable[OrderResult]) -> SubmissionOutcome:
        """
        Order tier boundary: a rejected or failed submission becomes an outcome with
        an error and the caller moves on to its next fallback.
        """
        try:
            result = await call
        except SUBMISSION_ERRORS as e:
            self.stats.rejected += 1
            self.logger.debug(f"m{self.index} {action} skipped: {e}")
            return SubmissionOutcome(error=str(e) or repr(e))
        return SubmissionOutcome(result=result)

    # --- price model ---

    def recompute_fair_mid(self) -> float:
        self.fair_mid = fair_mid(self.mid, self.drift, self.bounds)
        return self.fair_mid

    def record_execution(self, side: Side, result: OrderResult, reference_price: float,
                         apply_impact: bool = True):
        """Counts a trade, stores its realized price and applies price impact to drift."""
        self.stats.trades_done += 1
        realized = derive_execution_price(result.base_delta, result.quote_delta)
        self.stats.last_exec_price = realized if realized is not None else reference_price
        if apply_impact:
            self.drift = nudge_drift(self.drift, side, self.rng, self.config.drift_max_bps)
            self.drift_by_market[self.index] = self.drift

    def role_for(self, side: Side, amount_base: float, price: float) -> str:
        return self.roles.next_role(self.market.balances, side, amount_base, price)
