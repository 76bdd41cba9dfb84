# order_runner/strategy.py
import asyncio
import logging
import random
from typing import Dict

from .config import BotConfig
from .execution import TradeSelector
from .liquidity import LiquidityMaintainer
from .market_engine import SnapshotClient
from .models import MarketView
from .reporting import MarketSummary, build_summary
from .session import MarketSession, SleepFn

POST_STEP_SETTLE_SECONDS = 0.08


class MarketStrategy:
    """
    Runs one market through a full step:

    1. update drift and derive the fair mid,
    2. seed a maker ladder on both sides and replenish a thin book,
    3. run the taker attempt loop, kicking the market if nothing traded,
    4. read the book back and build the summary line.
    """
    def __init__(self, client: SnapshotClient, config: BotConfig, logger: logging.Logger,
                 rng: random.Random, sleep: SleepFn = asyncio.sleep):
        self.client = client
        self.config = config
        self.logger = logger
        self.rng = rng
        self.sleep = sleep

    async def run_market(self, market: MarketView, drift_by_market: Dict[int, float]) -> MarketSummary:
        session = MarketSession(self.client, self.config, self.logger, self.rng,
                                drift_by_market, market, sleep=self.sleep)
        liquidity = LiquidityMaintainer(session)
        trades = TradeSelector(session, liquidity)

        await liquidity.seed_ladder()
        await session.pause(self.config.per_market_delay)
        await session.refresh()
        await liquidity.replenish_book_if_thin()

        await trades.run()
        await trades.kick()

        await session.pause(POST_STEP_SETTLE_SECONDS)
        # an error here is left to the market tier in the runner
        post_snapshot = await self.client.fetch_snapshot()
        post_market = post_snapshot.find_market(market.index) or market

        if session.stats.rejected:
            self.logger.debug(f"m{market.index} {session.stats.rejected} submissions rejected this step")

        return build_summary(
            index=market.index,
            pair=session.pair,
            fair_mid=session.fair_mid,
            drift=session.drift,
            stats=session.stats,
            actions=post_market.recent_actions,
            best_bid=post_market.best_bid,
            best_ask=post_market.best_ask,
            chart_width=self.config.chart_width,
        )
