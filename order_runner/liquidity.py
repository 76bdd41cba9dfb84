# order_runner/liquidity.py
import math
from typing import NamedTuple

from .models import MarketView, Side
from .session import MarketSession

LEVEL_STEP_BPS = 18


class RestingCounts(NamedTuple):
    buy: int
    sell: int


def count_resting_orders(market: MarketView) -> RestingCounts:
    """
    Resting orders per side: the larger of the live enumerated orders and the
    order counts reported on aggregated depth levels. The two sources are not
    reconciled, so treat the result as an upper bound.
    """
    buy = sell = 0
    for order in market.orders:
        if not order.is_live:
            continue
        if order.side is Side.BUY:
            buy += 1
        else:
            sell += 1

    depth_buy = depth_sell = 0
    if market.depth is not None:
        depth_buy = sum(max(0, level.orders) for level in market.depth.bids)
        depth_sell = sum(max(0, level.orders) for level in market.depth.asks)

    return RestingCounts(buy=max(buy, depth_buy), sell=max(sell, depth_sell))


def missing_per_side(counts: RestingCounts, min_per_side: int) -> RestingCounts:
    return RestingCounts(
        buy=max(0, min_per_side - counts.buy),
        sell=max(0, min_per_side - counts.sell),
    )


class LiquidityMaintainer:
    """
    Keeps both sides of one market's book populated with maker orders laddered
    around the session's fair mid.
    """
    def __init__(self, session: MarketSession):
        self.session = session
        self.config = session.config

    def maker_price(self, side: Side, level: int) -> float:
        s = self.session
        offset = (self.config.maker_offset_bps + (level - 1) * LEVEL_STEP_BPS) / 10_000
        raw = s.fair_mid * (1 - offset) if side is Side.BUY else s.fair_mid * (1 + offset)
        return s.bounds.clamp(raw)

    async def place_maker_order(self, side: Side, level: int) -> bool:
        s = self.session
        price = self.maker_price(side, level)
        amount_base = max(1, math.floor(s.maker_amount_base * s.rng.uniform(0.7, 1.45)))
        actor_role = s.role_for(side, amount_base, price)

        outcome = await s.submit(
            f"maker {side.value} L{level}",
            s.client.submit_limit_order(s.index, side, amount_base, price, actor_role),
        )
        if outcome.succeeded:
            s.stats.makers_placed += 1
        else:
            s.stats.makers_failed += 1
        return outcome.succeeded

    async def seed_ladder(self):
        """One buy and one sell per level, each level further from fair mid."""
        for level in range(1, self.config.maker_levels + 1):
            for side in (Side.BUY, Side.SELL):
                await self.place_maker_order(side, level)

    def is_thin(self) -> bool:
        counts = count_resting_orders(self.session.market)
        half = math.ceil(self.config.min_resting_per_side / 2)
        return counts.buy < half or counts.sell < half

    async def replenish_book_if_thin(self):
        """
        Tops each side up to the minimum resting count, re-reading the book after
        every pass. Best effort: the book may still be thin once passes run out.
        """
        s = self.session
        for _ in range(self.config.replenish_max_passes):
            missing = missing_per_side(count_resting_orders(s.market), self.config.min_resting_per_side)
            if missing.buy == 0 and missing.sell == 0:
                return

            for i in range(missing.buy):
                await self.place_maker_order(Side.BUY, 1 + i // 2)
            for i in range(missing.sell):
                await self.place_maker_order(Side.SELL, 1 + i // 2)

            await s.pause(max(0.06, self.config.per_market_delay))
            await s.refresh()
