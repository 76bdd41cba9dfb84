# order_runner/execution.py
import math
import random
from typing import Callable, Optional, Sequence, TypeVar

from .liquidity import LiquidityMaintainer
from .models import OrderView, Side, to_positive
from .pricing import estimate_max_quote
from .session import MarketSession

T = TypeVar("T")

TARGET_JITTER_BPS = 240
MIN_ATTEMPTS = 14
ATTEMPTS_PER_TRADE = 9


def select_by_weighted_window(rows: Sequence[T], distance: Callable[[T], float], window: int,
                              rng: random.Random) -> Optional[T]:
    """
    Ranks rows by distance and draws one of the closest `window` with linearly
    decreasing weights (window, window-1, ..., 1). Closer rows are likelier but
    never certain.
    """
    if not rows:
        return None
    ranked = sorted(rows, key=distance)
    pick_window = max(1, min(len(ranked), window))
    total_weight = pick_window * (pick_window + 1) / 2

    roll = rng.random() * total_weight
    for i in range(pick_window):
        roll -= pick_window - i
        if roll <= 0:
            return ranked[i]
    return ranked[pick_window - 1]


class TradeSelector:
    """
    Generates taker activity for one market: executes against resting orders near
    a jittered fair price, falls back to aggressive orders, and kicks the market
    when nothing traded.
    """
    def __init__(self, session: MarketSession, liquidity: LiquidityMaintainer):
        self.session = session
        self.liquidity = liquidity
        self.config = session.config

    def candidates(self) -> list:
        s = self.session
        return [
            order for order in s.market.orders
            if order.is_live and s.bounds.contains(order.price)
        ]

    async def take_resting_order(self) -> bool:
        """Executes against a resting order. Returns True when something filled."""
        s = self.session
        candidates = self.candidates()
        if not candidates:
            return False

        target_price = s.bounds.clamp(
            s.fair_mid * (1 + s.rng.randint(-TARGET_JITTER_BPS, TARGET_JITTER_BPS) / 10_000)
        )
        picked: Optional[OrderView] = select_by_weighted_window(
            candidates,
            lambda order: abs(order.price - target_price),
            self.config.take_pick_window,
            s.rng,
        )
        if picked is None:
            return False

        try:
            order_id = int(float(picked.id))
        except (ValueError, OverflowError):
            s.logger.debug(f"m{s.index} skipping order with non-numeric id {picked.id!r}")
            return False

        remaining = max(1, math.floor(picked.remaining))
        amount_base = max(1, min(remaining, math.floor(s.taker_amount_base * s.rng.uniform(0.45, 1.6))))
        taker_side = picked.side.opposite
        pick_price = picked.price or s.fair_mid
        actor_role = s.role_for(taker_side, amount_base, pick_price)

        # a stale order or a liquidity mismatch just means no execution this attempt
        outcome = await s.submit(
            f"execute #{order_id}",
            s.client.execute_order(s.index, order_id, actor_role, amount_base=amount_base),
        )
        result = outcome.result
        if result is None or not (result.executed or result.selected_affected):
            return False

        s.record_execution(taker_side, result, pick_price)
        return True

    def pick_taker_side(self) -> Side:
        buy_chance = 0.6 if self.session.drift >= 0 else 0.4
        return Side.BUY if self.session.rng.random() < buy_chance else Side.SELL

    async def trigger_aggressive(self, side: Side):
        """
        Sends a market-style order. Buys carry a max-quote guard sized off the
        highest of fair mid, mid and best ask. Returns the venue result when the
        order executed, else None.
        """
        s = self.session
        amount_base = max(1, math.floor(s.taker_amount_base * s.rng.uniform(0.65, 1.9)))
        max_quote_ref = max(s.fair_mid, s.mid, to_positive(s.market.best_ask))
        actor_role = s.role_for(side, amount_base, max_quote_ref)
        max_quote = estimate_max_quote(max_quote_ref, amount_base) if side is Side.BUY else None

        outcome = await s.submit(
            f"trigger {side.value}",
            s.client.trigger_order(s.index, side, amount_base, actor_role, max_quote=max_quote),
        )
        if outcome.result is None or not outcome.result.executed:
            return None
        return outcome.result

    async def run(self):
        """
        Attempt loop. Stops at the trade target or when the attempt budget is
        spent; trades are best effort.
        """
        s = self.session
        stats = s.stats
        stats.trades_target = s.rng.randint(self.config.trades_min, self.config.trades_max)
        max_attempts = max(MIN_ATTEMPTS, stats.trades_target * ATTEMPTS_PER_TRADE)
        attempts = 0
        refresh_counter = 0

        while stats.trades_done < stats.trades_target and attempts < max_attempts:
            attempts += 1
            refresh_counter += 1
            if attempts == 1 or refresh_counter >= 2:
                await s.refresh()
                refresh_counter = 0

            if self.liquidity.is_thin():
                await self.liquidity.replenish_book_if_thin()

            executed = await self.take_resting_order()

            if not executed:
                side = self.pick_taker_side()
                result = await self.trigger_aggressive(side)
                if result is not None:
                    s.record_execution(side, result, s.fair_mid)
                    executed = True

            if not executed and attempts % 4 == 0:
                side = Side.BUY if s.rng.random() < 0.5 else Side.SELL
                await self.liquidity.place_maker_order(side, s.rng.randint(1, 3))

            s.recompute_fair_mid()
            await s.pause(max(0.05, self.config.per_market_delay / 2))

    async def kick(self):
        """
        Guarantees visible activity for a market that traded nothing: one buy and
        one sell aggressive order, whether or not they execute.
        """
        s = self.session
        if s.stats.trades_done > 0:
            return
        for side in (Side.BUY, Side.SELL):
            await s.refresh()
            result = await self.trigger_aggressive(side)
            if result is not None:
                s.stats.kick_trades += 1
                s.record_execution(side, result, s.fair_mid, apply_impact=False)
            await s.pause(max(0.05, self.config.per_market_delay / 2))
