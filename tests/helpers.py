"""Test doubles for the venue API, sleeps and randomness."""

from __future__ import annotations

import dataclasses
import random

import aiohttp

from order_runner.market_engine import VenueApiError
from order_runner.models import (
    MarketView,
    OrderResult,
    OrderView,
    Snapshot,
)


class ScriptedRandom(random.Random):
    """random() replays a fixed script; everything else is a seeded Random."""

    def __init__(self, script, seed=1):
        super().__init__(seed)
        self.script = list(script)

    def random(self):
        return self.script.pop(0)

    def getrandbits(self, k):
        # keeps randint/randrange off the script
        return super().getrandbits(k)


class FakeVenue:
    """
    Minimal stand-in for the venue API. Limit orders rest on the book, execute-order
    fills against them, trigger-order fills only when `trigger_fills` is set.
    """

    def __init__(self, markets, trigger_fills=False, fail_limit=False, fail_execute=False,
                 fail_trigger=False, fail_snapshot=False):
        self.markets = {m.index: m for m in markets}
        self.trigger_fills = trigger_fills
        self.fail_limit = fail_limit
        self.fail_execute = fail_execute
        self.fail_trigger = fail_trigger
        self.fail_snapshot = fail_snapshot
        self.calls = []
        self._next_id = 1000
        self.warning = None

    def calls_named(self, name):
        return [kwargs for call, kwargs in self.calls if call == name]

    @property
    def call_names(self):
        return [call for call, _ in self.calls]

    async def fetch_snapshot(self):
        self.calls.append(("snapshot", {}))
        if self.fail_snapshot:
            raise aiohttp.ClientConnectionError("venue down")
        markets = [dataclasses.replace(m, orders=list(m.orders)) for m in self.markets.values()]
        return Snapshot(updated_at="now", markets=markets, warning=self.warning)

    async def submit_limit_order(self, market, side, amount_base, price_quote_per_base, actor_role):
        self.calls.append(("limit", dict(market=market, side=side, amount_base=amount_base,
                                         price=price_quote_per_base, actor_role=actor_role)))
        if self.fail_limit:
            raise VenueApiError(400, {"ok": False, "error": "insufficient balance"})
        self._next_id += 1
        self.markets[market].orders.append(OrderView(
            id=str(self._next_id),
            side=side,
            owner=actor_role,
            price_quote_per_base=repr(price_quote_per_base),
            remaining_base=str(amount_base),
        ))
        return OrderResult(ok=True, order_id=str(self._next_id))

    async def execute_order(self, market, order_id, actor_role, amount_base=None):
        self.calls.append(("execute", dict(market=market, order_id=order_id,
                                           actor_role=actor_role, amount_base=amount_base)))
        if self.fail_execute:
            raise VenueApiError(409, {"ok": False, "error": "order not found"})
        book = self.markets[market].orders
        order = next((o for o in book if o.id == str(order_id)), None)
        if order is None:
            raise VenueApiError(404, {"ok": False, "error": "order not found"})
        fill = min(amount_base or order.remaining, order.remaining)
        left = order.remaining - fill
        book.remove(order)
        if left >= 1:
            book.append(dataclasses.replace(order, remaining_base=str(left)))
        return OrderResult(ok=True, executed=True, selected_affected=True,
                           base_delta=str(fill), quote_delta=str(fill * order.price))

    async def trigger_order(self, market, side, amount_base, actor_role, max_quote=None):
        self.calls.append(("trigger", dict(market=market, side=side, amount_base=amount_base,
                                           actor_role=actor_role, max_quote=max_quote)))
        if self.fail_trigger:
            raise aiohttp.ClientConnectionError("connection reset")
        if not self.trigger_fills:
            return OrderResult(ok=True, executed=False)
        return OrderResult(ok=True, executed=True, base_delta=str(amount_base),
                           quote_delta=str(amount_base * 2))


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def make_market(index=0, base="VARA", quote="USDC", bid="0", ask="0", orders=None, balances=None):
    return MarketView(
        index=index,
        best_bid=bid,
        best_ask=ask,
        base_symbol=base,
        quote_symbol=quote,
        orders=list(orders or []),
        balances=list(balances or []),
    )


def make_order(order_id, side, price, remaining="100"):
    return OrderView(
        id=str(order_id),
        side=side,
        owner="0xabc",
        price_quote_per_base=str(price),
        remaining_base=str(remaining),
    )


