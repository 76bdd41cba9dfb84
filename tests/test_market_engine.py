"""Tests for the venue client against a local aiohttp server."""

import asyncio
import logging

import pytest
from aiohttp import web
from aiohttp import test_utils

from order_runner.config import BotConfig
from order_runner.market_engine import SnapshotClient, VenueApiError
from order_runner.models import Side

SNAPSHOT = {
    "updatedAt": "2026-10-17T00:00:00Z",
    "warning": "stale depth",
    "markets": [{
        "index": 0,
        "baseSymbol": "VARA",
        "quoteSymbol": "USDC",
        "bestBid": "0.00116",
        "bestAsk": "0.00117",
        "orders": [{"id": "7", "side": "Buy", "owner": "0x1", "priceQuotePerBase": "0.00116",
                    "remainingBase": "120", "reservedQuote": "1"}],
        "depth": {"bids": [{"priceQuotePerBase": "0.00116", "sizeBase": "120",
                            "totalBase": "120", "orders": 1}], "asks": []},
        "balances": [{"role": "quote-maker-0", "address": "0x1", "base": "0", "quote": "500"}],
        "recentActions": [{"ts": "1", "kind": "take", "status": "executed", "side": "sell",
                           "amountBase": 10, "executionPriceApprox": "0.00116"}],
    }],
}


def _with_venue(check):
    """Runs `check(client, received)` against a throwaway venue server."""
    received = []

    async def snapshot(request):
        return web.json_response(SNAPSHOT)

    async def command(request):
        body = await request.json()
        received.append((request.path, body))
        if body.get("orderId") == 404:
            return web.json_response({"ok": False, "error": "order not found"}, status=404)
        return web.json_response({"ok": True, "executed": True, "selectedAffected": True,
                                  "orderId": "55", "baseDelta": "-10", "quoteDelta": "0.0116"})

    async def scenario():
        app = web.Application()
        app.router.add_get("/api/snapshot", snapshot)
        for path in ("/api/submit-limit-order", "/api/trigger-order", "/api/execute-order"):
            app.router.add_post(path, command)
        server = test_utils.TestServer(app)
        await server.start_server()
        client = SnapshotClient(BotConfig(base_url=str(server.make_url("/"))), logging.getLogger("test"))
        try:
            await check(client, received)
        finally:
            await client.shutdown()
            await server.close()

    asyncio.run(scenario())


def test_fetch_snapshot_parses_markets():
    async def check(client, received):
        snapshot = await client.fetch_snapshot()
        assert snapshot.warning == "stale depth"
        market = snapshot.find_market(0)
        assert market.pair == "VARA/USDC"
        assert market.orders[0].side is Side.BUY
        assert market.orders[0].is_live
        assert market.depth.bids[0].orders == 1
        assert market.balances[0].role == "quote-maker-0"
        assert market.recent_actions[0].status == "executed"
        assert snapshot.find_market(9) is None
        assert await client.initialize() is True

    _with_venue(check)


def test_command_bodies():
    async def check(client, received):
        limit = await client.submit_limit_order(0, Side.BUY, 10, 0.00115, "quote-maker-1")
        await client.trigger_order(0, Side.SELL, 5, "base-maker-0")
        await client.trigger_order(0, Side.BUY, 5, "quote-maker-0", max_quote=2)
        result = await client.execute_order(0, 7, "base-maker-2", amount_base=3)

        assert limit.order_id == "55"
        assert result.executed and result.selected_affected
        assert received == [
            ("/api/submit-limit-order", {"market": 0, "side": "buy", "amountBase": 10,
                                         "priceQuotePerBase": 0.00115, "actorRole": "quote-maker-1"}),
            ("/api/trigger-order", {"market": 0, "side": "sell", "amountBase": 5,
                                    "actorRole": "base-maker-0"}),
            ("/api/trigger-order", {"market": 0, "side": "buy", "amountBase": 5,
                                    "actorRole": "quote-maker-0", "maxQuote": 2}),
            ("/api/execute-order", {"market": 0, "orderId": 7, "actorRole": "base-maker-2",
                                    "amountBase": 3}),
        ]

    _with_venue(check)


def test_non_2xx_raises_with_status_and_body():
    async def check(client, received):
        with pytest.raises(VenueApiError) as err:
            await client.execute_order(0, 404, "base-maker-0")
        assert err.value.status == 404
        assert err.value.body == {"ok": False, "error": "order not found"}
        assert "HTTP 404" in str(err.value)

    _with_venue(check)


def test_initialize_reports_unreachable_venue():
    async def scenario():
        client = SnapshotClient(BotConfig(base_url="http://127.0.0.1:9", network_timeout_ms=1000),
                                logging.getLogger("test"))
        try:
            return await client.initialize()
        finally:
            await client.shutdown()

    assert asyncio.run(scenario()) is False
