# order_runner/market_engine.py
import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from .config import BotConfig
from .models import OrderResult, Side, Snapshot


class VenueApiError(Exception):
    """Non-2xx answer from the venue. Carries the status code and the parsed body."""
    def __init__(self, status: int, body: Any):
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}: {json.dumps(body) if not isinstance(body, str) else body}")


class SnapshotClient:
    """
    Thin wrapper around the venue's JSON command API.
    Stateless apart from the HTTP session; every call is a single request/response.
    """
    def __init__(self, config: BotConfig, logger: logging.Logger,
                 session: Optional[aiohttp.ClientSession] = None):
        self.base_url = config.base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=config.network_timeout_ms / 1000)
        self.logger = logger
        self._session = session
        self._owns_session = session is None

    async def initialize(self) -> bool:
        """
        Connectivity check against the snapshot endpoint.
        Returns False instead of raising; the runner still starts and retries every loop.
        """
        self.logger.info(f"📡 TESTING VENUE CONNECTION: {self.base_url}")
        try:
            snapshot = await self.fetch_snapshot()
        except VenueApiError as e:
            self.logger.error(f"   ❌ VENUE REJECTED SNAPSHOT: {e}")
            return False
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.logger.error(f"   ❌ VENUE UNREACHABLE: {e!r}")
            return False

        self.logger.info(f"   ✅ VENUE OK | markets: {len(snapshot.markets)} | updated: {snapshot.updated_at}")
        return True

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"content-type": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        session = self._get_session()
        async with session.request(method, f"{self.base_url}{path}", json=payload) as response:
            text = await response.text()
            try:
                body = json.loads(text) if text else {}
            except ValueError:
                body = text
            if response.status < 200 or response.status >= 300:
                raise VenueApiError(response.status, body)
            if not isinstance(body, dict):
                raise ValueError(f"unexpected response from {path}: {text[:200]}")
            return body

    async def fetch_snapshot(self) -> Snapshot:
        return Snapshot.from_dict(await self._request("GET", "/api/snapshot"))

    async def submit_limit_order(self, market: int, side: Side, amount_base: int,
                                 price_quote_per_base: float, actor_role: str) -> OrderResult:
        body = await self._request("POST", "/api/submit-limit-order", {
            "market": market,
            "side": side.value,
            "amountBase": amount_base,
            "priceQuotePerBase": price_quote_per_base,
            "actorRole": actor_role,
        })
        return OrderResult.from_dict(body)

    async def trigger_order(self, market: int, side: Side, amount_base: int, actor_role: str,
                            max_quote: Optional[int] = None) -> OrderResult:
        payload: Dict[str, Any] = {
            "market": market,
            "side": side.value,
            "amountBase": amount_base,
            "actorRole": actor_role,
        }
        if max_quote is not None:
            payload["maxQuote"] = max_quote
        return OrderResult.from_dict(await self._request("POST", "/api/trigger-order", payload))

    async def execute_order(self, market: int, order_id: int, actor_role: str,
                            amount_base: Optional[int] = None) -> OrderResult:
        payload: Dict[str, Any] = {
            "market": market,
            "orderId": order_id,
            "actorRole": actor_role,
        }
        if amount_base is not None:
            payload["amountBase"] = amount_base
        return OrderResult.from_dict(await self._request("POST", "/api/execute-order", payload))

    async def shutdown(self):
        """
        Closes the HTTP session if this client created it.
        """
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
