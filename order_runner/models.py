# order_runner/models.py
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


def to_num(value: Any) -> float:
    """Lenient numeric parse. Venue fields are decimal strings that may be empty."""
    try:
        n = float(value if value is not None else 0)
    except (TypeError, ValueError):
        return 0.0
    return n if math.isfinite(n) else 0.0


def to_positive(value: Any) -> float:
    n = to_num(value)
    return n if n > 0 else 0.0


class Side(Enum):
    """
    Order side as sent over the wire ('buy' / 'sell').
    The venue reports resting orders as 'Buy' / 'Sell', so parsing is case-insensitive.
    """
    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, raw: Any) -> "Side":
        return cls.BUY if str(raw).lower() == "buy" else cls.SELL

    @property
    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY


@dataclass(slots=True)
class OrderView:
    """A resting order as listed in the snapshot."""
    id: str
    side: Side
    owner: str
    price_quote_per_base: str
    remaining_base: str
    reserved_quote: str = "0"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "OrderView":
        return cls(
            id=str(raw.get("id", "")),
            side=Side.parse(raw.get("side")),
            owner=str(raw.get("owner", "")),
            price_quote_per_base=str(raw.get("priceQuotePerBase", "0")),
            remaining_base=str(raw.get("remainingBase", "0")),
            reserved_quote=str(raw.get("reservedQuote", "0")),
        )

    @property
    def price(self) -> float:
        return to_positive(self.price_quote_per_base)

    @property
    def remaining(self) -> float:
        return to_positive(self.remaining_base)

    @property
    def is_live(self) -> bool:
        return self.remaining >= 1


@dataclass(slots=True)
class DepthLevel:
    price_quote_per_base: str
    size_base: str
    total_base: str
    orders: int = 0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "DepthLevel":
        return cls(
            price_quote_per_base=str(raw.get("priceQuotePerBase", "0")),
            size_base=str(raw.get("sizeBase", "0")),
            total_base=str(raw.get("totalBase", "0")),
            orders=int(max(0.0, to_num(raw.get("orders")))),
        )


@dataclass(slots=True)
class BookDepth:
    bids: List[DepthLevel] = field(default_factory=list)
    asks: List[DepthLevel] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "BookDepth":
        return cls(
            bids=[DepthLevel.from_dict(x) for x in raw.get("bids") or []],
            asks=[DepthLevel.from_dict(x) for x in raw.get("asks") or []],
        )


@dataclass(slots=True)
class BalanceView:
    """Available balances for one logical actor role."""
    role: str
    address: str
    base: str
    quote: str

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "BalanceView":
        return cls(
            role=str(raw.get("role") or ""),
            address=str(raw.get("address") or ""),
            base=str(raw.get("base", "0")),
            quote=str(raw.get("quote", "0")),
        )


@dataclass(slots=True)
class ActionView:
    """Entry of the venue's append-only activity log."""
    ts: str
    kind: str
    status: str
    side: str
    amount_base: float
    base_delta: Optional[str] = None
    quote_delta: Optional[str] = None
    execution_price_approx: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ActionView":
        return cls(
            ts=str(raw.get("ts", "")),
            kind=str(raw.get("kind", "")),
            status=str(raw.get("status", "")),
            side=str(raw.get("side", "")),
            amount_base=to_num(raw.get("amountBase")),
            base_delta=raw.get("baseDelta"),
            quote_delta=raw.get("quoteDelta"),
            execution_price_approx=raw.get("executionPriceApprox"),
        )


@dataclass(slots=True)
class MarketView:
    """
    Point-in-time view of one market.
    Never mutated locally; a refresh replaces the whole object.
    """
    index: int
    best_bid: str = "0"
    best_ask: str = "0"
    base_symbol: Optional[str] = None
    quote_symbol: Optional[str] = None
    orders: List[OrderView] = field(default_factory=list)
    depth: Optional[BookDepth] = None
    balances: List[BalanceView] = field(default_factory=list)
    recent_actions: List[ActionView] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "MarketView":
        depth = raw.get("depth")
        return cls(
            index=int(to_num(raw.get("index"))),
            best_bid=str(raw.get("bestBid") or "0"),
            best_ask=str(raw.get("bestAsk") or "0"),
            base_symbol=raw.get("baseSymbol"),
            quote_symbol=raw.get("quoteSymbol"),
            orders=[OrderView.from_dict(x) for x in raw.get("orders") or []],
            depth=BookDepth.from_dict(depth) if isinstance(depth, dict) else None,
            balances=[BalanceView.from_dict(x) for x in raw.get("balances") or []],
            recent_actions=[ActionView.from_dict(x) for x in raw.get("recentActions") or []],
        )

    @property
    def pair(self) -> str:
        base = (self.base_symbol or "BASE").upper()
        quote = (self.quote_symbol or "QUOTE").upper()
        return f"{base}/{quote}"


@dataclass(slots=True)
class Snapshot:
    updated_at: str
    markets: List[MarketView] = field(default_factory=list)
    warning: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Snapshot":
        return cls(
            updated_at=str(raw.get("updatedAt", "")),
            markets=[MarketView.from_dict(x) for x in raw.get("markets") or []],
            warning=raw.get("warning") or None,
        )

    def find_market(self, index: int) -> Optional[MarketView]:
        for market in self.markets:
            if market.index == index:
                return market
        return None


@dataclass(slots=True)
class OrderResult:
    """
    Response body shared by submit-limit-order, trigger-order and execute-order.
    """
    ok: bool
    executed: bool = False
    selected_affected: bool = False
    order_id: Optional[str] = None
    base_delta: Optional[str] = None
    quote_delta: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "OrderResult":
        order_id = raw.get("orderId", raw.get("takerOrderId"))
        return cls(
            ok=bool(raw.get("ok", False)),
            executed=bool(raw.get("executed", False)),
            selected_affected=bool(raw.get("selectedAffected", False)),
            order_id=str(order_id) if order_id is not None else None,
            base_delta=raw.get("baseDelta"),
            quote_delta=raw.get("quoteDelta"),
            error=raw.get("error"),
        )


@dataclass(slots=True)
class SubmissionOutcome:
    """
    Result of one order submission at the order tier: either a venue result or the
    error that was swallowed. Callers never see the exception itself.
    """
    result: Optional[OrderResult] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


@dataclass(slots=True)
class StepStats:
    """Counters for one market step, reported in the summary line."""
    makers_placed: int = 0
    makers_failed: int = 0
    trades_target: int = 0
    trades_done: int = 0
    kick_trades: int = 0
    rejected: int = 0
    last_exec_price: Optional[float] = None

    @property
    def makers_tried(self) -> int:
        return self.makers_placed + self.makers_failed
