# order_runner/pricing.py
import math
import random
from dataclasses import dataclass
from typing import Optional

from .models import MarketView, Side, to_num

# Used when the venue reports no book for a pair.
FALLBACK_MID_BY_PAIR = {
    "VARA/USDC": 0.001165,
    "ETH/USDC": 2055.0,
    "USDC/VARA": 858.3690987124464,
    "USDC/USDC": 1.0,
}

DRIFT_DECAY = 0.16
DRIFT_SECONDARY_WEIGHT = 0.4
DRIFT_JUMP_CHANCE = 0.2
DRIFT_JUMP_BPS = 120
IMPACT_MIN_BPS = 8
IMPACT_MAX_BPS = 30


@dataclass(frozen=True, slots=True)
class PriceBounds:
    low: float
    high: float

    def clamp(self, value: float) -> float:
        return clamp(value, self.low, self.high)

    def contains(self, value: float) -> bool:
        return self.low <= value <= self.high


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def estimate_mid(market: MarketView) -> float:
    """
    Mid of the best bid/ask when the book is two-sided, otherwise a static
    per-pair reference (1 for unknown pairs). Always positive.
    """
    bid = to_num(market.best_bid)
    ask = to_num(market.best_ask)
    if bid > 0 and ask > 0 and ask >= bid:
        return (bid + ask) / 2
    return FALLBACK_MID_BY_PAIR.get(market.pair, 1.0)


def price_bounds_for_reference(mid: float) -> PriceBounds:
    """Admissible band for every maker/taker price derived from this mid."""
    return PriceBounds(
        low=max(0.000000000001, mid * 0.35),
        high=max(0.000000000002, mid * 2.6),
    )


def update_drift(previous: float, rng: random.Random, step_bps: int, max_bps: float) -> float:
    """
    One step of the mean-reverting random walk: decay toward zero, two uniform
    noise terms and an occasional larger jump.
    """
    drift = (
        previous
        - previous * DRIFT_DECAY
        + rng.randint(-step_bps, step_bps)
        + rng.randint(-step_bps, step_bps) * DRIFT_SECONDARY_WEIGHT
        + (rng.randint(-DRIFT_JUMP_BPS, DRIFT_JUMP_BPS) if rng.random() < DRIFT_JUMP_CHANCE else 0)
    )
    return clamp(drift, -max_bps, max_bps)


def nudge_drift(drift: float, side: Side, rng: random.Random, max_bps: float) -> float:
    """Price impact of an executed taker: buys push drift up, sells push it down."""
    impact = rng.randint(IMPACT_MIN_BPS, IMPACT_MAX_BPS)
    return clamp(drift + (impact if side is Side.BUY else -impact), -max_bps, max_bps)


def fair_mid(mid: float, drift: float, bounds: PriceBounds) -> float:
    return bounds.clamp(mid * (1 + drift / 10_000))


def pick_amount_base(mid: float) -> int:
    """Typical trade size; shrinks as price grows so notionals stay comparable."""
    if mid >= 1_000:
        return 1
    if mid >= 100:
        return 2
    if mid >= 1:
        return 10
    if mid >= 0.01:
        return 50
    return 250


def estimate_max_quote(reference_price: float, amount_base: int) -> int:
    return max(1, math.ceil(reference_price * amount_base * 2.8))


def derive_execution_price(base_delta: Optional[str], quote_delta: Optional[str]) -> Optional[float]:
    base = abs(to_num(base_delta))
    quote = abs(to_num(quote_delta))
    if base <= 0 or quote <= 0:
        return None
    return quote / base
