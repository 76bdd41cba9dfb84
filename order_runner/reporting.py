# order_runner/reporting.py
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Sequence

from .models import ActionView, StepStats, to_num

SPARK_BARS = "▁▂▃▄▅▆▇█"


def _trim(text: str) -> str:
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def format_price_adaptive(value: float) -> str:
    """More decimals as the price gets smaller, trailing zeros trimmed."""
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        return "0"
    if value >= 1000:
        return f"{value:.2f}"
    if value >= 1:
        return _trim(f"{value:.6f}")
    if value >= 0.01:
        return _trim(f"{value:.8f}")
    if value >= 0.0001:
        return _trim(f"{value:.10f}")
    # 10 significant digits, written out without an exponent
    return _trim(format(Decimal(f"{value:.9e}"), "f"))


def sparkline(values: Sequence[float], width: int) -> str:
    if not values:
        return "-" * min(width, 12)

    clipped = list(values)[-width:]
    low = min(clipped)
    high = max(clipped)
    if low == high:
        return SPARK_BARS[(len(SPARK_BARS) - 1) // 2] * len(clipped)

    top = len(SPARK_BARS) - 1
    chars = []
    for v in clipped:
        idx = math.floor((v - low) / (high - low) * top)
        chars.append(SPARK_BARS[max(0, min(top, idx))])
    return "".join(chars)


def collect_executed_prices(actions: Sequence[ActionView]) -> List[float]:
    """
    Approximate execution prices in chronological order. The venue lists actions
    newest first.
    """
    prices = []
    for action in actions:
        filled = abs(to_num(action.base_delta)) > 0 and abs(to_num(action.quote_delta)) > 0
        if action.status != "executed" and not filled:
            continue
        price = to_num(action.execution_price_approx)
        if price > 0:
            prices.append(price)
    prices.reverse()
    return prices


@dataclass(slots=True)
class MarketSummary:
    index: int
    pair: str
    fair_mid: float
    drift: float
    stats: StepStats
    latest_price: float
    best_bid: float
    best_ask: float
    chart: str

    def format_line(self) -> str:
        s = self.stats
        return " ".join([
            f"[m{self.index} {self.pair}]",
            f"fair={format_price_adaptive(self.fair_mid)} drift={round(self.drift)}bps",
            f"| makers={s.makers_placed}/{s.makers_tried}",
            f"| trades={s.trades_done}/{s.trades_target}",
            f"| kick={s.kick_trades}",
            f"| px~{format_price_adaptive(self.latest_price)}",
            f"| bid={format_price_adaptive(self.best_bid)} ask={format_price_adaptive(self.best_ask)}",
            self.chart,
        ])

    def as_row(self) -> list:
        s = self.stats
        return [
            datetime.now(timezone.utc).isoformat(), self.index, self.pair,
            format_price_adaptive(self.fair_mid), round(self.drift),
            s.makers_placed, s.makers_tried, s.trades_done, s.trades_target, s.kick_trades,
            format_price_adaptive(self.latest_price),
        ]


def build_summary(index: int, pair: str, fair_mid: float, drift: float, stats: StepStats,
                  actions: Sequence[ActionView], best_bid: str, best_ask: str,
                  chart_width: int) -> MarketSummary:
    prices = collect_executed_prices(actions)
    latest: Optional[float] = prices[-1] if prices else None
    if latest is None:
        latest = stats.last_exec_price if stats.last_exec_price is not None else fair_mid
    chart = sparkline(prices if prices else [latest], chart_width)
    return MarketSummary(
        index=index,
        pair=pair,
        fair_mid=fair_mid,
        drift=drift,
        stats=stats,
        latest_price=latest,
        best_bid=to_num(best_bid),
        best_ask=to_num(best_ask),
        chart=chart,
    )
