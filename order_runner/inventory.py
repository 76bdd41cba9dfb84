# order_runner/inventory.py
import math
from dataclasses import dataclass
from typing import List, Sequence

from .models import BalanceView, Side, to_positive

QUOTE_HEADROOM = 1.25
PREFIX_BY_SIDE = {Side.BUY: "quote-maker-", Side.SELL: "base-maker-"}


@dataclass(slots=True)
class _Funds:
    role: str
    base: float
    quote: float

    def available(self, side: Side) -> float:
        return self.quote if side is Side.BUY else self.base


def estimate_quote_for_amount(price_quote_per_base: float, amount_base: float) -> int:
    return max(1, math.ceil(to_positive(price_quote_per_base) * max(1, amount_base) * QUOTE_HEADROOM))


def required_funds(side: Side, amount_base: float, price_quote_per_base: float) -> float:
    """Quote a buyer must hold, or base a seller must hold, for this order."""
    if side is Side.BUY:
        return estimate_quote_for_amount(price_quote_per_base, amount_base)
    return max(1, amount_base)


def fallback_role_for_side(side: Side, cursor: int, role_slots: int) -> str:
    slot = abs(int(cursor)) % max(1, role_slots)
    return f"{PREFIX_BY_SIDE[side]}{slot}"


def pick_actor_role_for_side(balances: Sequence[BalanceView], side: Side, amount_base: float,
                             price_quote_per_base: float, cursor: int, role_slots: int) -> str:
    """
    Picks which actor role funds an order.

    Prefers the side's maker roles, then roles holding enough of the needed asset,
    ranks them by that balance and rotates through the best `role_slots` using the
    cursor so that the richest actor is not used for every order.
    """
    pool_raw: List[_Funds] = [
        _Funds(role=row.role, base=to_positive(row.base), quote=to_positive(row.quote))
        for row in balances
        if row.role
    ]
    if not pool_raw:
        return fallback_role_for_side(side, cursor, role_slots)

    preferred = [row for row in pool_raw if row.role.startswith(PREFIX_BY_SIDE[side])]
    pool = preferred or pool_raw

    needed = required_funds(side, amount_base, price_quote_per_base)
    sufficient = [row for row in pool if row.available(side) >= needed]
    ranked = sorted(sufficient or pool, key=lambda row: row.available(side), reverse=True)

    top_count = max(1, min(role_slots, len(ranked)))
    return ranked[abs(int(cursor)) % top_count].role


class RoleRotation:
    """
    Rotating cursor over actor roles for one market step.
    Every pick advances the cursor, so consecutive orders spread across actors.
    """
    def __init__(self, start: int, role_slots: int):
        self.cursor = start
        self.role_slots = role_slots

    def next_role(self, balances: Sequence[BalanceView], side: Side, amount_base: float,
                  price_quote_per_base: float) -> str:
        role = pick_actor_role_for_side(balances, side, amount_base, price_quote_per_base,
                                        self.cursor, self.role_slots)
        self.cursor += 1
        return role
