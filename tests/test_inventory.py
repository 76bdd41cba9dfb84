"""Tests for actor role selection."""

from order_runner.inventory import (
    RoleRotation,
    estimate_quote_for_amount,
    fallback_role_for_side,
    pick_actor_role_for_side,
)
from order_runner.models import BalanceView, Side


def _row(role, base="0", quote="0"):
    return BalanceView(role=role, address="0x0", base=base, quote=quote)


class TestPickActorRole:
    def test_sufficient_top_ranked_quote_maker(self):
        balances = [_row("quote-maker-0", quote="100"), _row("quote-maker-1", quote="5")]
        # 40 * 1 * 1.25 = 50 quote required
        role = pick_actor_role_for_side(balances, Side.BUY, 1, 40, cursor=0, role_slots=4)
        assert role == "quote-maker-0"

    def test_cursor_rotates_only_through_sufficient_rows(self):
        balances = [_row("quote-maker-0", quote="100"), _row("quote-maker-1", quote="5")]
        for cursor in range(5):
            assert pick_actor_role_for_side(balances, Side.BUY, 1, 40, cursor, 4) == "quote-maker-0"

    def test_rotation_within_top_slots(self):
        balances = [
            _row("base-maker-0", base="10"),
            _row("base-maker-1", base="30"),
            _row("base-maker-2", base="20"),
        ]
        picks = [pick_actor_role_for_side(balances, Side.SELL, 5, 1, c, role_slots=2) for c in range(4)]
        assert picks == ["base-maker-1", "base-maker-2", "base-maker-1", "base-maker-2"]

    def test_negative_cursor_uses_absolute_value(self):
        balances = [_row("base-maker-0", base="10"), _row("base-maker-1", base="30")]
        assert pick_actor_role_for_side(balances, Side.SELL, 1, 1, -1, 4) == "base-maker-0"

    def test_no_preferred_prefix_uses_whole_pool(self):
        balances = [_row("taker", quote="1000"), _row("whale", quote="10")]
        assert pick_actor_role_for_side(balances, Side.BUY, 1, 1, 0, 4) == "taker"

    def test_nobody_funded_falls_back_to_ranked_pool(self):
        balances = [_row("base-maker-0", base="1"), _row("base-maker-1", base="3")]
        assert pick_actor_role_for_side(balances, Side.SELL, 500, 1, 0, 4) == "base-maker-1"

    def test_no_balances_uses_slot_role(self):
        assert pick_actor_role_for_side([], Side.BUY, 1, 1, 6, role_slots=4) == "quote-maker-2"
        assert pick_actor_role_for_side([], Side.SELL, 1, 1, 6, role_slots=4) == "base-maker-2"

    def test_blank_roles_are_ignored(self):
        assert pick_actor_role_for_side([_row("", quote="1000")], Side.BUY, 1, 1, 1, 4) == "quote-maker-1"


class TestHelpers:
    def test_quote_estimate_has_headroom(self):
        assert estimate_quote_for_amount(40, 1) == 50
        assert estimate_quote_for_amount(0, 10) == 1

    def test_fallback_role(self):
        assert fallback_role_for_side(Side.SELL, 9, 4) == "base-maker-1"

    def test_rotation_advances_cursor(self):
        balances = [_row("quote-maker-0", quote="100"), _row("quote-maker-1", quote="90")]
        rotation = RoleRotation(start=0, role_slots=2)
        picks = [rotation.next_role(balances, Side.BUY, 1, 1) for _ in range(3)]
        assert picks == ["quote-maker-0", "quote-maker-1", "quote-maker-0"]
        assert rotation.cursor == 3
