"""Shared fixtures for order runner tests."""

from __future__ import annotations

import logging
import random

import pytest

from helpers import SleepRecorder
from order_runner.config import BotConfig
from order_runner.models import BalanceView


@pytest.fixture
def cfg() -> BotConfig:
    return BotConfig(
        interval_ms=700,
        per_market_delay_ms=50,
        maker_levels=4,
        trades_min=2,
        trades_max=3,
        min_resting_per_side=8,
        replenish_max_passes=1,
        take_pick_window=5,
        role_slots=2,
        loops=1,
    )


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("order_runner.tests")


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def maker_balances():
    return [
        BalanceView(role="quote-maker-0", address="0x1", base="0", quote="1000000"),
        BalanceView(role="quote-maker-1", address="0x2", base="0", quote="500000"),
        BalanceView(role="base-maker-0", address="0x3", base="1000000", quote="0"),
        BalanceView(role="base-maker-1", address="0x4", base="800000", quote="0"),
    ]
