# order_runner/config.py
import math
import os
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Mapping, Optional

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"


@dataclass(frozen=True)
class BotConfig:
    """
    Effective runner settings. Built once at startup and handed to every component;
    nothing below the CLI reads the environment directly.
    """
    base_url: str = "http://127.0.0.1:4180"
    network_timeout_ms: int = 15000
    interval_ms: int = 2500
    per_market_delay_ms: int = 180
    chart_width: int = 44
    maker_offset_bps: float = 5
    maker_levels: int = 4
    trades_min: int = 3
    trades_max: int = 6
    drift_step_bps: int = 64
    drift_max_bps: float = 2400
    min_resting_per_side: int = 18
    replenish_max_passes: int = 3
    take_pick_window: int = 20
    role_slots: int = 4
    markets: FrozenSet[int] = frozenset()
    loops: int = 0
    log_level: str = "INFO"
    audit_log: Optional[str] = None

    @property
    def interval(self) -> float:
        return self.interval_ms / 1000

    @property
    def per_market_delay(self) -> float:
        return self.per_market_delay_ms / 1000

    def accepts_market(self, index: int) -> bool:
        return not self.markets or index in self.markets


# env var -> (yaml section, yaml key, BotConfig field)
ENV_OVERRIDES = {
    "DEMO_UI_BASE_URL": ("venue", "base_url", "base_url"),
    "ORDER_RUNNER_NETWORK_TIMEOUT_MS": ("venue", "network_timeout_ms", "network_timeout_ms"),
    "ORDER_RUNNER_INTERVAL_MS": ("runner", "interval_ms", "interval_ms"),
    "ORDER_RUNNER_PER_MARKET_DELAY_MS": ("runner", "per_market_delay_ms", "per_market_delay_ms"),
    "ORDER_RUNNER_CHART_WIDTH": ("runner", "chart_width", "chart_width"),
    "ORDER_RUNNER_MARKETS": ("runner", "markets", "markets"),
    "ORDER_RUNNER_LOOPS": ("runner", "loops", "loops"),
    "ORDER_RUNNER_MAKER_OFFSET_BPS": ("maker", "offset_bps", "maker_offset_bps"),
    "ORDER_RUNNER_MAKER_LEVELS": ("maker", "levels", "maker_levels"),
    "ORDER_RUNNER_TRADES_MIN": ("trading", "trades_min", "trades_min"),
    "ORDER_RUNNER_TRADES_MAX": ("trading", "trades_max", "trades_max"),
    "ORDER_RUNNER_TAKE_PICK_WINDOW": ("trading", "take_pick_window", "take_pick_window"),
    "ORDER_RUNNER_DRIFT_STEP_BPS": ("drift", "step_bps", "drift_step_bps"),
    "ORDER_RUNNER_DRIFT_MAX_BPS": ("drift", "max_bps", "drift_max_bps"),
    "ORDER_RUNNER_MIN_RESTING_PER_SIDE": ("liquidity", "min_resting_per_side", "min_resting_per_side"),
    "ORDER_RUNNER_REPLENISH_MAX_PASSES": ("liquidity", "replenish_max_passes", "replenish_max_passes"),
    "ORDER_RUNNER_ROLE_SLOTS": ("roles", "slots", "role_slots"),
    "ORDER_RUNNER_AUDIT_LOG": ("audit", "summary_log", "audit_log"),
    "ORDER_RUNNER_LOG_LEVEL": ("system", "log_level", "log_level"),
}

# field -> floor applied after parsing
FLOORS = {
    "network_timeout_ms": 1000,
    "interval_ms": 700,
    "per_market_delay_ms": 50,
    "chart_width": 16,
    "maker_offset_bps": 1,
    "maker_levels": 2,
    "trades_min": 2,
    "drift_step_bps": 4,
    "drift_max_bps": 150,
    "min_resting_per_side": 8,
    "replenish_max_passes": 1,
    "take_pick_window": 3,
    "role_slots": 1,
    "loops": 0,
}

FLOAT_FIELDS = {"maker_offset_bps", "drift_max_bps"}


def _number(raw: Any, default: float) -> float:
    try:
        n = float(raw)
    except (TypeError, ValueError):
        return default
    return n if math.isfinite(n) else default


def parse_markets(raw: Any) -> FrozenSet[int]:
    """Accepts '0, 2,x' or a YAML list; junk entries are ignored."""
    if raw is None:
        return frozenset()
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    markets = set()
    for item in items:
        text = str(item).strip()
        if not text:
            continue
        n = _number(text, math.nan)
        if math.isfinite(n):
            markets.add(int(n))
    return frozenset(markets)


def _read_yaml(path: Optional[str]) -> Dict[str, Any]:
    if not path or not os.path.exists(path):
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def load_config(path: Optional[str] = DEFAULT_CONFIG_PATH,
                env: Optional[Mapping[str, str]] = None,
                **overrides: Any) -> BotConfig:
    """
    Builds the BotConfig from (lowest to highest precedence) defaults, the YAML file,
    ORDER_RUNNER_* environment variables and explicit keyword overrides (CLI flags).
    """
    env = os.environ if env is None else env
    file_cfg = _read_yaml(path)
    defaults = BotConfig()
    raw: Dict[str, Any] = {}

    for var, (section, key, name) in ENV_OVERRIDES.items():
        section_cfg = file_cfg.get(section) or {}
        if key in section_cfg and section_cfg[key] is not None:
            raw[name] = section_cfg[key]
        if env.get(var) not in (None, ""):
            raw[name] = env[var]

    for name, value in overrides.items():
        if value is not None:
            raw[name] = value

    values: Dict[str, Any] = {}
    for name, floor in FLOORS.items():
        default = getattr(defaults, name)
        n = max(floor, _number(raw.get(name, default), default))
        values[name] = n if name in FLOAT_FIELDS else int(n)

    values["trades_max"] = int(max(values["trades_min"],
                                   _number(raw.get("trades_max", defaults.trades_max), defaults.trades_max)))
    values["base_url"] = str(raw.get("base_url", defaults.base_url)).rstrip("/")
    values["markets"] = parse_markets(raw.get("markets"))
    values["log_level"] = str(raw.get("log_level", defaults.log_level)).upper()
    audit_log = raw.get("audit_log")
    values["audit_log"] = str(audit_log) if audit_log else None

    return BotConfig(**values)
