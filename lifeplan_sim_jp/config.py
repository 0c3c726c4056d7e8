"""TOML config loader with CLI > config > default resolution."""

import argparse
import sys
import tomllib
from pathlib import Path
from typing import Callable

from lifeplan_sim_jp.params import EVENT_EXPENSE, EVENT_INCOME, SimulationInput

DEFAULT_CONFIG_PATH = Path("config.toml")

# 金額は円、率は%
DEFAULTS = {
    "current_age": 30,
    "retirement_age": 65,
    "life_expectancy": 95,
    "current_savings": 1_000_000.0,
    "annual_income": 5_000_000.0,
    "salary_increase_rate": 2.0,
    "monthly_expenses": 200_000.0,
    "investment_ratio": 20.0,
    "annual_return": 3.0,
    "severance_pay": 10_000_000.0,
    "pension_amount_per_year": 1_500_000.0,
    "pension_start_date": 65,
    "start_year": None,
    "life_events": "",
    "clamp": False,
}

# Sub-record defaults; each section is only active when its flag is true in config
SECTION_DEFAULTS = {
    "housing": {
        "has_loan": False,
        "property_value": 40_000_000,
        "down_payment": 10_000_000,
        "interest_rate": 1.5,
        "loan_term": 35,
        "start_age": 35,
        "property_tax_rate": 0.3,
    },
    "education": {
        "has_children": False,
        "children": [],
        "child_living_cost": 600_000,
        "child_allowance": False,
    },
    "car": {
        "has_car": False,
        "price": 3_000_000,
        "down_payment": 1_000_000,
        "interest_rate": 2.5,
        "loan_term": 5,
        "maintenance_cost": 150_000,
        "purchase_age": 30,
        "replacement_cycle": 10,
    },
    "senior": {
        "enabled": False,
        "start_age": 75,
        "monthly_expense": 50_000,
        "care_cost": 500_000,
    },
}


def load_config(path: Path | None = None) -> dict:
    """Load TOML config file. Returns empty dict if file doesn't exist."""
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        print(f"設定ファイルの読み込みに失敗: {path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    # Normalize life_events: [[age, amount, label?, type?], ...] → list of tables
    # Supports: [[35, 500000, "結婚式"]], [{start_age = 60, end_age = 64, ...}], "35:500000:結婚式"
    if "life_events" in raw and isinstance(raw["life_events"], list):
        events = []
        for item in raw["life_events"]:
            if isinstance(item, dict):
                events.append(item)
            else:
                events.append({
                    "start_age": item[0],
                    "amount": item[1],
                    "description": item[2] if len(item) >= 3 else "",
                    "type": item[3] if len(item) >= 4 else EVENT_EXPENSE,
                })
        raw["life_events"] = events
    # Legacy key: pension_start_age → pension_start_date
    if "pension_start_age" in raw:
        v = raw.pop("pension_start_age")
        raw.setdefault("pension_start_date", v)
    return raw


def create_parser(description: str) -> argparse.ArgumentParser:
    """Create argparse parser with shared simulation flags."""
    d = DEFAULTS
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=Path, default=None, help="設定ファイルパス (default: config.toml)")
    parser.add_argument("--current-age", type=int, default=None, help=f"現在の年齢 (default: {d['current_age']})")
    parser.add_argument("--retirement-age", type=int, default=None, help=f"リタイア年齢 (default: {d['retirement_age']})")
    parser.add_argument("--life-expectancy", type=int, default=None, help=f"想定寿命 (default: {d['life_expectancy']})")
    parser.add_argument("--current-savings", type=float, default=None, help=f"現在の貯蓄額・円 (default: {d['current_savings']:,.0f})")
    parser.add_argument("--annual-income", type=float, default=None, help=f"年収（手取り）・円 (default: {d['annual_income']:,.0f})")
    parser.add_argument("--salary-increase-rate", type=float, default=None, help=f"昇給率・%% (default: {d['salary_increase_rate']})")
    parser.add_argument("--monthly-expenses", type=float, default=None, help=f"月々の基本生活費・円 (default: {d['monthly_expenses']:,.0f})")
    parser.add_argument("--investment-ratio", type=float, default=None, help=f"資産の運用比率・%% (default: {d['investment_ratio']})")
    parser.add_argument("--annual-return", type=float, default=None, help=f"想定利回り・%% (default: {d['annual_return']})")
    parser.add_argument("--severance-pay", type=float, default=None, help=f"退職金・円 (default: {d['severance_pay']:,.0f})")
    parser.add_argument("--pension-amount-per-year", type=float, default=None, help=f"年金額（年額）・円 (default: {d['pension_amount_per_year']:,.0f})")
    parser.add_argument("--pension-start-date", type=int, default=None, help=f"年金受給開始年齢 (default: {d['pension_start_date']})")
    parser.add_argument("--start-year", type=int, default=None, help="初年度の西暦 (default: 今年)")
    parser.add_argument("--life-events", type=str, default=None, help="ライフイベント（開始[-終了]:金額[:ラベル[:income]]のカンマ区切り、例: 35:3000000:結婚式,60-64:1200000:再雇用:income）")
    parser.add_argument("--clamp", action="store_true", default=None, help="貯蓄がマイナスになった年以降、残高を0で下止めする")
    parser.add_argument("--verbose", "-v", action="store_true", help="デバッグログを出力")
    return parser


def parse_life_events(s: str) -> list[dict]:
    """Parse life events string "start[-end]:amount[:label[:type]],..." → list of event dicts."""
    if not s or not s.strip():
        return []
    result: list[dict] = []
    for item in s.split(","):
        item = item.strip()
        if not item:
            continue
        parts = item.split(":")
        ages = parts[0].strip()
        if "-" in ages:
            start_str, end_str = ages.split("-", 1)
            start_age, end_age = int(start_str), int(end_str)
        else:
            start_age, end_age = int(ages), None
        event_type = parts[3].strip().lower() if len(parts) >= 4 else EVENT_EXPENSE
        result.append({
            "id": f"event-{len(result) + 1}",
            "start_age": start_age,
            "end_age": end_age,
            "amount": float(parts[1].strip()),
            "description": parts[2].strip() if len(parts) >= 3 else "",
            "type": EVENT_INCOME if event_type == EVENT_INCOME else EVENT_EXPENSE,
        })
    return result


def resolve(args: argparse.Namespace, config: dict) -> dict:
    """Resolve values with priority: CLI flag > config.toml > hardcoded default."""
    resolved = {}
    for key, default in DEFAULTS.items():
        cli_val = getattr(args, key, None)
        resolved[key] = cli_val if cli_val is not None else config.get(key, default)
    return resolved


def build_input(r: dict, config: dict | None = None) -> SimulationInput:
    """Build SimulationInput from resolved scalars plus config sub-record tables."""
    config = config or {}
    data = {k: v for k, v in r.items() if k not in ("life_events", "clamp")}
    for section, defaults in SECTION_DEFAULTS.items():
        data[section] = {**defaults, **config.get(section, {})}
    events = r["life_events"]
    data["life_events"] = parse_life_events(events) if isinstance(events, str) else list(events or [])
    return SimulationInput.from_dict(data)


def parse_args(
    description: str,
    add_args_fn: Callable[[argparse.ArgumentParser], None] | None = None,
) -> tuple[dict, SimulationInput, argparse.Namespace]:
    """Parse CLI args, load config, resolve values.

    Returns (resolved_dict, simulation_input, namespace).
    namespace: raw argparse.Namespace (for extra CLI args added via add_args_fn).
    """
    parser = create_parser(description)
    if add_args_fn:
        add_args_fn(parser)
    args = parser.parse_args()
    config = load_config(args.config)
    r = resolve(args, config)
    return r, build_input(r, config), args
