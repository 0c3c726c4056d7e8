"""CLI entry point for a single life plan projection."""

import argparse
import json
import logging
import sys

from lifeplan_sim_jp.config import parse_args
from lifeplan_sim_jp.params import EVENT_INCOME, SimulationInput
from lifeplan_sim_jp.simulation import ProjectionResult
from lifeplan_sim_jp.validation import run_projection


def _man(amount: float) -> str:
    return f"{amount / 10000:,.0f}万"


def _print_header(inp: SimulationInput):
    years = inp.life_expectancy - inp.current_age + 1
    print("=" * 80)
    print(f"ライフプランシミュレーション（{inp.current_age}歳-{inp.life_expectancy}歳、{years}年間）")
    print(
        f"  貯蓄: {_man(inp.current_savings)}円 / 年収: {_man(inp.annual_income)}円"
        f"（昇給{inp.salary_increase_rate:.1f}%/年、{inp.retirement_age}歳リタイア）"
    )
    print(f"  生活費: {_man(inp.monthly_expenses)}円/月 / 運用: 資産の{inp.investment_ratio:.0f}%を年{inp.annual_return:.1f}%で運用")
    print(
        f"  退職金: {_man(inp.severance_pay)}円 / 年金: {_man(inp.pension_amount_per_year)}円/年"
        f"（{inp.pension_start_date}歳から）"
    )
    h = inp.housing
    if h.has_loan:
        print(
            f"  住宅: {_man(h.property_value)}円（頭金{_man(h.down_payment)}）を{h.start_age}歳で購入、"
            f"{h.loan_term}年ローン・金利{h.interest_rate:.2f}%"
        )
    c = inp.car
    if c.has_car:
        cycle = f"{c.replacement_cycle}年ごとに買替" if c.replacement_cycle > 0 else "買替なし"
        print(
            f"  自動車: {_man(c.price)}円を{c.purchase_age}歳で購入（{cycle}）"
            f" + 維持費{_man(c.maintenance_cost)}円/年"
        )
    edu = inp.education
    if edu.has_children and edu.children:
        parts = [f"{child.birth_year}年生まれ・{child.plan}" for child in edu.children]
        print(f"  教育費: 子{len(edu.children)}人（{', '.join(parts)}）")
    else:
        print("  教育費: なし")
    s = inp.senior
    if s.enabled:
        print(f"  老後費用: {s.start_age}歳から生活費{_man(s.monthly_expense)}円/月 + 介護費{_man(s.care_cost)}円/年")
    if inp.life_events:
        parts = []
        for e in inp.life_events:
            sign = "+" if e.type == EVENT_INCOME else "▲"
            span = f"{e.start_age}-{e.end_age}歳" if e.is_recurring else f"{e.start_age}歳"
            parts.append(f"{span}:{e.description or e.id}{sign}{_man(e.amount)}")
        print(f"  ライフイベント: {', '.join(parts)}")
    print("=" * 80)
    print()


def _print_yearly_log(result: ProjectionResult):
    print("【年次推移（5年ごと）】")
    print("-" * 80)
    print(f"{'年':<6} {'年齢':<5} {'収入(万)':>12} {'支出(万)':>12} {'収支(万)':>12} {'貯蓄残高(万)':>14}")
    print("-" * 80)
    last = len(result.asset_data) - 1
    for i, snap in enumerate(result.asset_data):
        if i % 5 == 0 or i == last or snap.age == result.retirement_age:
            print(
                f"{snap.year:<6} {snap.age:<5} "
                f"{snap.income / 10000:>12,.1f} "
                f"{snap.expense / 10000:>12,.1f} "
                f"{snap.balance / 10000:>12,.1f} "
                f"{snap.savings / 10000:>14,.1f}"
            )
    print("-" * 80)


def _print_summary(result: ProjectionResult):
    print("\n【主な出来事】")
    if result.calculation_summary:
        for line in result.calculation_summary.split("\n"):
            print(f"  {line}")
    else:
        print("  なし")

    retirement_savings = result.savings_at(result.retirement_age)
    print("\n" + "=" * 80)
    if retirement_savings is not None:
        print(f"  リタイア時({result.retirement_age}歳)の貯蓄: {retirement_savings:>14,}円")
    print(f"  最終貯蓄({result.life_expectancy}歳): {result.final_savings:>14,}円 ({result.final_savings / 1e8:.2f}億円)")
    if result.insolvency_age is not None:
        print(f"  ⚠ {result.insolvency_age}歳で貯蓄がマイナス")
    print(f"\n  {result.advice}")
    print("=" * 80)


def _add_cli_args(parser: argparse.ArgumentParser):
    parser.add_argument("--json", action="store_true", help="結果をJSONで出力")


def main():
    """Execute a single projection and print the yearly ledger"""
    r, inp, args = parse_args("ライフプランシミュレーション", _add_cli_args)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    result = run_projection(inp, clamp_negative_savings=bool(r["clamp"]))
    if result.errors:
        for e in result.errors:
            print(f"入力エラー: {e}", file=sys.stderr)
        if args.json:
            print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        raise SystemExit(1)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    _print_header(inp)
    _print_yearly_log(result)
    _print_summary(result)


if __name__ == "__main__":
    main()
