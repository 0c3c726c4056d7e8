"""Precondition checks run before the projection engine."""

import dataclasses

from lifeplan_sim_jp.params import SimulationInput
from lifeplan_sim_jp.simulation import ProjectionResult, project

MAX_AGE = 120


def validate_input(inp: SimulationInput) -> list[str]:
    """Validate age ordering and value ranges. Returns list of error messages."""
    errors = []

    # Check 1: age ordering
    if inp.current_age < 0 or inp.current_age > MAX_AGE:
        errors.append(f"現在の年齢{inp.current_age}歳は対象外です（0-{MAX_AGE}歳）")
    if inp.current_age >= inp.retirement_age:
        errors.append(
            f"現在の年齢{inp.current_age}歳はリタイア年齢{inp.retirement_age}歳より前である必要があります"
        )
    if inp.retirement_age > inp.life_expectancy:
        errors.append(
            f"リタイア年齢{inp.retirement_age}歳が想定寿命{inp.life_expectancy}歳を超えています"
        )
    if inp.life_expectancy > MAX_AGE:
        errors.append(f"想定寿命{inp.life_expectancy}歳は上限{MAX_AGE}歳を超えています")
    if inp.pension_start_date < 0 or inp.pension_start_date > inp.life_expectancy:
        errors.append(
            f"年金受給開始年齢{inp.pension_start_date}歳が想定寿命{inp.life_expectancy}歳を超えています"
        )

    # Check 2: non-negative money
    money_fields = {
        "現在の貯蓄額": inp.current_savings,
        "年収": inp.annual_income,
        "月々の生活費": inp.monthly_expenses,
        "退職金": inp.severance_pay,
        "年金額": inp.pension_amount_per_year,
    }
    for label, value in money_fields.items():
        if value < 0:
            errors.append(f"{label}は0以上で入力してください（{value:,.0f}円）")

    # Check 3: ratios
    if not 0 <= inp.investment_ratio <= 100:
        errors.append(f"運用比率{inp.investment_ratio}%は0-100%の範囲で入力してください")

    # Check 4: sub-records
    h = inp.housing
    if h.has_loan and (h.property_value < 0 or h.down_payment < 0 or h.loan_term < 0 or h.start_age < 0):
        errors.append("住宅ローンの金額・期間・開始年齢は0以上で入力してください")
    c = inp.car
    if c.has_car and (c.price < 0 or c.down_payment < 0 or c.loan_term < 0 or c.maintenance_cost < 0
                      or c.purchase_age < 0 or c.replacement_cycle < 0):
        errors.append("自動車の金額・期間・年齢は0以上で入力してください")
    s = inp.senior
    if s.enabled and (s.start_age < 0 or s.monthly_expense < 0 or s.care_cost < 0):
        errors.append("老後費用の金額・開始年齢は0以上で入力してください")
    edu = inp.education
    if edu.has_children:
        if edu.child_living_cost < 0:
            errors.append("子供の生活費は0以上で入力してください")
        for i, child in enumerate(edu.children, start=1):
            if child.custom_amount < 0:
                errors.append(f"子供{i}のカスタム教育費は0以上で入力してください")

    # Check 5: life events
    for event in inp.life_events:
        label = event.description or event.id
        if event.start_age < 0 or event.amount < 0:
            errors.append(f"ライフイベント「{label}」の年齢・金額は0以上で入力してください")
        if event.end_age is not None and event.end_age < event.start_age:
            errors.append(
                f"ライフイベント「{label}」の終了年齢{event.end_age}歳が開始年齢{event.start_age}歳より前です"
            )

    return errors


def run_projection(inp: SimulationInput, **kwargs) -> ProjectionResult:
    """Validate then project. Invalid input yields an empty result carrying errors."""
    checked = inp
    if kwargs.get("life_events") is not None:
        checked = dataclasses.replace(inp, life_events=tuple(kwargs["life_events"]))
    errors = validate_input(checked)
    if errors:
        return ProjectionResult.empty(inp, errors)
    return project(inp, **kwargs)
