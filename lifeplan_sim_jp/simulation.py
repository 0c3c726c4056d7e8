"""Core projection engine."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date

from lifeplan_sim_jp import milestones as ms
from lifeplan_sim_jp.costs import CostSchedule
from lifeplan_sim_jp.events import aggregate_events
from lifeplan_sim_jp.milestones import Milestone, render_summary
from lifeplan_sim_jp.params import LifeEvent, SimulationInput

logger = logging.getLogger(__name__)

# Income / expense categories owned by the engine
INCOME_SALARY = "給与収入"
INCOME_SEVERANCE = "退職金"
INCOME_PENSION = "年金収入"
INCOME_INVESTMENT = "資産運用益"
EXPENSE_BASE_LIVING = "基本生活費"

# 老後資金の目安（円）: これを下回ると注意喚起
LOW_RESERVE_THRESHOLD = 20_000_000

ADVICE_DEPLETED = (
    "想定寿命({life_expectancy}歳)時点で資産が枯渇する可能性が高いです。"
    "月々の支出の見直しや、投資計画の変更を検討しましょう。"
)
ADVICE_LOW_RESERVE = (
    "想定寿命({life_expectancy}歳)時点の資産が2,000万円を下回る可能性があります。"
    "老後の生活設計について、追加の収入源や支出削減を検討することをお勧めします。"
)
ADVICE_ON_TRACK = "計画は順調に進んでいます。引き続き計画的な資産管理を心がけましょう。"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +inf (JS Math.round)."""
    return int(math.floor(value + 0.5))


def _add(details: dict[str, float], label: str, amount: float) -> None:
    details[label] = details.get(label, 0) + amount


def _merge(details: dict[str, float], other: dict[str, float]) -> None:
    for label, amount in other.items():
        _add(details, label, amount)


@dataclass
class YearSnapshot:
    year: int
    age: int
    income: int
    expense: int
    balance: int
    savings: int
    investment_gains: int = 0  # incomeには含めない運用益（balanceには含む）
    income_details: dict[str, int] = field(default_factory=dict)
    expense_details: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "age": self.age,
            "income": self.income,
            "expense": self.expense,
            "balance": self.balance,
            "savings": self.savings,
            "investmentGains": self.investment_gains,
            "incomeDetails": dict(self.income_details),
            "expenseDetails": dict(self.expense_details),
        }


@dataclass
class ProjectionResult:
    asset_data: list[YearSnapshot]
    final_savings: int
    current_age: int
    retirement_age: int
    life_expectancy: int
    pension_start_date: int
    advice: str = ""
    calculation_summary: str = ""
    milestones: list[Milestone] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @classmethod
    def empty(cls, inp: SimulationInput, errors: list[str]) -> "ProjectionResult":
        """Result for an input rejected before projection."""
        return cls(
            asset_data=[],
            final_savings=0,
            current_age=inp.current_age,
            retirement_age=inp.retirement_age,
            life_expectancy=inp.life_expectancy,
            pension_start_date=inp.pension_start_date,
            errors=list(errors),
        )

    @property
    def insolvency_age(self) -> int | None:
        for m in self.milestones:
            if m.kind == ms.INSOLVENCY:
                return m.age
        return None

    def savings_at(self, age: int) -> int | None:
        for snap in self.asset_data:
            if snap.age == age:
                return snap.savings
        return None

    def to_dict(self) -> dict:
        """Serialize with the camelCase keys used by HTTP/JSON callers."""
        return {
            "assetData": [s.to_dict() for s in self.asset_data],
            "finalSavings": self.final_savings,
            "currentAge": self.current_age,
            "retirementAge": self.retirement_age,
            "lifeExpectancy": self.life_expectancy,
            "pensionStartDate": self.pension_start_date,
            "advice": self.advice,
            "calculationSummary": self.calculation_summary,
            "errors": list(self.errors),
        }


def choose_advice(final_savings: float, life_expectancy: int) -> str:
    if final_savings <= 0:
        return ADVICE_DEPLETED.format(life_expectancy=life_expectancy)
    if final_savings < LOW_RESERVE_THRESHOLD:
        return ADVICE_LOW_RESERVE.format(life_expectancy=life_expectancy)
    return ADVICE_ON_TRACK


def project(
    inp: SimulationInput,
    *,
    life_events: list[LifeEvent] | tuple[LifeEvent, ...] | None = None,
    clamp_negative_savings: bool = False,
    cost_table: dict | None = None,
) -> ProjectionResult:
    """Project yearly income/expense/savings from current_age to life_expectancy.

    Args:
        inp: validated, fully-defaulted input. Never mutated.
        life_events: when given, used instead of inp.life_events.
        clamp_negative_savings: floor savings at 0 after each year once they
            go negative. The insolvency milestone is recorded either way.
        cost_table: education tier table override (default: EDUCATION_COST).

    Returns:
        ProjectionResult with one snapshot per age (inclusive range).
    """
    start_year = inp.start_year if inp.start_year is not None else date.today().year
    events = inp.life_events if life_events is None else tuple(life_events)
    schedule = CostSchedule(inp, start_year, cost_table)

    savings = float(inp.current_savings)
    salary = float(inp.annual_income)
    insolvent = False
    snapshots: list[YearSnapshot] = []
    milestones: list[Milestone] = []

    logger.debug(
        "project: %d-%d歳 start_year=%d events=%d clamp=%s",
        inp.current_age, inp.life_expectancy, start_year, len(events), clamp_negative_savings,
    )

    for age in range(inp.current_age, inp.life_expectancy + 1):
        income_details: dict[str, float] = {}
        expense_details: dict[str, float] = {EXPENSE_BASE_LIVING: inp.monthly_expenses * 12}

        # 給与（昇給は翌年から反映）
        if age < inp.retirement_age:
            _add(income_details, INCOME_SALARY, salary)
            salary *= 1 + inp.salary_increase_rate / 100

        if age == inp.retirement_age and inp.severance_pay > 0:
            _add(income_details, INCOME_SEVERANCE, inp.severance_pay)
            milestones.append(Milestone(ms.RETIREMENT, age, {"severance_pay": inp.severance_pay}))

        if age >= inp.pension_start_date:
            _add(income_details, INCOME_PENSION, inp.pension_amount_per_year)
            if age == inp.pension_start_date:
                milestones.append(
                    Milestone(ms.PENSION_START, age, {"amount": inp.pension_amount_per_year})
                )

        costs = schedule.resolve(age)
        _merge(expense_details, costs.expenses)
        _merge(income_details, costs.incomes)
        milestones.extend(costs.milestones)

        event_totals = aggregate_events(events, age)
        _merge(income_details, event_totals.income_details)
        _merge(expense_details, event_totals.expense_details)

        income = sum(income_details.values())

        # 運用益は年初（前年末）残高に対して計算、マイナスでも計上
        growth = savings * (inp.investment_ratio / 100) * (inp.annual_return / 100)
        _add(income_details, INCOME_INVESTMENT, growth)

        expense = sum(expense_details.values())
        balance = income + growth - expense
        savings += balance

        if savings < 0 and not insolvent:
            insolvent = True
            milestones.append(Milestone(ms.INSOLVENCY, age))
            logger.info("%d歳で貯蓄がマイナス（%.0f円）", age, savings)
        if clamp_negative_savings and savings < 0:
            savings = 0.0

        snapshots.append(YearSnapshot(
            year=start_year + (age - inp.current_age),
            age=age,
            income=round_half_up(income),
            expense=round_half_up(expense),
            balance=round_half_up(balance),
            savings=round_half_up(savings),
            investment_gains=round_half_up(growth),
            income_details={k: round_half_up(v) for k, v in income_details.items()},
            expense_details={k: round_half_up(v) for k, v in expense_details.items()},
        ))

    final_savings = snapshots[-1].savings if snapshots else 0
    return ProjectionResult(
        asset_data=snapshots,
        final_savings=final_savings,
        current_age=inp.current_age,
        retirement_age=inp.retirement_age,
        life_expectancy=inp.life_expectancy,
        pension_start_date=inp.pension_start_date,
        advice=choose_advice(final_savings, inp.life_expectancy),
        calculation_summary=render_summary(milestones),
        milestones=milestones,
    )
