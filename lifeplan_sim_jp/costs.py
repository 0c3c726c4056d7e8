"""Age-based cost schedule: housing, education, car and senior-care rules."""

import logging
from dataclasses import dataclass, field

from lifeplan_sim_jp import milestones as ms
from lifeplan_sim_jp.milestones import Milestone
from lifeplan_sim_jp.params import (
    PLAN_CUSTOM,
    PLAN_PRIVATE_LIBERAL,
    PLAN_PRIVATE_SCIENCE,
    PLAN_PUBLIC,
    Child,
    SimulationInput,
    calc_annual_loan_payment,
)

logger = logging.getLogger(__name__)

# Expense categories
EXPENSE_HOUSE_DOWN_PAYMENT = "住宅頭金"
EXPENSE_HOUSING_LOAN = "住宅ローン返済"
EXPENSE_PROPERTY_TAX = "固定資産税"
EXPENSE_EDUCATION = "教育費"
EXPENSE_CHILD_LIVING = "子供の生活費"
EXPENSE_CAR_DOWN_PAYMENT = "自動車頭金"
EXPENSE_CAR_REPLACEMENT_DOWN_PAYMENT = "自動車頭金（買い替え）"
EXPENSE_CAR_REPLACEMENT_BALANCE = "自動車購入差額（買い替え）"
EXPENSE_CAR_LOAN = "自動車ローン返済"
EXPENSE_CAR_MAINTENANCE = "自動車維持費"
EXPENSE_SENIOR_LIVING = "シニア生活費"
EXPENSE_CARE = "介護費"

# Income categories
INCOME_CHILD_ALLOWANCE = "児童手当"

# 教育費（円/年）: 文部科学省「子供の学習費調査」・大学は授業料+入学金の4年平均
EDUCATION_COST: dict = {
    "preschool": 230_000,
    "elementary": {"public": 352_566, "private": 1_666_949},
    "middle": {"public": 538_799, "private": 1_436_353},
    "high": {"public": 512_971, "private": 1_054_444},
    "university": {
        PLAN_PUBLIC: 1_000_000,
        PLAN_PRIVATE_LIBERAL: 1_300_000,
        PLAN_PRIVATE_SCIENCE: 1_800_000,
    },
}

# (first child age, last child age, stage)
EDUCATION_TIERS: tuple[tuple[int, int, str], ...] = (
    (3, 5, ms.STAGE_PRESCHOOL),
    (6, 11, ms.STAGE_ELEMENTARY),
    (12, 14, ms.STAGE_MIDDLE),
    (15, 17, ms.STAGE_HIGH),
    (18, 21, ms.STAGE_UNIVERSITY),
)
CHILD_AGE_START = 0
CHILD_AGE_END = 21  # 大学卒業まで（生活費もこの年齢まで）

# 児童手当（2024年改正: 所得制限撤廃・18歳まで延長）: (from, to, 円/月)
CHILD_ALLOWANCE_SCHEDULE: tuple[tuple[int, int, float], ...] = (
    (0, 2, 15_000),
    (3, 18, 10_000),
)


def education_stage(child_age: int) -> str | None:
    """Return the schooling stage for a child age, or None outside 3-21."""
    for lo, hi, stage in EDUCATION_TIERS:
        if lo <= child_age <= hi:
            return stage
    return None


def education_cost(
    child_age: int, plan: str, custom_amount: float = 0.0, table: dict | None = None,
) -> float:
    """Annual education cost for one child. Unmatched ages/plans cost nothing extra."""
    if table is None:
        table = EDUCATION_COST
    if not CHILD_AGE_START <= child_age <= CHILD_AGE_END:
        return 0.0
    if plan == PLAN_CUSTOM and custom_amount > 0:
        return custom_amount
    stage = education_stage(child_age)
    if stage is None:
        return 0.0
    if stage == ms.STAGE_PRESCHOOL:
        return table["preschool"]
    if stage == ms.STAGE_UNIVERSITY:
        university = table["university"]
        return university.get(plan, university[PLAN_PUBLIC])
    school = "private" if plan in (PLAN_PRIVATE_LIBERAL, PLAN_PRIVATE_SCIENCE) else "public"
    return table[stage][school]


def child_allowance_annual(child_age: int) -> float:
    for lo, hi, monthly in CHILD_ALLOWANCE_SCHEDULE:
        if lo <= child_age <= hi:
            return monthly * 12
    return 0.0


@dataclass
class YearCosts:
    """Categorized contributions for one simulated age."""

    expenses: dict[str, float] = field(default_factory=dict)
    incomes: dict[str, float] = field(default_factory=dict)
    milestones: list[Milestone] = field(default_factory=list)

    def add_expense(self, label: str, amount: float) -> None:
        if amount:
            self.expenses[label] = self.expenses.get(label, 0) + amount

    def add_income(self, label: str, amount: float) -> None:
        if amount:
            self.incomes[label] = self.incomes.get(label, 0) + amount

    @property
    def total_expense(self) -> float:
        return sum(self.expenses.values())

    @property
    def total_income(self) -> float:
        return sum(self.incomes.values())


class CostSchedule:
    """Per-run resolver of age-conditioned costs.

    Loan annuities are computed once here. The car loan-term counter is the
    only mutable state, so a schedule must not be shared between runs and
    resolve() must be called once per age in ascending order.
    """

    def __init__(self, inp: SimulationInput, start_year: int, table: dict | None = None):
        self.inp = inp
        self.start_year = start_year
        self.table = EDUCATION_COST if table is None else table

        h = inp.housing
        self.housing_payment = (
            calc_annual_loan_payment(h.principal, h.interest_rate, h.loan_term) if h.has_loan else 0.0
        )
        c = inp.car
        self.car_payment = (
            calc_annual_loan_payment(c.principal, c.interest_rate, c.loan_term) if c.has_car else 0.0
        )
        self._car_loan_remaining = self._initial_car_loan_term()

        self.children: list[tuple[int, Child]] = []
        if inp.education.has_children:
            for i, child in enumerate(inp.education.children, start=1):
                if child.birth_year <= 0:
                    logger.warning("子供%dの生年が未入力のため教育費を計上しません", i)
                    continue
                self.children.append((i, child))
        logger.debug(
            "cost schedule: housing=%.0f/年 car=%.0f/年 children=%d",
            self.housing_payment, self.car_payment, len(self.children),
        )

    def _initial_car_loan_term(self) -> int:
        c = self.inp.car
        if not c.has_car:
            return 0
        elapsed = self.inp.current_age - c.purchase_age
        if elapsed <= 0:
            return c.loan_term
        # 開始年齢より前に購入済み: 現在の車の経過年数だけ返済が進んでいる
        since_purchase = elapsed % c.replacement_cycle if c.replacement_cycle > 0 else elapsed
        return max(0, c.loan_term - since_purchase)

    def child_age(self, child: Child, age: int) -> int:
        """Translate a child's birth year onto the parent's age axis."""
        calendar_year = self.start_year + (age - self.inp.current_age)
        return calendar_year - child.birth_year

    def resolve(self, age: int) -> YearCosts:
        costs = YearCosts()
        self._add_housing(age, costs)
        self._add_education(age, costs)
        self._add_car(age, costs)
        self._add_senior(age, costs)
        return costs

    def _add_housing(self, age: int, costs: YearCosts) -> None:
        h = self.inp.housing
        if not h.has_loan:
            return
        payoff_age = h.start_age + h.loan_term
        if age == h.start_age:
            costs.add_expense(EXPENSE_HOUSE_DOWN_PAYMENT, h.down_payment)
            costs.milestones.append(Milestone(ms.HOUSE_PURCHASE, age, {"down_payment": h.down_payment}))
        if h.start_age <= age < payoff_age:
            costs.add_expense(EXPENSE_HOUSING_LOAN, self.housing_payment)
        if age >= h.start_age:
            costs.add_expense(EXPENSE_PROPERTY_TAX, h.property_value * h.property_tax_rate / 100)
        if h.loan_term > 0 and age == payoff_age:
            costs.milestones.append(Milestone(ms.HOUSE_PAYOFF, age))

    def _add_education(self, age: int, costs: YearCosts) -> None:
        edu = self.inp.education
        for index, child in self.children:
            child_age = self.child_age(child, age)
            if not CHILD_AGE_START <= child_age <= CHILD_AGE_END:
                continue
            costs.add_expense(
                EXPENSE_EDUCATION,
                education_cost(child_age, child.plan, child.custom_amount, self.table),
            )
            costs.add_expense(EXPENSE_CHILD_LIVING, edu.child_living_cost)
            if edu.child_allowance:
                costs.add_income(INCOME_CHILD_ALLOWANCE, child_allowance_annual(child_age))

            if child.plan == PLAN_CUSTOM and child.custom_amount > 0:
                if child_age == CHILD_AGE_START:
                    costs.milestones.append(Milestone(
                        ms.EDUCATION_STAGE, age,
                        {"child": index, "stage": ms.STAGE_CUSTOM, "amount": child.custom_amount},
                    ))
                continue
            for lo, _hi, stage in EDUCATION_TIERS:
                if child_age == lo:
                    costs.milestones.append(
                        Milestone(ms.EDUCATION_STAGE, age, {"child": index, "stage": stage})
                    )
                    break

    def _add_car(self, age: int, costs: YearCosts) -> None:
        c = self.inp.car
        if not c.has_car or age < c.purchase_age:
            return
        years_owned = age - c.purchase_age
        if years_owned == 0:
            costs.add_expense(EXPENSE_CAR_DOWN_PAYMENT, c.down_payment)
            costs.milestones.append(Milestone(ms.CAR_PURCHASE, age, {"down_payment": c.down_payment}))
        elif c.replacement_cycle > 0 and years_owned % c.replacement_cycle == 0:
            costs.add_expense(EXPENSE_CAR_REPLACEMENT_DOWN_PAYMENT, c.down_payment)
            costs.add_expense(EXPENSE_CAR_REPLACEMENT_BALANCE, c.principal)
            self._car_loan_remaining = c.loan_term
            costs.milestones.append(Milestone(ms.CAR_REPLACEMENT, age, {"down_payment": c.down_payment}))
        costs.add_expense(EXPENSE_CAR_MAINTENANCE, c.maintenance_cost)
        if self._car_loan_remaining > 0:
            costs.add_expense(EXPENSE_CAR_LOAN, self.car_payment)
            self._car_loan_remaining -= 1

    def _add_senior(self, age: int, costs: YearCosts) -> None:
        s = self.inp.senior
        if not s.enabled or age < s.start_age:
            return
        if age == s.start_age:
            costs.milestones.append(Milestone(ms.SENIOR_START, age))
        costs.add_expense(EXPENSE_SENIOR_LIVING, s.monthly_expense * 12)
        costs.add_expense(EXPENSE_CARE, s.care_cost)
