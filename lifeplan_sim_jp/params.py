"""Simulation input record and financial calculation helpers."""

import math
from dataclasses import dataclass, field

DEFAULT_LIFE_EXPECTANCY = 100

EVENT_INCOME = "income"
EVENT_EXPENSE = "expense"

PLAN_PUBLIC = "public"
PLAN_PRIVATE_LIBERAL = "private_liberal"
PLAN_PRIVATE_SCIENCE = "private_science"
PLAN_CUSTOM = "custom"
EDUCATION_PLANS = (PLAN_PUBLIC, PLAN_PRIVATE_LIBERAL, PLAN_PRIVATE_SCIENCE, PLAN_CUSTOM)


def _num(value, default: float = 0.0) -> float:
    """Coerce a loosely-typed field to float. Blank, non-numeric and NaN → default."""
    if value is None or value == "":
        return default
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(v) or math.isinf(v):
        return default
    return v


def _int(value, default: int = 0) -> int:
    return int(_num(value, default))


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def calc_annual_loan_payment(principal: float, annual_rate_percent: float, term_years: int) -> float:
    """Calculate annual payment of a fixed-rate loan (元利均等返済, 月複利→年額換算).

    Returns 0 for a loan with no principal, no term or a negative rate.
    """
    if principal <= 0 or term_years <= 0 or annual_rate_percent < 0:
        return 0.0
    if annual_rate_percent == 0:
        return principal / term_years
    r = annual_rate_percent / 100 / 12
    n = term_years * 12
    monthly = principal * r * (1 + r) ** n / ((1 + r) ** n - 1)
    return monthly * 12


@dataclass(frozen=True)
class LifeEvent:
    """One-time (end_age None or == start_age) or recurring income/expense."""

    id: str = ""
    start_age: int = 0
    end_age: int | None = None
    description: str = ""
    type: str = EVENT_EXPENSE
    amount: float = 0.0  # 1回あたり（単発）/ 年額（継続）

    @property
    def is_recurring(self) -> bool:
        return self.end_age is not None and self.end_age != self.start_age

    @property
    def last_age(self) -> int:
        return self.start_age if self.end_age is None else self.end_age

    def is_active(self, age: int) -> bool:
        return self.start_age <= age <= self.last_age

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "LifeEvent":
        start = data.get("start_age", data.get("age"))
        end = data.get("end_age")
        event_type = str(data.get("type") or EVENT_EXPENSE).strip().lower()
        return cls(
            id=str(data.get("id") or f"event-{index + 1}"),
            start_age=_int(start),
            end_age=None if end is None or end == "" else _int(end),
            description=str(data.get("description") or ""),
            type=EVENT_INCOME if event_type == EVENT_INCOME else EVENT_EXPENSE,
            amount=_num(data.get("amount")),
        )


@dataclass(frozen=True)
class HousingLoan:
    has_loan: bool = False
    property_value: float = 0.0
    down_payment: float = 0.0
    interest_rate: float = 0.0  # 年利（%）
    loan_term: int = 0
    start_age: int = 0
    property_tax_rate: float = 0.0  # 固定資産税率（評価額に対する%）

    @property
    def principal(self) -> float:
        return max(0.0, self.property_value - self.down_payment)

    @classmethod
    def from_dict(cls, data: dict | None) -> "HousingLoan":
        data = data or {}
        return cls(
            has_loan=_flag(data.get("has_loan", False)),
            property_value=_num(data.get("property_value")),
            down_payment=_num(data.get("down_payment")),
            interest_rate=_num(data.get("interest_rate")),
            loan_term=_int(data.get("loan_term")),
            start_age=_int(data.get("start_age")),
            property_tax_rate=_num(data.get("property_tax_rate")),
        )


@dataclass(frozen=True)
class Child:
    birth_year: int = 0  # 0 = 未入力
    plan: str = PLAN_PUBLIC
    custom_amount: float = 0.0  # 年額（customプランのみ）

    @classmethod
    def from_dict(cls, data: dict) -> "Child":
        plan = str(data.get("plan") or PLAN_PUBLIC)
        return cls(
            birth_year=_int(data.get("birth_year")),
            plan=plan if plan in EDUCATION_PLANS else PLAN_PUBLIC,
            custom_amount=_num(data.get("custom_amount")),
        )


@dataclass(frozen=True)
class EducationPlan:
    has_children: bool = False
    children: tuple[Child, ...] = ()
    child_living_cost: float = 0.0  # 子1人あたりの年間生活費（0〜21歳）
    child_allowance: bool = False  # 児童手当を収入に計上

    @classmethod
    def from_dict(cls, data: dict | None) -> "EducationPlan":
        data = data or {}
        return cls(
            has_children=_flag(data.get("has_children", False)),
            children=tuple(Child.from_dict(c) for c in data.get("children") or ()),
            child_living_cost=_num(data.get("child_living_cost")),
            child_allowance=_flag(data.get("child_allowance", False)),
        )


@dataclass(frozen=True)
class CarLoan:
    has_car: bool = False
    price: float = 0.0
    down_payment: float = 0.0
    interest_rate: float = 0.0
    loan_term: int = 0
    maintenance_cost: float = 0.0  # 年額
    purchase_age: int = 0
    replacement_cycle: int = 0  # 0 = 買い替えなし

    @property
    def principal(self) -> float:
        return max(0.0, self.price - self.down_payment)

    @classmethod
    def from_dict(cls, data: dict | None) -> "CarLoan":
        data = data or {}
        return cls(
            has_car=_flag(data.get("has_car", False)),
            price=_num(data.get("price")),
            down_payment=_num(data.get("down_payment")),
            interest_rate=_num(data.get("interest_rate")),
            loan_term=_int(data.get("loan_term")),
            maintenance_cost=_num(data.get("maintenance_cost")),
            purchase_age=_int(data.get("purchase_age")),
            replacement_cycle=_int(data.get("replacement_cycle")),
        )


@dataclass(frozen=True)
class SeniorCare:
    enabled: bool = False
    start_age: int = 0
    monthly_expense: float = 0.0
    care_cost: float = 0.0  # 介護費（年額）

    @classmethod
    def from_dict(cls, data: dict | None) -> "SeniorCare":
        data = data or {}
        return cls(
            enabled=_flag(data.get("enabled", False)),
            start_age=_int(data.get("start_age")),
            monthly_expense=_num(data.get("monthly_expense")),
            care_cost=_num(data.get("care_cost")),
        )


@dataclass(frozen=True)
class SimulationInput:

    # Ages
    current_age: int = 30
    retirement_age: int = 65
    life_expectancy: int = 95

    # Money (円)
    current_savings: float = 0.0
    annual_income: float = 0.0
    monthly_expenses: float = 0.0
    severance_pay: float = 0.0
    pension_amount_per_year: float = 0.0
    pension_start_date: int = 65  # 年金受給開始年齢

    # Rates (%)
    salary_increase_rate: float = 0.0
    investment_ratio: float = 0.0  # 資産のうち運用に回す割合（0-100）
    annual_return: float = 0.0

    housing: HousingLoan = field(default_factory=HousingLoan)
    education: EducationPlan = field(default_factory=EducationPlan)
    car: CarLoan = field(default_factory=CarLoan)
    senior: SeniorCare = field(default_factory=SeniorCare)
    life_events: tuple[LifeEvent, ...] = ()

    # 初年度の西暦（None = 実行時の今年）
    start_year: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationInput":
        """Build a fully-defaulted input from loosely-typed data (TOML, JSON body)."""
        events = data.get("life_events") or ()
        start_year = data.get("start_year")
        return cls(
            current_age=_int(data.get("current_age")),
            retirement_age=_int(data.get("retirement_age")),
            life_expectancy=_int(data.get("life_expectancy"), DEFAULT_LIFE_EXPECTANCY) or DEFAULT_LIFE_EXPECTANCY,
            current_savings=_num(data.get("current_savings")),
            annual_income=_num(data.get("annual_income")),
            monthly_expenses=_num(data.get("monthly_expenses")),
            severance_pay=_num(data.get("severance_pay")),
            pension_amount_per_year=_num(data.get("pension_amount_per_year")),
            pension_start_date=_int(data.get("pension_start_date")),
            salary_increase_rate=_num(data.get("salary_increase_rate")),
            investment_ratio=_num(data.get("investment_ratio")),
            annual_return=_num(data.get("annual_return")),
            housing=HousingLoan.from_dict(data.get("housing")),
            education=EducationPlan.from_dict(data.get("education")),
            car=CarLoan.from_dict(data.get("car")),
            senior=SeniorCare.from_dict(data.get("senior")),
            life_events=tuple(LifeEvent.from_dict(e, i) for i, e in enumerate(events)),
            start_year=None if start_year in (None, "") else _int(start_year),
        )
