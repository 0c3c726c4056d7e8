"""Tests for project() and the advice/summary synthesis."""

import dataclasses

import pytest
from lifeplan_sim_jp import (
    SimulationInput,
    LifeEvent,
    HousingLoan,
    CarLoan,
    SeniorCare,
    project,
    choose_advice,
    LOW_RESERVE_THRESHOLD,
)
from lifeplan_sim_jp import milestones as ms
from lifeplan_sim_jp.costs import EXPENSE_HOUSING_LOAN, EXPENSE_PROPERTY_TAX
from lifeplan_sim_jp.simulation import (
    ADVICE_ON_TRACK,
    EXPENSE_BASE_LIVING,
    INCOME_INVESTMENT,
    INCOME_PENSION,
    INCOME_SALARY,
    INCOME_SEVERANCE,
    round_half_up,
)


def _base_input(**overrides) -> SimulationInput:
    values = dict(
        current_age=30,
        retirement_age=65,
        life_expectancy=95,
        current_savings=1_000_000,
        annual_income=5_000_000,
        monthly_expenses=200_000,
        investment_ratio=50,
        annual_return=3,
        pension_amount_per_year=1_500_000,
        pension_start_date=65,
        severance_pay=10_000_000,
        start_year=2026,
    )
    values.update(overrides)
    return SimulationInput(**values)


def _by_age(result) -> dict:
    return {s.age: s for s in result.asset_data}


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(-0.5) == 0

    def test_regular(self):
        assert round_half_up(2.4) == 2
        assert round_half_up(-2.6) == -3


class TestBaseScenario:
    """30歳→95歳、ローン・子供・車なし."""

    def setup_method(self):
        self.result = project(_base_input())
        self.years = _by_age(self.result)

    def test_length(self):
        assert len(self.result.asset_data) == 95 - 30 + 1

    def test_first_year(self):
        first = self.result.asset_data[0]
        assert first.age == 30
        assert first.year == 2026
        assert first.income == 5_000_000
        assert first.expense == 2_400_000
        assert first.investment_gains == 15_000
        assert first.savings == round(1_000_000 + 1_000_000 * 0.5 * 0.03 + (5_000_000 - 2_400_000))

    def test_balance_includes_investment_gains(self):
        first = self.result.asset_data[0]
        assert first.balance == 2_615_000

    def test_details(self):
        first = self.result.asset_data[0]
        assert list(first.income_details) == [INCOME_SALARY, INCOME_INVESTMENT]
        assert first.income_details[INCOME_INVESTMENT] == 15_000
        assert first.expense_details == {EXPENSE_BASE_LIVING: 2_400_000}

    def test_years_are_consecutive(self):
        assert [s.year for s in self.result.asset_data] == list(range(2026, 2026 + 66))

    def test_savings_chain(self):
        """Growth uses the prior year's closing savings."""
        prev = self.years[30]
        cur = self.years[31]
        expected_growth = prev.savings * 0.5 * 0.03
        assert cur.investment_gains == pytest.approx(expected_growth, abs=1)
        assert cur.savings == pytest.approx(prev.savings + cur.balance, abs=2)

    def test_retirement_year(self):
        y = self.years[65]
        assert INCOME_SALARY not in y.income_details
        assert y.income_details[INCOME_SEVERANCE] == 10_000_000
        assert y.income_details[INCOME_PENSION] == 1_500_000
        assert y.income == 11_500_000

    def test_last_working_year_has_salary(self):
        assert self.years[64].income_details[INCOME_SALARY] == 5_000_000

    def test_after_retirement(self):
        assert self.years[66].income == 1_500_000
        assert INCOME_SEVERANCE not in self.years[66].income_details

    def test_final_savings(self):
        assert self.result.final_savings == self.result.asset_data[-1].savings
        assert self.result.final_savings > LOW_RESERVE_THRESHOLD

    def test_advice(self):
        assert self.result.advice == ADVICE_ON_TRACK

    def test_summary(self):
        lines = self.result.calculation_summary.split("\n")
        assert lines == [
            "65歳: 退職。退職金1,000万円が加算されます。",
            "65歳: 年金受給開始。年間150万円の収入が始まります。",
        ]

    def test_echoed_inputs(self):
        r = self.result
        assert (r.current_age, r.retirement_age, r.life_expectancy, r.pension_start_date) == (30, 65, 95, 65)
        assert r.errors == []

    def test_no_insolvency(self):
        assert self.result.insolvency_age is None


class TestSalaryEscalation:
    def test_one_year_lag(self):
        years = _by_age(project(_base_input(salary_increase_rate=2)))
        assert years[30].income_details[INCOME_SALARY] == 5_000_000
        assert years[31].income_details[INCOME_SALARY] == 5_100_000
        for t in range(0, 35):
            expected = 5_000_000 * 1.02 ** t
            assert years[30 + t].income_details[INCOME_SALARY] == pytest.approx(expected, abs=1)

    def test_zero_rate_is_flat(self):
        years = _by_age(project(_base_input()))
        assert all(years[a].income_details[INCOME_SALARY] == 5_000_000 for a in range(30, 65))


class TestLifeEvents:
    def test_one_time_expense(self):
        event = LifeEvent(id="e1", start_age=35, description="結婚式", type="expense", amount=500_000)
        years = _by_age(project(_base_input(life_events=(event,))))
        assert years[35].expense == 2_400_000 + 500_000
        assert years[35].expense_details["結婚式"] == 500_000
        assert years[34].expense == 2_400_000
        assert years[36].expense == 2_400_000

    def test_recurring_income(self):
        event = LifeEvent(id="e1", start_age=65, end_age=69, description="再雇用", type="income", amount=2_000_000)
        years = _by_age(project(_base_input(life_events=(event,))))
        for age in range(65, 70):
            assert years[age].income_details["再雇用"] == 2_000_000
        assert "再雇用" not in years[64].income_details
        assert "再雇用" not in years[70].income_details

    def test_separate_life_events_parameter(self):
        event = LifeEvent(id="e1", start_age=35, description="結婚式", amount=500_000)
        embedded = _base_input(life_events=(event,))
        assert _by_age(project(embedded, life_events=[]))[35].expense == 2_400_000
        assert _by_age(project(_base_input(), life_events=[event]))[35].expense == 2_900_000
        assert project(embedded).to_dict() == project(_base_input(), life_events=[event]).to_dict()


class TestInsolvency:
    def _poor_input(self, **overrides) -> SimulationInput:
        values = dict(annual_income=1_000_000, investment_ratio=0, severance_pay=0, pension_amount_per_year=0)
        values.update(overrides)
        return _base_input(**values)

    def test_goes_negative_by_default(self):
        result = project(self._poor_input())
        years = _by_age(result)
        assert years[30].savings == -400_000
        assert years[31].savings == -1_800_000
        assert result.final_savings < 0

    def test_milestone_once(self):
        result = project(self._poor_input())
        insolvency = [m for m in result.milestones if m.kind == ms.INSOLVENCY]
        assert len(insolvency) == 1
        assert insolvency[0].age == 30
        assert result.insolvency_age == 30
        assert "30歳: 貯蓄がマイナスになりました。" in result.calculation_summary

    def test_first_crossing_age(self):
        result = project(self._poor_input(current_savings=3_000_000))
        # 3,000,000 → 1,600,000 → 200,000 → -1,200,000
        assert result.insolvency_age == 32
        assert _by_age(result)[31].savings == 200_000

    def test_clamp(self):
        result = project(self._poor_input(), clamp_negative_savings=True)
        years = _by_age(result)
        assert all(s.savings >= 0 for s in result.asset_data)
        assert years[30].savings == 0
        assert years[30].balance == -1_400_000
        assert result.insolvency_age == 30
        assert len([m for m in result.milestones if m.kind == ms.INSOLVENCY]) == 1
        assert result.final_savings == 0

    def test_clamp_allows_recovery(self):
        event = LifeEvent(start_age=40, type="income", description="相続", amount=50_000_000)
        result = project(self._poor_input(life_events=(event,)), clamp_negative_savings=True)
        years = _by_age(result)
        assert years[39].savings == 0
        assert years[40].savings == 50_000_000 + 1_000_000 - 2_400_000

    def test_negative_growth_is_credited(self):
        result = project(self._poor_input(investment_ratio=50, current_savings=-1_000_000))
        first = result.asset_data[0]
        assert first.investment_gains == -15_000
        assert first.income_details[INCOME_INVESTMENT] == -15_000

    def test_negative_return(self):
        first = project(_base_input(annual_return=-10)).asset_data[0]
        assert first.investment_gains == -50_000
        assert first.savings == 1_000_000 - 50_000 + 2_600_000


class TestCostsIntegration:
    def test_housing_flows_into_expense(self):
        inp = _base_input(housing=HousingLoan(
            has_loan=True, property_value=40_000_000, down_payment=10_000_000,
            interest_rate=1.5, loan_term=35, start_age=35, property_tax_rate=0.3,
        ))
        result = project(inp)
        years = _by_age(result)
        assert years[35].expense_details["住宅頭金"] == 10_000_000
        assert EXPENSE_HOUSING_LOAN in years[36].expense_details
        assert EXPENSE_HOUSING_LOAN not in years[70].expense_details
        assert years[95].expense_details[EXPENSE_PROPERTY_TAX] == 120_000
        kinds = [(m.age, m.kind) for m in result.milestones]
        assert (35, ms.HOUSE_PURCHASE) in kinds
        assert (70, ms.HOUSE_PAYOFF) in kinds

    def test_expense_total_is_sum_of_details(self):
        inp = _base_input(
            car=CarLoan(has_car=True, price=3_000_000, down_payment=1_000_000, interest_rate=2.5,
                        loan_term=5, maintenance_cost=150_000, purchase_age=30, replacement_cycle=10),
            senior=SeniorCare(enabled=True, start_age=80, monthly_expense=50_000, care_cost=500_000),
        )
        for s in project(inp).asset_data:
            assert s.expense == pytest.approx(sum(s.expense_details.values()), abs=len(s.expense_details))

    def test_milestones_chronological(self):
        inp = _base_input(
            car=CarLoan(has_car=True, price=3_000_000, down_payment=1_000_000, loan_term=5,
                        purchase_age=30, replacement_cycle=10),
            senior=SeniorCare(enabled=True, start_age=80),
        )
        ages = [m.age for m in project(inp).milestones]
        assert ages == sorted(ages)
        assert ages.count(40) == 1


class TestAdvice:
    def test_depleted(self):
        assert "資産が枯渇" in choose_advice(0, 95)
        assert "95歳" in choose_advice(-1, 95)

    def test_low_reserve(self):
        assert "2,000万円を下回る" in choose_advice(1, 95)
        assert "2,000万円を下回る" in choose_advice(LOW_RESERVE_THRESHOLD - 1, 95)

    def test_on_track(self):
        assert choose_advice(LOW_RESERVE_THRESHOLD, 95) == ADVICE_ON_TRACK


class TestDeterminism:
    def test_idempotent(self):
        inp = _base_input(
            salary_increase_rate=2,
            life_events=(LifeEvent(start_age=35, description="結婚式", amount=500_000),),
            car=CarLoan(has_car=True, price=3_000_000, down_payment=1_000_000, interest_rate=2.5,
                        loan_term=5, purchase_age=30, replacement_cycle=10),
        )
        snapshot = dataclasses.asdict(inp)
        first = project(inp)
        second = project(inp)
        assert first.to_dict() == second.to_dict()
        assert dataclasses.asdict(inp) == snapshot

    def test_empty_when_horizon_inverted(self):
        result = project(_base_input(current_age=96))
        assert result.asset_data == []
        assert result.final_savings == 0


class TestToDict:
    def test_keys(self):
        d = project(_base_input()).to_dict()
        assert set(d) == {
            "assetData", "finalSavings", "currentAge", "retirementAge", "lifeExpectancy",
            "pensionStartDate", "advice", "calculationSummary", "errors",
        }
        first = d["assetData"][0]
        assert first["incomeDetails"][INCOME_SALARY] == 5_000_000
        assert first["expenseDetails"] == {EXPENSE_BASE_LIVING: 2_400_000}
        assert first["investmentGains"] == 15_000
