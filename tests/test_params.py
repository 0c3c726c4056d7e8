"""Tests for SimulationInput normalization and the loan payment helper."""

import pytest
from lifeplan_sim_jp import SimulationInput, LifeEvent, calc_annual_loan_payment
from lifeplan_sim_jp.params import PLAN_PUBLIC, _num


class TestCalcAnnualLoanPayment:
    def test_zero_principal(self):
        assert calc_annual_loan_payment(0, 1.5, 35) == 0

    def test_negative_principal(self):
        assert calc_annual_loan_payment(-100, 1.5, 35) == 0

    def test_zero_term(self):
        assert calc_annual_loan_payment(3_000_000, 1.5, 0) == 0

    def test_negative_rate(self):
        assert calc_annual_loan_payment(3_000_000, -0.5, 35) == 0

    def test_zero_rate_is_straight_line(self):
        assert calc_annual_loan_payment(1_200_000, 0, 10) == 120_000

    def test_monthly_compounding_formula(self):
        """Monthly equal payment, annualized ×12."""
        r = 1.5 / 100 / 12
        n = 35 * 12
        monthly = 3_000_000 * r * (1 + r) ** n / ((1 + r) ** n - 1)
        assert calc_annual_loan_payment(3_000_000, 1.5, 35) == pytest.approx(monthly * 12, rel=1e-12)

    def test_matches_amortization_table(self):
        """3,000万円・1.5%・35年 → 月額91,855円（返済額早見表）."""
        annual = calc_annual_loan_payment(30_000_000, 1.5, 35)
        assert annual / 12 == pytest.approx(91_855, abs=2)

    def test_reference_value_is_positive_and_stable(self):
        a = calc_annual_loan_payment(3_000_000, 1.5, 35)
        b = calc_annual_loan_payment(3_000_000, 1.5, 35)
        assert a > 0
        assert a == b
        assert a == pytest.approx(110_226, abs=5)


class TestNum:
    @pytest.mark.parametrize("value", [None, "", "abc", float("nan"), float("inf"), [1]])
    def test_blank_and_invalid_become_default(self, value):
        assert _num(value) == 0.0

    def test_numeric_string(self):
        assert _num("3.5") == 3.5

    def test_custom_default(self):
        assert _num(None, 7.0) == 7.0


class TestFromDict:
    def test_missing_fields_default_to_zero(self):
        inp = SimulationInput.from_dict({"current_age": 30, "retirement_age": 65})
        assert inp.current_savings == 0
        assert inp.annual_income == 0
        assert inp.salary_increase_rate == 0
        assert inp.pension_start_date == 0
        assert inp.life_events == ()
        assert inp.start_year is None

    def test_missing_life_expectancy_defaults_to_100(self):
        inp = SimulationInput.from_dict({"current_age": 30, "retirement_age": 65})
        assert inp.life_expectancy == 100

    def test_blank_numbers_degrade_to_zero(self):
        inp = SimulationInput.from_dict({
            "current_age": "30", "retirement_age": 65, "life_expectancy": 95,
            "annual_income": "", "monthly_expenses": None, "annual_return": "n/a",
        })
        assert inp.current_age == 30
        assert inp.annual_income == 0
        assert inp.monthly_expenses == 0
        assert inp.annual_return == 0

    def test_sub_records_disabled_by_default(self):
        inp = SimulationInput.from_dict({})
        assert not inp.housing.has_loan
        assert not inp.education.has_children
        assert not inp.car.has_car
        assert not inp.senior.enabled

    def test_housing_principal(self):
        inp = SimulationInput.from_dict({
            "housing": {"has_loan": True, "property_value": 40_000_000, "down_payment": 10_000_000},
        })
        assert inp.housing.principal == 30_000_000

    def test_principal_never_negative(self):
        inp = SimulationInput.from_dict({"car": {"has_car": True, "price": 1_000_000, "down_payment": 2_000_000}})
        assert inp.car.principal == 0

    def test_children(self):
        inp = SimulationInput.from_dict({
            "education": {
                "has_children": True,
                "children": [
                    {"birth_year": 2020, "plan": "private_science"},
                    {"birth_year": "", "plan": "unknown"},
                    {"birth_year": 2024, "plan": "custom", "custom_amount": 500_000},
                ],
            },
        })
        children = inp.education.children
        assert len(children) == 3
        assert children[0].plan == "private_science"
        assert children[1].birth_year == 0
        assert children[1].plan == PLAN_PUBLIC
        assert children[2].custom_amount == 500_000

    def test_string_flag(self):
        inp = SimulationInput.from_dict({"senior": {"enabled": "true", "start_age": 75}})
        assert inp.senior.enabled


class TestLifeEvent:
    def test_age_alias(self):
        e = LifeEvent.from_dict({"age": 35, "amount": 500_000, "description": "結婚式"})
        assert e.start_age == 35
        assert e.end_age is None
        assert e.type == "expense"
        assert e.id == "event-1"

    def test_one_time_when_end_equals_start(self):
        e = LifeEvent(start_age=40, end_age=40)
        assert not e.is_recurring
        assert e.is_active(40)
        assert not e.is_active(41)

    def test_recurring_inclusive(self):
        e = LifeEvent(start_age=60, end_age=64, type="income", amount=1_200_000)
        assert e.is_recurring
        assert not e.is_active(59)
        assert e.is_active(60)
        assert e.is_active(64)
        assert not e.is_active(65)

    def test_unknown_type_is_expense(self):
        e = LifeEvent.from_dict({"start_age": 35, "type": "gift"})
        assert e.type == "expense"

    def test_input_is_immutable(self):
        inp = SimulationInput()
        with pytest.raises(AttributeError):
            inp.current_age = 40
