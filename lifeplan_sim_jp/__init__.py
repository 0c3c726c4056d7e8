"""Life Plan Projection Package."""

from lifeplan_sim_jp.params import (
    SimulationInput,
    LifeEvent,
    HousingLoan,
    Child,
    EducationPlan,
    CarLoan,
    SeniorCare,
    calc_annual_loan_payment,
)
from lifeplan_sim_jp.costs import (
    CostSchedule,
    YearCosts,
    EDUCATION_COST,
    EDUCATION_TIERS,
    education_cost,
    education_stage,
)
from lifeplan_sim_jp.events import EventTotals, aggregate_events
from lifeplan_sim_jp.milestones import Milestone, format_milestone, render_summary
from lifeplan_sim_jp.simulation import (
    YearSnapshot,
    ProjectionResult,
    project,
    choose_advice,
    LOW_RESERVE_THRESHOLD,
)
from lifeplan_sim_jp.validation import validate_input, run_projection

__all__ = [
    "SimulationInput",
    "LifeEvent",
    "HousingLoan",
    "Child",
    "EducationPlan",
    "CarLoan",
    "SeniorCare",
    "calc_annual_loan_payment",
    "CostSchedule",
    "YearCosts",
    "EDUCATION_COST",
    "EDUCATION_TIERS",
    "education_cost",
    "education_stage",
    "EventTotals",
    "aggregate_events",
    "Milestone",
    "format_milestone",
    "render_summary",
    "YearSnapshot",
    "ProjectionResult",
    "project",
    "choose_advice",
    "LOW_RESERVE_THRESHOLD",
    "validate_input",
    "run_projection",
]
