"""Life event aggregation: fold one-time/recurring events into a year's totals."""

from dataclasses import dataclass, field

from lifeplan_sim_jp.params import EVENT_INCOME, LifeEvent

OTHER_INCOME_LABEL = "その他収入"
OTHER_EXPENSE_LABEL = "その他支出"


@dataclass
class EventTotals:
    """Income/expense contributed by life events in a single year."""

    income: float = 0.0
    expense: float = 0.0
    income_details: dict[str, float] = field(default_factory=dict)
    expense_details: dict[str, float] = field(default_factory=dict)


def aggregate_events(events: tuple[LifeEvent, ...] | list[LifeEvent], age: int) -> EventTotals:
    """Sum events whose [start_age, end_age or start_age] contains age.

    Events sharing a description accumulate under one detail key.
    """
    totals = EventTotals()
    for event in events:
        if not event.is_active(age):
            continue
        if event.type == EVENT_INCOME:
            key = event.description or OTHER_INCOME_LABEL
            totals.income += event.amount
            totals.income_details[key] = totals.income_details.get(key, 0) + event.amount
        else:
            key = event.description or OTHER_EXPENSE_LABEL
            totals.expense += event.amount
            totals.expense_details[key] = totals.expense_details.get(key, 0) + event.amount
    return totals
