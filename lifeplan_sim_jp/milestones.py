"""Structured milestone events and their Japanese narrative rendering."""

from dataclasses import dataclass, field

HOUSE_PURCHASE = "house_purchase"
HOUSE_PAYOFF = "house_payoff"
CAR_PURCHASE = "car_purchase"
CAR_REPLACEMENT = "car_replacement"
EDUCATION_STAGE = "education_stage"
RETIREMENT = "retirement"
PENSION_START = "pension_start"
SENIOR_START = "senior_start"
INSOLVENCY = "insolvency"

# Education stages keyed by the child age at which they begin
STAGE_PRESCHOOL = "preschool"
STAGE_ELEMENTARY = "elementary"
STAGE_MIDDLE = "middle"
STAGE_HIGH = "high"
STAGE_UNIVERSITY = "university"
STAGE_CUSTOM = "custom"

STAGE_LABELS = {
    STAGE_PRESCHOOL: "幼稚園・保育園",
    STAGE_ELEMENTARY: "小学校",
    STAGE_MIDDLE: "中学校",
    STAGE_HIGH: "高校",
    STAGE_UNIVERSITY: "大学",
    STAGE_CUSTOM: "カスタム教育プラン",
}


@dataclass(frozen=True)
class Milestone:
    kind: str
    age: int
    payload: dict = field(default_factory=dict)


def _man(amount: float) -> str:
    """Format yen as 万円 text (e.g. 10000000 → '1,000万円')."""
    return f"{amount / 10000:,.0f}万円"


def format_milestone(m: Milestone) -> str:
    """Render one milestone as a '{age}歳: ...' line."""
    p = m.payload
    if m.kind == HOUSE_PURCHASE:
        text = f"住宅購入。頭金{_man(p.get('down_payment', 0))}を支出し、ローン返済が開始します。"
    elif m.kind == HOUSE_PAYOFF:
        text = "住宅ローン完済。ローン返済が終了します。"
    elif m.kind == CAR_PURCHASE:
        text = f"自動車購入。頭金{_man(p.get('down_payment', 0))}を支出し、ローン返済が開始します。"
    elif m.kind == CAR_REPLACEMENT:
        text = f"自動車の買い替え。頭金{_man(p.get('down_payment', 0))}を支出し、新たなローン返済が開始します。"
    elif m.kind == EDUCATION_STAGE:
        label = STAGE_LABELS.get(p.get("stage"), str(p.get("stage")))
        text = f"子供{p.get('child', 1)}が{label}に進みます。"
        if p.get("stage") == STAGE_CUSTOM:
            text = f"子供{p.get('child', 1)}の{label}（年間{_man(p.get('amount', 0))}）が始まります。"
    elif m.kind == RETIREMENT:
        text = f"退職。退職金{_man(p.get('severance_pay', 0))}が加算されます。"
    elif m.kind == PENSION_START:
        text = f"年金受給開始。年間{_man(p.get('amount', 0))}の収入が始まります。"
    elif m.kind == SENIOR_START:
        text = "老後の生活費・介護費の計上が始まります。"
    elif m.kind == INSOLVENCY:
        text = "貯蓄がマイナスになりました。プランの見直しが必要です。"
    else:
        text = m.kind
    return f"{m.age}歳: {text}"


def render_summary(milestones: list[Milestone]) -> str:
    return "\n".join(format_milestone(m) for m in milestones)
