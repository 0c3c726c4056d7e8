"""Chart generation for life plan projection results."""

import platform
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from lifeplan_sim_jp import costs
from lifeplan_sim_jp import milestones as ms
from lifeplan_sim_jp.simulation import EXPENSE_BASE_LIVING, ProjectionResult

# Expense category → stack group
EXPENSE_GROUPS = {
    EXPENSE_BASE_LIVING: "生活費",
    costs.EXPENSE_HOUSE_DOWN_PAYMENT: "住居費",
    costs.EXPENSE_HOUSING_LOAN: "住居費",
    costs.EXPENSE_PROPERTY_TAX: "住居費",
    costs.EXPENSE_EDUCATION: "教育費",
    costs.EXPENSE_CHILD_LIVING: "教育費",
    costs.EXPENSE_CAR_DOWN_PAYMENT: "自動車",
    costs.EXPENSE_CAR_REPLACEMENT_DOWN_PAYMENT: "自動車",
    costs.EXPENSE_CAR_REPLACEMENT_BALANCE: "自動車",
    costs.EXPENSE_CAR_LOAN: "自動車",
    costs.EXPENSE_CAR_MAINTENANCE: "自動車",
    costs.EXPENSE_SENIOR_LIVING: "老後費用",
    costs.EXPENSE_CARE: "老後費用",
}
OTHER_GROUP = "ライフイベント"

GROUP_COLORS = {
    "生活費": "#66c2a5",
    "住居費": "#8da0cb",
    "教育費": "#fc8d62",
    "自動車": "#e78ac3",
    "老後費用": "#a6d854",
    OTHER_GROUP: "#ffd92f",
}

COLOR_SAVINGS = "#1f77b4"
COLOR_INCOME = "#1f77b4"
COLOR_WARNING = "#d62728"


def _setup_japanese_font():
    """Configure matplotlib to use a Japanese font."""
    system = platform.system()
    if system == "Darwin":
        font_family = "Hiragino Sans"
    elif system == "Linux":
        font_family = "Noto Sans CJK JP"
    else:
        font_family = "sans-serif"
    plt.rcParams["font.family"] = font_family
    plt.rcParams["axes.unicode_minus"] = False


def _format_man_axis(ax: plt.Axes):
    """Show yen values in 万円 on the left and 億円 on the right."""
    ax.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x / 10000:,.0f}")
    )
    ax_right = ax.secondary_yaxis("right")
    ax_right.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x / 1e8:.1f}億" if x != 0 else "0")
    )
    ax_right.set_ylabel("")


def _output_file(output_path: Path, stem: str, name: str) -> Path:
    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    return output_path / f"{stem}{suffix}.png"


def group_expenses(expense_details: dict[str, float]) -> dict[str, float]:
    """Collapse expense categories into chart stack groups (insertion order kept)."""
    grouped = {group: 0.0 for group in GROUP_COLORS}
    for label, amount in expense_details.items():
        grouped[EXPENSE_GROUPS.get(label, OTHER_GROUP)] += amount
    return grouped


def plot_trajectory(result: ProjectionResult, output_path: Path, name: str = "") -> Path:
    """Generate a line chart of the savings trajectory with milestone markers.

    Args:
        result: projection with asset_data populated.
        output_path: directory to save the PNG.
        name: optional suffix for the output filename (e.g. "a" → "trajectory-a.png").

    Returns:
        Path to the generated PNG file.
    """
    if not result.asset_data:
        raise ValueError("No snapshots for trajectory chart")
    _setup_japanese_font()

    fig, ax = plt.subplots(figsize=(14, 8))
    ages = [s.age for s in result.asset_data]
    savings = [s.savings for s in result.asset_data]
    ax.plot(ages, savings, color=COLOR_SAVINGS, linewidth=2, label="貯蓄残高")
    ax.axhline(0, color="black", linewidth=1.0)

    ax.axvline(result.retirement_age, color="#888888", linewidth=1, linestyle="--")
    ax.annotate(
        f"{result.retirement_age}歳 リタイア",
        xy=(result.retirement_age, ax.get_ylim()[1] * 0.95),
        fontsize=10, ha="left", color="#555555",
    )
    if result.pension_start_date != result.retirement_age:
        ax.axvline(result.pension_start_date, color="#888888", linewidth=1, linestyle=":")

    insolvency_age = result.insolvency_age
    if insolvency_age is not None:
        ax.axvline(insolvency_age, color=COLOR_WARNING, linewidth=2, linestyle=":")
        ax.annotate(
            f"{insolvency_age}歳 貯蓄マイナス",
            xy=(insolvency_age, ax.get_ylim()[1] * 0.85),
            fontsize=11, fontweight="bold", color=COLOR_WARNING,
            ha="right",
            bbox=dict(boxstyle="round,pad=0.3", fc="white", ec=COLOR_WARNING, alpha=0.9),
        )

    # One-time milestones (purchase, replacement, ...) as light markers
    y_lo, y_hi = ax.get_ylim()
    marked = [m for m in result.milestones if m.kind != ms.INSOLVENCY]
    for i, m in enumerate(marked):
        ax.axvline(m.age, color="#888888", linewidth=0.7, linestyle=":", alpha=0.4, zorder=3)
        label = ms.format_milestone(m).split(": ", 1)[1].split("。")[0]
        y_pos = y_lo + (y_hi - y_lo) * (0.05 + 0.07 * (i % 4))
        ax.annotate(
            label,
            xy=(m.age, y_pos),
            fontsize=9, color="#333333",
            ha="center", va="bottom",
            bbox=dict(boxstyle="round,pad=0.4", fc="white", ec="#888888", alpha=0.9, linewidth=0.8),
            zorder=10,
        )

    ax.set_xlabel("年齢")
    ax.set_ylabel("貯蓄残高（万円）")
    ax.set_title("資産推移（確定論）")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
    _format_man_axis(ax)

    filepath = _output_file(output_path, "trajectory", name)
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath


def plot_cashflow(result: ProjectionResult, output_path: Path, name: str = "") -> Path:
    """Generate a stacked yearly expense chart with total income overlaid."""
    if not result.asset_data:
        raise ValueError("No snapshots for cashflow chart")
    _setup_japanese_font()

    ages = [s.age for s in result.asset_data]
    grouped = [group_expenses(s.expense_details) for s in result.asset_data]
    groups = [g for g in GROUP_COLORS if any(row[g] for row in grouped)]

    fig, ax = plt.subplots(figsize=(14, 7))
    ax.stackplot(
        ages,
        *[[row[g] for row in grouped] for g in groups],
        labels=groups,
        colors=[GROUP_COLORS[g] for g in groups],
        alpha=0.75,
    )
    ax.plot(ages, [s.income for s in result.asset_data], color=COLOR_INCOME, linewidth=2, label="収入（運用益除く）")

    ax.set_xlim(ages[0], ages[-1])
    ax.set_title("年間キャッシュフロー（支出内訳と収入）")
    ax.set_xlabel("年齢")
    ax.set_ylabel("年額（万円）")
    ax.axhline(0, color="black", linewidth=2.0, linestyle="-", zorder=5)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper left", fontsize=9)
    _format_man_axis(ax)

    filepath = _output_file(output_path, "cashflow", name)
    fig.tight_layout()
    fig.savefig(filepath, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return filepath
