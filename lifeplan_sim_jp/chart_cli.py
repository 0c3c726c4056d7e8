"""CLI entry point for chart generation."""

import argparse
import logging
import sys
from pathlib import Path

from lifeplan_sim_jp.charts import plot_cashflow, plot_trajectory
from lifeplan_sim_jp.config import parse_args
from lifeplan_sim_jp.validation import run_projection


def _add_chart_args(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--output", type=Path, default=Path("reports/charts"),
        help="出力ディレクトリ (default: reports/charts)",
    )
    parser.add_argument(
        "--name", type=str, default="",
        help="出力ファイル名のサフィックス（例: 30 → trajectory-30.png）",
    )


def main():
    r, inp, args = parse_args("ライフプランシミュレーション チャート生成", _add_chart_args)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    print(f"確定論シミュレーション（{inp.current_age}歳→{inp.life_expectancy}歳）...", file=sys.stderr)
    result = run_projection(inp, clamp_negative_savings=bool(r["clamp"]))
    if result.errors:
        for e in result.errors:
            print(f"  入力エラー: {e}", file=sys.stderr)
        raise SystemExit(1)

    path = plot_trajectory(result, args.output, name=args.name)
    print(f"  → {path}", file=sys.stderr)
    path = plot_cashflow(result, args.output, name=args.name)
    print(f"  → {path}", file=sys.stderr)
    print("完了", file=sys.stderr)


if __name__ == "__main__":
    main()
