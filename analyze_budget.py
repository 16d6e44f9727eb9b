#!/usr/bin/env python3
"""
Run the budget insights widget from the command line.

Reads a department's budget rows from a CSV export, sends them through the
insights proxy and prints the notifications and the rendered result card.

Usage:
    python analyze_budget.py roads_fy25.csv --department Roads --year 2025
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Dict, List, Optional

import pandas as pd
from dotenv import load_dotenv

from budget_insights.widget import InsightsWidget, ProxyClient, Toast

logger = logging.getLogger(__name__)

# dashboard export headers -> row fields
COLUMN_ALIASES = {
    "gl_code": "glcode",
    "account_number": "glcode",
    "description": "account",
    "line_item": "account",
    "budget": "account_budget",
    "allocated": "account_budget",
    "used": "used_amt",
    "spent": "used_amt",
    "remaining": "remaining_amt",
}


def _column_key(name: str) -> str:
    key = str(name).strip().lower().replace(" ", "_").replace("-", "_")
    return COLUMN_ALIASES.get(key, key)


def load_budget_rows(csv_path: str) -> List[Dict]:
    """Read a budget CSV into row dicts keyed by budget row field names."""
    # strings throughout: keeps leading zeros in GL codes, amounts are coerced later
    df = pd.read_csv(csv_path, dtype=str)
    df = df.rename(columns=_column_key)
    logger.info("Read %d rows from %s", len(df), csv_path)
    return df.to_dict(orient="records")


def _print_toast(toast: Toast) -> None:
    marker = "!" if toast.variant == "destructive" else "*"
    print(f"{marker} {toast.title}: {toast.description}")


async def run(csv_path: str, proxy_url: str, department: Optional[str],
              ward: Optional[str], year: Optional[int]) -> bool:
    rows = load_budget_rows(csv_path)
    widget = InsightsWidget(ProxyClient(proxy_url), notify=_print_toast)
    insights = await widget.analyze(rows, department=department, ward=ward, year=year)
    print()
    print(widget.render())
    return insights is not None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Summarize a department budget with AI")
    parser.add_argument("csv_path", help="CSV export of the department's budget rows")
    parser.add_argument("--department", required=True, help="Department name")
    parser.add_argument("--ward", default=None, help="Ward (optional)")
    parser.add_argument("--year", type=int, default=None, help="Fiscal year (optional)")
    parser.add_argument(
        "--proxy-url",
        default=os.getenv("INSIGHTS_PROXY_URL", "http://localhost:8000"),
        help="Base URL of the insights proxy",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(level=logging.WARNING, format="[%(levelname)s] %(message)s")
    args = parse_args(argv)

    if not os.path.exists(args.csv_path):
        print(f"Error: CSV file not found at {args.csv_path}")
        return 1

    ok = asyncio.run(run(args.csv_path, args.proxy_url, args.department, args.ward, args.year))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
