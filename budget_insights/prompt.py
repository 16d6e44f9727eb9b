# budget_insights/prompt.py
import json
from typing import List, Optional

from .budget import BudgetLineItem, allocation_shares

# utilization thresholds, percent of allocation spent
OVERSPEND_THRESHOLD = 120
UNDERSPEND_THRESHOLD = 70


def format_rows(rows: List[BudgetLineItem]) -> List[dict]:
    """Rows as plain dicts with share-of-allocation and utilization added."""
    shares = allocation_shares(rows)
    formatted = []
    for row, share in zip(rows, shares):
        record = row.model_dump()
        record["percentage"] = share
        record["utilization"] = row.utilization
        formatted.append(record)
    return formatted


def build_insights_prompt(department: str, rows: List[BudgetLineItem],
                          ward: Optional[str] = None, year: Optional[int] = None) -> str:
    """
    Compose the single-turn instruction sent to the LLM vendor.

    Args:
        department: department the rows belong to
        rows: normalized budget rows
        ward: optional ward context
        year: optional fiscal year

    Returns:
        Prompt text with the rows embedded as indented JSON
    """
    header = [
        "You are an AI analyzing municipal budget data for transparency.",
        f"Department: {department}",
    ]
    if ward:
        header.append(f"Ward: {ward}")
    if year:
        header.append(f"Fiscal Year: {year}")

    data = json.dumps(format_rows(rows), indent=2)

    return "\n".join(header) + f"""
Budget Data: {data}

Fields: account_budget is the allocated amount, used_amt the amount spent,
remaining_amt what is left, percentage the line's share of the department's
total allocation and utilization the percent of the allocation spent.

Provide:
- 3-line summary of key spending for this department
- Highlight anomalies: overspending where utilization is above {OVERSPEND_THRESHOLD}% and underspending where it is below {UNDERSPEND_THRESHOLD}%
- Suggest optimization areas

Write for residents, not accountants. Respond in plain English, no code blocks."""
