"""Prompt composition."""

from __future__ import annotations

import json

from budget_insights.budget import normalize_rows
from budget_insights.prompt import build_insights_prompt, format_rows


def _rows():
    return normalize_rows(
        [
            {"glcode": "1001", "account": "Paving", "account_budget": 1000, "used_amt": 1300, "remaining_amt": -300},
            {"glcode": "1002", "account": "Signals", "account_budget": 3000, "used_amt": 1500, "remaining_amt": 1500},
        ]
    )


def test_format_rows_adds_share_and_utilization():
    formatted = format_rows(_rows())
    assert formatted[0]["percentage"] == 25.0
    assert formatted[1]["percentage"] == 75.0
    assert formatted[0]["utilization"] == 130.0
    assert formatted[1]["utilization"] == 50.0


def test_prompt_embeds_rows_as_json():
    prompt = build_insights_prompt("Roads", _rows())
    assert "Department: Roads" in prompt
    assert json.dumps(format_rows(_rows()), indent=2) in prompt


def test_prompt_states_thresholds_and_format_rules():
    prompt = build_insights_prompt("Roads", _rows())
    assert "above 120%" in prompt
    assert "below 70%" in prompt
    assert "no code blocks" in prompt


def test_prompt_context_lines_only_when_given():
    bare = build_insights_prompt("Roads", _rows())
    assert "Ward:" not in bare
    assert "Fiscal Year:" not in bare

    full = build_insights_prompt("Roads", _rows(), ward="Ward 4", year=2025)
    assert "Ward: Ward 4" in full
    assert "Fiscal Year: 2025" in full
