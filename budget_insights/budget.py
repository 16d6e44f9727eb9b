# budget_insights/budget.py
"""
Budget line-item model shared by the widget and the proxy.

Rows arrive from spreadsheets, dashboards and JSON bodies with loosely typed
amounts ("1,200", "$300", None, NaN). Everything is coerced once, here, into
BudgetLineItem; coercion never raises and falls back to 0.
"""
import math
import re
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

_NUMBER_NOISE_RE = re.compile(r"[\s,$]")


def parse_amount(value: Any) -> Optional[float]:
    """Parse an amount-like value to a finite float, None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = _NUMBER_NOISE_RE.sub("", value)
        negative = text.startswith("(") and text.endswith(")")
        if negative:
            text = text[1:-1]
        try:
            number = float(text)
        except ValueError:
            return None
        if negative:
            number = -number
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
    return number if math.isfinite(number) else None


def coerce_amount(value: Any) -> float:
    """Convert an amount-like value to a finite float, 0.0 when that is not possible."""
    number = parse_amount(value)
    return 0.0 if number is None else number


class BudgetLineItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    glcode: str = ""
    account: str = Field(default="", validation_alias=AliasChoices("account", "description", "account_b"))
    account_budget: float = Field(default=0.0, validation_alias=AliasChoices("account_budget", "budget_a"))
    used_amt: float = 0.0
    remaining_amt: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _label_in_budget_column(cls, data):
        # dashboard rows carry the account label in account_budget and the amount in budget_a
        if not isinstance(data, dict) or "budget_a" not in data:
            return data
        label = data.get("account_budget")
        if parse_amount(label) is not None:
            return data
        data = dict(data)
        data["account_budget"] = data["budget_a"]
        has_account = any(data.get(k) for k in ("account", "description", "account_b"))
        if isinstance(label, str) and label.strip() and not has_account:
            data["account"] = label
        return data

    @field_validator("glcode", "account", mode="before")
    @classmethod
    def _text(cls, v):
        if v is None:
            return ""
        if isinstance(v, float) and math.isnan(v):
            return ""
        if isinstance(v, float) and v.is_integer():
            # spreadsheets hand GL codes back as 1001.0
            return str(int(v))
        return str(v).strip()

    @field_validator("account_budget", "used_amt", "remaining_amt", mode="before")
    @classmethod
    def _amount(cls, v):
        return coerce_amount(v)

    @property
    def is_empty(self) -> bool:
        return self.account_budget == 0 and self.used_amt == 0 and self.remaining_amt == 0

    @property
    def utilization(self) -> float:
        """Spent amount as a percentage of the allocation."""
        if not self.account_budget:
            return 0.0
        return round(self.used_amt / self.account_budget * 100, 1)


RawRow = Union[BudgetLineItem, Mapping[str, Any]]


def normalize_rows(rows: Optional[Iterable[RawRow]]) -> List[BudgetLineItem]:
    """
    Coerce raw rows into BudgetLineItem records.

    Args:
        rows: mappings (JSON objects, DataFrame records) or BudgetLineItem

    Returns:
        One BudgetLineItem per input row, in order

    Raises:
        TypeError: if a row is neither a mapping nor a BudgetLineItem
    """
    items: List[BudgetLineItem] = []
    for row in rows or []:
        if isinstance(row, BudgetLineItem):
            items.append(row)
        elif isinstance(row, Mapping):
            items.append(BudgetLineItem.model_validate(dict(row)))
        else:
            raise TypeError(f"budget row must be an object, got {type(row).__name__}")
    return items


def drop_empty_rows(rows: Iterable[BudgetLineItem]) -> List[BudgetLineItem]:
    return [r for r in rows if not r.is_empty]


def allocation_shares(rows: List[BudgetLineItem]) -> List[float]:
    """Each row's share of the total allocation, in percent with one decimal."""
    total = sum(r.account_budget for r in rows)
    if not total:
        return [0.0 for _ in rows]
    return [round(r.account_budget / total * 100, 1) for r in rows]


class InsightsRequest(BaseModel):
    """Row-oriented body the widget posts to the proxy."""
    model_config = ConfigDict(populate_by_name=True)

    department: str
    ward: Optional[str] = None
    year: Optional[int] = None
    budget_data: List[BudgetLineItem] = Field(alias="budgetData")

    @field_validator("ward", mode="before")
    @classmethod
    def _ward(cls, v):
        if v is None or v == "":
            return None
        return str(v)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class InsightsResponse(BaseModel):
    insights: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
