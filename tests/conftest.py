"""Test configuration helpers."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import httpx
import pytest

# Ensure project root is on the import path so `budget_insights` and the scripts can be imported.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from budget_insights.config import Settings  # noqa: E402


class VendorStub:
    """Records outbound vendor requests and answers with a canned response."""

    def __init__(self, status: int = 200, body=None, exc: Exception | None = None):
        self.status = status
        self.body = body if body is not None else {}
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if isinstance(self.body, str):
            return httpx.Response(self.status, text=self.body)
        return httpx.Response(self.status, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def sent_json(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def deepseek_reply(text: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "deepseek-chat",
        "choices": [
            {"index": 0, "finish_reason": "stop", "message": {"role": "assistant", "content": text}}
        ],
    }


@pytest.fixture
def deepseek_settings() -> Settings:
    return Settings(vendor="deepseek", deepseek_api_key="ds-secret-key")


@pytest.fixture
def gemini_settings() -> Settings:
    return Settings(vendor="gemini", gemini_api_key="gm-secret-key")


@pytest.fixture
def roads_request() -> dict:
    return {
        "department": "Roads",
        "budgetData": [
            {"glcode": "1001", "account_budget": 1000, "used_amt": 1300, "remaining_amt": -300},
        ],
    }
