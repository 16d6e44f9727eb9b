"""Vendor strategies against a mocked HTTP transport."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from budget_insights.config import Settings
from budget_insights.errors import ConfigurationError, VendorError
from budget_insights.llm import NO_INSIGHTS, DeepSeekVendor, GeminiVendor, build_vendor
from conftest import VendorStub, deepseek_reply


def test_deepseek_sends_chat_completion_with_bearer_key():
    stub = VendorStub(body=deepseek_reply("Roads spent 130% of budget."))
    vendor = DeepSeekVendor("ds-secret-key", transport=stub.transport)

    text = asyncio.run(vendor.generate_insight("summarize"))

    assert text == "Roads spent 130% of budget."
    assert len(stub.requests) == 1
    request = stub.requests[0]
    assert request.method == "POST"
    assert request.url.host == "api.deepseek.com"
    assert request.url.path == "/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer ds-secret-key"
    body = stub.sent_json()
    assert body["model"] == "deepseek-chat"
    assert body["messages"] == [{"role": "user", "content": "summarize"}]
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 500


def test_deepseek_missing_text_degrades_to_placeholder():
    reply = deepseek_reply("")
    reply["choices"] = []
    stub = VendorStub(body=reply)
    vendor = DeepSeekVendor("k", transport=stub.transport)

    assert asyncio.run(vendor.generate_insight("p")) == NO_INSIGHTS


def test_deepseek_rate_limit_is_not_retried():
    stub = VendorStub(status=429, body={"error": {"message": "Rate limit reached"}})
    vendor = DeepSeekVendor("k", transport=stub.transport)

    with pytest.raises(VendorError) as excinfo:
        asyncio.run(vendor.generate_insight("p"))

    assert excinfo.value.status_code == 429
    assert "Rate limit reached" in excinfo.value.details
    assert excinfo.value.message == "Failed to get AI insights from DeepSeek"
    assert len(stub.requests) == 1


def test_gemini_sends_key_as_query_parameter():
    stub = VendorStub(body={"candidates": [{"content": {"parts": [{"text": "Parks is on track."}]}}]})
    vendor = GeminiVendor("gm-secret-key", model="gemini-2.0-flash", transport=stub.transport)

    text = asyncio.run(vendor.generate_insight("summarize"))

    assert text == "Parks is on track."
    request = stub.requests[0]
    assert request.url.host == "generativelanguage.googleapis.com"
    assert request.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"
    assert request.url.params["key"] == "gm-secret-key"
    assert "authorization" not in request.headers
    assert stub.sent_json() == {"contents": [{"parts": [{"text": "summarize"}]}]}


def test_gemini_empty_candidates_degrade_to_placeholder():
    stub = VendorStub(body={"candidates": []})
    vendor = GeminiVendor("k", transport=stub.transport)

    assert asyncio.run(vendor.generate_insight("p")) == NO_INSIGHTS


def test_gemini_error_status_carries_raw_body():
    stub = VendorStub(status=503, body="upstream overloaded")
    vendor = GeminiVendor("k", transport=stub.transport)

    with pytest.raises(VendorError) as excinfo:
        asyncio.run(vendor.generate_insight("p"))

    assert excinfo.value.status_code == 503
    assert excinfo.value.details == "upstream overloaded"


def test_gemini_network_failure_propagates():
    stub = VendorStub(exc=httpx.ConnectError("connection refused"))
    vendor = GeminiVendor("k", transport=stub.transport)

    with pytest.raises(httpx.ConnectError):
        asyncio.run(vendor.generate_insight("p"))


def test_build_vendor_picks_configured_strategy(deepseek_settings, gemini_settings):
    assert isinstance(build_vendor(deepseek_settings), DeepSeekVendor)
    assert isinstance(build_vendor(gemini_settings), GeminiVendor)


def test_build_vendor_fails_closed_without_key():
    with pytest.raises(ConfigurationError) as excinfo:
        build_vendor(Settings(vendor="gemini", deepseek_api_key="only-deepseek"))
    assert excinfo.value.message == "Gemini API key not configured"


def test_build_vendor_rejects_unknown_vendor():
    with pytest.raises(ConfigurationError):
        build_vendor(Settings(vendor="bard", gemini_api_key="k"))


def test_vendor_repr_hides_key():
    vendor = DeepSeekVendor("ds-secret-key")
    assert "ds-secret-key" not in repr(vendor)
