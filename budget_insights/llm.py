# budget_insights/llm.py
"""
LLM vendor strategies.

Each vendor turns one prompt into one insight string through
``generate_insight``. The proxy only knows that interface; which vendor sits
behind it is decided once at startup by ``build_vendor``.
"""
import logging
from typing import Any, Optional

import httpx
from openai import APIStatusError, AsyncOpenAI

from .config import Settings
from .errors import ConfigurationError, VendorError

logger = logging.getLogger(__name__)

NO_INSIGHTS = "No insights returned."

DEEPSEEK_BASE_URL = "https://api.deepseek.com/v1"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class InsightVendor:
    name = ""
    label = ""

    async def generate_insight(self, prompt: str) -> str:
        raise NotImplementedError

    def __repr__(self):
        # never include the key
        return f"{type(self).__name__}(model={getattr(self, 'model', None)!r})"


# --- DeepSeek (OpenAI-compatible chat completions) ---
def _chat_text(completion: Any) -> Optional[str]:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None) or None


class DeepSeekVendor(InsightVendor):
    name = "deepseek"
    label = "DeepSeek"

    def __init__(self, api_key: str, model: str = "deepseek-chat", timeout: float = 30.0,
                 temperature: float = 0.7, max_tokens: int = 500,
                 base_url: str = DEEPSEEK_BASE_URL,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.base_url = base_url
        self._transport = transport

    def _client(self) -> AsyncOpenAI:
        http_client = None
        if self._transport is not None:
            http_client = httpx.AsyncClient(transport=self._transport, timeout=self.timeout)
        # one attempt per inbound request, the SDK would otherwise retry
        return AsyncOpenAI(
            api_key=self._api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def generate_insight(self, prompt: str) -> str:
        logger.info("Sending request to DeepSeek API (model=%s)", self.model)
        async with self._client() as client:
            try:
                chat = await client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
            except APIStatusError as e:
                logger.error("DeepSeek API error (%s): %s", e.status_code, e.response.text)
                raise VendorError(
                    "Failed to get AI insights from DeepSeek",
                    status_code=e.status_code,
                    details=e.response.text,
                ) from e

        text = _chat_text(chat)
        logger.debug("DeepSeek API response: %s", text)
        return text or NO_INSIGHTS


# --- Gemini (generateContent REST endpoint) ---
def _gemini_text(data: Any) -> Optional[str]:
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"] or None
    except (KeyError, IndexError, TypeError):
        return None


class GeminiVendor(InsightVendor):
    name = "gemini"
    label = "Gemini"

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash", timeout: float = 30.0,
                 base_url: str = GEMINI_BASE_URL,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = base_url
        self._transport = transport

    async def generate_insight(self, prompt: str) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}

        logger.info("Sending request to Gemini API (model=%s)", self.model)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(url, params={"key": self._api_key}, json=body)

        if resp.is_error:
            logger.error("Gemini API error (%s): %s", resp.status_code, resp.text)
            raise VendorError(
                "Failed to get AI insights from Gemini",
                status_code=resp.status_code,
                details=resp.text,
            )

        text = _gemini_text(resp.json())
        logger.debug("Gemini API response: %s", text)
        return text or NO_INSIGHTS


VENDORS = {
    DeepSeekVendor.name: DeepSeekVendor,
    GeminiVendor.name: GeminiVendor,
}


def build_vendor(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> InsightVendor:
    """
    Instantiate the configured vendor.

    Args:
        settings: loaded Settings
        transport: optional httpx transport (tests swap in a mock)

    Returns:
        InsightVendor ready to call

    Raises:
        ConfigurationError: unknown vendor name or missing API key
    """
    if settings.vendor not in VENDORS:
        raise ConfigurationError(f"Unknown insights vendor: {settings.vendor}")

    api_key = settings.api_key
    if not api_key:
        raise ConfigurationError(f"{settings.vendor_label} API key not configured")

    if settings.vendor == DeepSeekVendor.name:
        return DeepSeekVendor(api_key, model=settings.deepseek_model,
                              timeout=settings.vendor_timeout, transport=transport)
    return GeminiVendor(api_key, model=settings.gemini_model,
                        timeout=settings.vendor_timeout, transport=transport)
