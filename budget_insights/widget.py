# budget_insights/widget.py
"""
Client-side insights widget.

Holds the state the dashboard card renders (result text, busy flag,
notifications) and talks to the insights proxy over HTTP. All input checks
happen here, before any request leaves the client.
"""
import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional

import httpx
from pydantic import BaseModel, ValidationError

from .budget import InsightsRequest, drop_empty_rows, normalize_rows

logger = logging.getLogger(__name__)

DEFAULT_FUNCTION_PATH = "/get-ai-insights"


class ProxyError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProxyClient:
    """Invokes the insights proxy function."""

    def __init__(self, base_url: str, function_path: str = DEFAULT_FUNCTION_PATH,
                 timeout: float = 60.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.function_path = function_path
        self.timeout = timeout
        self._transport = transport

    async def invoke(self, body: dict) -> dict:
        """
        POST ``body`` to the proxy once.

        Returns:
            Decoded JSON object of a successful response

        Raises:
            ProxyError: the proxy answered with an error status
            httpx.HTTPError: the proxy could not be reached
        """
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout,
                                     transport=self._transport) as client:
            resp = await client.post(self.function_path, json=body)

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if resp.is_error:
            message = data.get("error") or f"Edge function returned {resp.status_code}"
            if data.get("details"):
                message = f"{message}: {data['details']}"
            raise ProxyError(message, status_code=resp.status_code)
        return data


class Toast(BaseModel):
    title: str
    description: str
    variant: str = "default"


class InsightsWidget:
    TITLE = "AI-Powered Budget Insights"
    BUTTON_LABEL = "Analyze Budget with AI"
    BUSY_LABEL = "Analyzing..."
    HELP_TEXT = (
        "Click the button above to get AI-powered insights about allocated budget, "
        "spending usage, and remaining amounts. The analysis will also highlight "
        "anomalies and optimization opportunities."
    )

    def __init__(self, client: ProxyClient, notify: Optional[Callable[[Toast], None]] = None):
        self.client = client
        self.notify = notify
        self.insights = ""
        self.loading = False
        self.toasts: List[Toast] = []

    def _toast(self, title: str, description: str, variant: str = "default") -> None:
        toast = Toast(title=title, description=description, variant=variant)
        self.toasts.append(toast)
        if self.notify:
            self.notify(toast)

    def _fail(self, title: str, description: str) -> None:
        self._toast(title, description, variant="destructive")

    def can_analyze(self, budget_data: Optional[Iterable[Any]]) -> bool:
        return not self.loading and bool(budget_data)

    async def analyze(self, budget_data: Optional[List[Mapping[str, Any]]],
                      department: Optional[str] = None,
                      ward: Optional[str] = None,
                      year: Optional[int] = None) -> Optional[str]:
        """
        Request an insight for the given rows.

        Args:
            budget_data: raw budget rows as shown on the dashboard
            department: selected department
            ward: optional ward
            year: optional fiscal year

        Returns:
            The insight text, or None when the request was refused or failed
            (the reason is reported as a toast)
        """
        if self.loading:
            logger.debug("Analysis already in flight, ignoring request")
            return None

        # a refused or failed request never leaves the previous result on screen
        self.insights = ""

        if not budget_data:
            self._fail("No Data", "Please fetch budget data first before analyzing.")
            return None

        department = (department or "").strip()
        if not department:
            self._fail("Missing Department", "Please select a department before analyzing.")
            return None

        try:
            rows = drop_empty_rows(normalize_rows(budget_data))
        except TypeError:
            rows = []
        if not rows:
            self._fail("No Valid Data", "All budget rows are empty. Nothing to analyze.")
            return None

        self.loading = True
        try:
            body = InsightsRequest(department=department, ward=ward, year=year, budgetData=rows).to_wire()
            logger.info("Sending %d budget rows for %s to insights proxy", len(rows), department)

            data = await self.client.invoke(body)
            insights = data.get("insights")
            if not insights:
                raise ProxyError("AI did not return any insights.")

            self.insights = insights
            self._toast("AI Analysis Complete", "Generated insights for your budget data.")
            return insights

        except (ProxyError, httpx.HTTPError, ValidationError) as e:
            logger.error("Error getting AI insights: %s", e)
            if getattr(e, "status_code", None) == 429:
                self._fail("Quota Limit Reached",
                           "You have reached the AI provider's request limit. Please try again later.")
            else:
                self._fail("Analysis Failed",
                           str(e) or "Failed to generate AI insights. Please try again.")
            return None
        finally:
            self.loading = False

    def render(self) -> str:
        """Plain-text rendering of the card."""
        lines = [self.TITLE, f"[ {self.BUSY_LABEL if self.loading else self.BUTTON_LABEL} ]"]
        if self.insights:
            lines += ["", "AI Analysis Results:", self.insights]
        elif not self.loading:
            lines += ["", self.HELP_TEXT]
        return "\n".join(lines)
