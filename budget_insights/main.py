# budget_insights/main.py
import logging
from typing import Any, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from .budget import ErrorResponse, InsightsRequest, InsightsResponse, normalize_rows
from .config import Settings, load_settings
from .errors import ConfigurationError, InputValidationError, InsightsError
from .llm import InsightVendor, build_vendor
from .prompt import build_insights_prompt

logger = logging.getLogger(__name__)

INSIGHTS_PATH = "/get-ai-insights"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs full request URLs at INFO, and Gemini carries the key in the query
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _json_response(status: int, payload: dict) -> JSONResponse:
    return JSONResponse(payload, status_code=status, headers=CORS_HEADERS)


def parse_insights_request(payload: Any) -> InsightsRequest:
    """
    Validate an inbound body into an InsightsRequest.

    Raises:
        InputValidationError: missing department/budgetData, non-object rows,
            or a malformed optional field
    """
    if not isinstance(payload, dict):
        raise InputValidationError("Budget data and department are required")

    budget_data = payload.get("budgetData")
    department = payload.get("department")
    if not budget_data or not isinstance(budget_data, list) \
            or not isinstance(department, str) or not department.strip():
        raise InputValidationError("Budget data and department are required")

    try:
        rows = normalize_rows(budget_data)
    except TypeError as e:
        raise InputValidationError("Each budget data row must be an object", details=str(e))

    try:
        return InsightsRequest(
            department=department.strip(),
            ward=payload.get("ward"),
            year=payload.get("year"),
            budgetData=rows,
        )
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise InputValidationError(f"Invalid request fields: {fields}", details=str(e))


def create_app(settings: Optional[Settings] = None,
               vendor: Optional[InsightVendor] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the insights proxy.

    Args:
        settings: configuration read once at startup (defaults to the environment)
        vendor: explicit vendor strategy; built from settings when omitted
        transport: httpx transport handed to the vendor (tests)

    Returns:
        FastAPI application
    """
    settings = settings or load_settings()

    config_error: Optional[str] = None
    if vendor is None:
        try:
            vendor = build_vendor(settings, transport=transport)
        except ConfigurationError as e:
            # fail closed: every request answers 500 until the key is configured
            logger.warning("Insights vendor unavailable: %s", e.message)
            config_error = e.message

    app = FastAPI(title="Budget Insights Proxy")
    app.state.settings = settings
    app.state.vendor = vendor

    @app.get("/health")
    def health():
        return {"status": "ok", "vendor": vendor.name if vendor else settings.vendor}

    @app.options(INSIGHTS_PATH)
    async def insights_preflight():
        return Response(headers=CORS_HEADERS)

    @app.post(INSIGHTS_PATH)
    async def get_ai_insights(request: Request):
        """
        Forward one department's budget rows to the LLM vendor and relay the insight.
        """
        try:
            payload = await request.json()
            insights_request = parse_insights_request(payload)
            logger.info("Insights requested for %s (%d rows)",
                        insights_request.department, len(insights_request.budget_data))

            if config_error:
                raise ConfigurationError(config_error)

            prompt = build_insights_prompt(
                insights_request.department,
                insights_request.budget_data,
                ward=insights_request.ward,
                year=insights_request.year,
            )
            logger.debug("Prompt:\n%s", prompt)

            insights = await vendor.generate_insight(prompt)
            return _json_response(200, InsightsResponse(insights=insights).model_dump())

        except InsightsError as e:
            logger.warning("Insights request failed (%s): %s", e.status_code, e.message)
            return _json_response(e.status_code, e.to_payload())
        except Exception as e:
            logger.exception("Insights proxy error")
            error = ErrorResponse(error="Internal server error", details=str(e))
            return _json_response(500, error.model_dump(exclude_none=True))

    return app


_settings = load_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)
