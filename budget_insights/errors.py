# budget_insights/errors.py
"""
Error taxonomy shared by the proxy and the vendor strategies.

Every error carries the HTTP status the proxy should answer with, so the
endpoint can route any of them to a structured JSON response.
"""
from typing import Optional


class InsightsError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InputValidationError(InsightsError):
    """Missing or malformed request fields."""
    status_code = 400


class ConfigurationError(InsightsError):
    """Server-side misconfiguration, e.g. no vendor API key."""
    status_code = 500


class VendorError(InsightsError):
    """The LLM vendor answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[str] = None):
        super().__init__(message, details=details)
        # pass the vendor's status through, 500 when it sent none
        self.status_code = status_code or 500
