# budget_insights/config.py
"""
Runtime configuration for the insights proxy.

Values come from a local .env file (via python-dotenv) overlaid by the
process environment. They are read once by ``load_settings()`` and the
resulting ``Settings`` object is handed to ``create_app``; request handlers
never look at the environment themselves.
"""
import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, SecretStr

VENDOR_LABELS = {
    "deepseek": "DeepSeek",
    "gemini": "Gemini",
}

DEFAULT_VENDOR = "deepseek"
DEFAULT_TIMEOUT = 30.0


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    vendor: str = DEFAULT_VENDOR
    deepseek_api_key: Optional[SecretStr] = None
    gemini_api_key: Optional[SecretStr] = None
    deepseek_model: str = "deepseek-chat"
    gemini_model: str = "gemini-2.0-flash"
    vendor_timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"

    @property
    def vendor_label(self) -> str:
        return VENDOR_LABELS.get(self.vendor, self.vendor)

    @property
    def api_key(self) -> Optional[str]:
        """Plain-text key of the selected vendor, or None when unset."""
        secret = self.deepseek_api_key if self.vendor == "deepseek" else self.gemini_api_key
        if secret is None:
            return None
        return secret.get_secret_value() or None


def _secret(value: Optional[str]) -> Optional[SecretStr]:
    value = (value or "").strip()
    return SecretStr(value) if value else None


def _float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value else default
    except ValueError:
        return default


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: mapping to read instead of os.environ (tests pass a dict;
            .env is only loaded when reading the real environment)

    Returns:
        Immutable Settings
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    return Settings(
        vendor=(environ.get("INSIGHTS_VENDOR") or DEFAULT_VENDOR).strip().lower(),
        deepseek_api_key=_secret(environ.get("DEEPSEEK_API_KEY")),
        gemini_api_key=_secret(environ.get("GEMINI_API_KEY")),
        deepseek_model=environ.get("DEEPSEEK_MODEL") or "deepseek-chat",
        gemini_model=environ.get("GEMINI_MODEL") or "gemini-2.0-flash",
        vendor_timeout=_float(environ.get("INSIGHTS_VENDOR_TIMEOUT"), DEFAULT_TIMEOUT),
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
    )
