"""
Runtime settings, loaded from the environment (and a local .env file).
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_BASE = "http://localhost:8000"


def get_float_env(key: str, default: float) -> float:
    """Get a float from an environment variable; malformed values use the default."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    api_base: str = DEFAULT_API_BASE
    api_token: Optional[str] = None
    storage_dir: Optional[str] = None
    case_timeout: float = 15.0
    domain_case_timeout: float = 20.0
    ai_timeout: float = 25.0
    lang: str = "en"
    log_level: str = "INFO"


def get_settings() -> Settings:
    token = (os.getenv("JUSTICE_LAB_API_TOKEN") or "").strip()
    storage_dir = (os.getenv("JUSTICE_LAB_STORAGE_DIR") or "").strip()
    return Settings(
        api_base=(os.getenv("JUSTICE_LAB_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
        api_token=token or None,
        storage_dir=storage_dir or None,
        case_timeout=get_float_env("JUSTICE_LAB_CASE_TIMEOUT", 15.0),
        domain_case_timeout=get_float_env("JUSTICE_LAB_DOMAIN_CASE_TIMEOUT", 20.0),
        ai_timeout=get_float_env("JUSTICE_LAB_AI_TIMEOUT", 25.0),
        lang=os.getenv("JUSTICE_LAB_LANG", "en"),
        log_level=os.getenv("JUSTICE_LAB_LOG_LEVEL", "INFO").upper(),
    )
