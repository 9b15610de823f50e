"""Runtime configuration read from the environment (and a local .env file)."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)
    strict_tax_rates: bool = False


def get_settings() -> Settings:
    origins = os.getenv("INVOICE_CALC_CORS_ORIGINS", "*")
    return Settings(
        log_level=(os.getenv("INVOICE_CALC_LOG_LEVEL") or "INFO").strip().upper(),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
        strict_tax_rates=_env_bool("INVOICE_CALC_STRICT_TAX_RATES"),
    )


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the CLI and the API."""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
