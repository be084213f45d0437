# utils.py
from __future__ import annotations

import hashlib
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from config import settings


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def get_logger(name: str) -> logging.Logger:
    """
    Named logger with a single stream handler, shared by every module in the app.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(settings.log_level.upper())
    return logger


# ---------------------------------------------------------------------------
# Signed requests (Cloudinary style: SHA1 over sorted params + secret)
# ---------------------------------------------------------------------------

def build_param_string(params: Dict[str, Any]) -> str:
    """
    Join params as `key=value` pairs sorted by key, skipping empty values.

    Example:
        {"timestamp": 1700000000, "public_id": "sample"}
        -> "public_id=sample&timestamp=1700000000"
    """
    return "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )


def sign_params(params: Dict[str, Any], secret: str) -> str:
    """
    Hex SHA-1 digest of the sorted param string followed by the API secret.
    """
    to_sign = build_param_string(params) + secret
    return hashlib.sha1(to_sign.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------

def to_float(value: Any, default: float = 0.0) -> float:
    """Lenient float parse: anything unparseable becomes `default`."""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def format_number(value: Optional[float]) -> str:
    """Render 120.0 as '120' and 99.5 as '99.5'."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


__all__ = [
    "get_logger",
    "build_param_string",
    "sign_params",
    "to_float",
    "format_number",
]
