"""
Runtime configuration for the dashboard controller and HTTP service client.

Values come from the constructor or from environment variables via from_env().
"""

from __future__ import annotations

import os
from dataclasses import dataclass

# Environment variables read by DashboardConfig.from_env().
API_BASE_URL_ENV = "SAA_API_BASE_URL"
REFRESH_INTERVAL_ENV = "SAA_PRICE_REFRESH_SECONDS"
PRICE_TIMEOUT_ENV = "SAA_PRICE_TIMEOUT_SECONDS"
REQUEST_TIMEOUT_ENV = "SAA_REQUEST_TIMEOUT_SECONDS"

DEFAULT_API_BASE_URL = "http://localhost:8084/api"
DEFAULT_REFRESH_INTERVAL = 30.0


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class DashboardConfig:
    """
    api_base_url: root of the risk/data REST API.
    refresh_interval: seconds between background price refreshes.
    price_timeout: per-symbol price fetch timeout (seconds); slow = failed.
    request_timeout: timeout for every other service call (seconds).
    reload_on_navigation: honour navigation reload signals at all.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    price_timeout: float = 5.0
    request_timeout: float = 10.0
    reload_on_navigation: bool = True

    @classmethod
    def from_env(cls) -> DashboardConfig:
        return cls(
            api_base_url=os.environ.get(API_BASE_URL_ENV, DEFAULT_API_BASE_URL).rstrip("/"),
            refresh_interval=_float_env(REFRESH_INTERVAL_ENV, DEFAULT_REFRESH_INTERVAL),
            price_timeout=_float_env(PRICE_TIMEOUT_ENV, 5.0),
            request_timeout=_float_env(REQUEST_TIMEOUT_ENV, 10.0),
        )
