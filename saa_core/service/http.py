"""
HTTP data service: RiskDataService over the risk platform's REST API.

Uses one httpx.AsyncClient. Error bodies of the form {"error": "..."} become
the ServiceError message; 404 becomes NotFoundError. Transport failures and
timeouts become ServiceError with no status code, and so does a 2xx body that
does not have the expected shape.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, TypeVar

import httpx

from saa_core.config import DashboardConfig
from saa_core.metrics import (
    CorrelationResult,
    CVaRResult,
    DashboardMetrics,
    MetricsSource,
    RiskRequest,
    VaRResult,
)
from saa_core.portfolio import Portfolio, PositionDraft

from saa_core.service.client import RiskDataService, UploadFile
from saa_core.service.types import NotFoundError, ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _error_message(response: httpx.Response) -> str:
    """Server-provided message if the body carries one, else the status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


async def _upload_content(file: UploadFile) -> tuple[str, Any]:
    """(filename, content) for a multipart file part. Paths are read off the event loop."""
    if isinstance(file, bytes):
        return "upload.csv", file
    if isinstance(file, (str, Path)):
        path = Path(file)
        return path.name, await asyncio.to_thread(path.read_bytes)
    return Path(getattr(file, "name", "upload.csv")).name, file


def _as_list(data: Any) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise TypeError(f"expected a JSON array, got {type(data).__name__}")
    return data


def _as_dict(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")
    return data


class HttpRiskDataService(RiskDataService):
    """
    REST client. base_url points at the API root (e.g. http://localhost:8084/api).

    Pass client to share or mock a transport (httpx.MockTransport in tests); the
    client then carries its own base_url, so base_url must not be passed too.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        config: DashboardConfig | None = None,
    ) -> None:
        if client is not None and base_url is not None:
            raise ValueError("pass either base_url or client, not both; the client's base_url is used")
        cfg = config or DashboardConfig()
        self._owns_client = client is None
        if client is None:
            self._base_url = (base_url or cfg.api_base_url).rstrip("/")
            client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=timeout if timeout is not None else cfg.request_timeout,
            )
        else:
            self._base_url = str(client.base_url).rstrip("/")
        self._client = client
        logger.debug("HttpRiskDataService: base_url=%s", self._base_url)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ServiceError(f"Request timed out: {method} {path}") from e
        except httpx.HTTPError as e:
            raise ServiceError(f"Request failed: {e!s}") from e
        if response.status_code == 404:
            raise NotFoundError(_error_message(response))
        if response.is_error:
            raise ServiceError(_error_message(response), response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServiceError(f"Invalid JSON from {method} {path}", response.status_code) from e

    async def _fetch(self, method: str, path: str, parse: Callable[[Any], T], **kwargs: Any) -> T:
        """Request, then parse the body; a body of the wrong shape is a ServiceError."""
        data = await self._request(method, path, **kwargs)
        try:
            return parse(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Invalid response from %s %s: %s", method, path, e)
            raise ServiceError(f"Invalid response from {method} {path}: {e!s}") from e

    async def list_portfolios(self) -> list[Portfolio]:
        return await self._fetch(
            "GET", "/portfolios", lambda data: [Portfolio.from_dict(_as_dict(p)) for p in _as_list(data)]
        )

    async def get_portfolio(self, portfolio_id: str) -> Portfolio:
        return await self._fetch(
            "GET", f"/portfolios/{portfolio_id}", lambda data: Portfolio.from_dict(_as_dict(data))
        )

    async def create_portfolio(self, name: str, description: str = "") -> Portfolio:
        payload = {"name": name}
        if description:
            payload["description"] = description
        return await self._fetch(
            "POST", "/portfolios", lambda data: Portfolio.from_dict(_as_dict(data)), json=payload
        )

    async def update_portfolio(self, portfolio_id: str, name: str, description: str) -> Portfolio:
        return await self._fetch(
            "PUT",
            f"/portfolios/{portfolio_id}",
            lambda data: Portfolio.from_dict(_as_dict(data)),
            json={"name": name, "description": description},
        )

    async def delete_portfolio(self, portfolio_id: str) -> None:
        await self._request("DELETE", f"/portfolios/{portfolio_id}")

    async def create_positions(self, portfolio_id: str, drafts: Sequence[PositionDraft]) -> None:
        await self._request(
            "POST",
            f"/portfolios/{portfolio_id}/positions",
            json={"positions": [d.to_payload() for d in drafts]},
        )

    async def update_position(self, portfolio_id: str, position_id: str, draft: PositionDraft) -> None:
        await self._request(
            "PUT", f"/portfolios/{portfolio_id}/positions/{position_id}", json=draft.to_payload()
        )

    async def delete_position(self, portfolio_id: str, position_id: str) -> None:
        await self._request("DELETE", f"/portfolios/{portfolio_id}/positions/{position_id}")

    async def get_price(self, symbol: str) -> float:
        data = await self._request("GET", f"/market/price/{symbol}")
        if not isinstance(data, dict) or data.get("price") is None:
            raise NotFoundError(f"Price not found for symbol: {symbol}")
        try:
            return float(data["price"])
        except (TypeError, ValueError) as e:
            raise ServiceError(f"Invalid price for {symbol}: {data['price']!r}") from e

    async def get_dashboard_metrics(self, portfolio_id: str) -> DashboardMetrics:
        return await self._fetch(
            "GET",
            "/risk/dashboard",
            lambda data: DashboardMetrics.from_dict(_as_dict(data or {}), MetricsSource.PORTFOLIO),
            params={"portfolio_id": portfolio_id},
        )

    async def get_sample_dashboard(self) -> DashboardMetrics:
        return await self._fetch(
            "GET", "/dashboard", lambda data: DashboardMetrics.from_dict(_as_dict(data or {}), MetricsSource.SAMPLE)
        )

    async def calculate_var(self, request: RiskRequest) -> VaRResult:
        return await self._fetch(
            "POST", "/risk/var", lambda data: VaRResult.from_dict(_as_dict(data)), json=request.to_payload()
        )

    async def calculate_cvar(self, request: RiskRequest) -> CVaRResult:
        return await self._fetch(
            "POST", "/risk/cvar", lambda data: CVaRResult.from_dict(_as_dict(data)), json=request.to_payload()
        )

    async def calculate_correlation(self, symbols: Sequence[str], window_days: int) -> CorrelationResult:
        symbols = list(symbols)
        return await self._fetch(
            "POST",
            "/risk/correlation",
            lambda data: CorrelationResult.from_dict(_as_dict(data), symbols),
            json={"symbols": symbols, "window_days": window_days},
        )

    async def import_positions(self, portfolio_id: str, file: UploadFile) -> None:
        name, content = await _upload_content(file)
        await self._request(
            "POST", f"/portfolios/{portfolio_id}/positions:import", files={"file": (name, content, "text/csv")}
        )

    async def import_prices(self, portfolio_id: str, file: UploadFile) -> None:
        name, content = await _upload_content(file)
        await self._request(
            "POST", f"/portfolios/{portfolio_id}/prices:import", files={"file": (name, content, "text/csv")}
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
