"""
In-memory data service: simulates the risk/data API without a network.

Maintains portfolios, positions and a price table in process. Metrics come from
a provided table (portfolio id -> DashboardMetrics) or a callable; the sample
dashboard is always available. VaR/CVaR requests echo the portfolio's metrics;
correlations come from a table set with set_correlation(). CSV imports are
parsed with saa_core.data_loader.
"""

from __future__ import annotations

import io
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from pathlib import Path

from saa_core.data_loader import latest_prices, load_positions_csv, load_prices_csv, positions_from_dataframe
from saa_core.examples.sample_data import SAMPLE_DASHBOARD
from saa_core.metrics import (
    MIN_CORRELATION_WINDOW,
    CorrelationResult,
    CVaRResult,
    DashboardMetrics,
    MetricsSource,
    RiskRequest,
    VaRResult,
)
from saa_core.portfolio import Asset, Portfolio, Position, PositionDraft

from saa_core.service.client import RiskDataService, UploadFile
from saa_core.service.types import NotFoundError, ServiceError


def _open_upload(file: UploadFile):
    if isinstance(file, bytes):
        return io.BytesIO(file)
    if isinstance(file, (str, Path)):
        return Path(file)
    return file


class InMemoryRiskDataService(RiskDataService):
    """
    Simulated service. Portfolios keep insertion order; ids are uuid4 strings.
    Prices: pass latest_prices (symbol -> price); unknown symbols raise NotFoundError.
    Metrics: pass metrics (portfolio id -> DashboardMetrics) or metrics_source
    (callable portfolio -> DashboardMetrics); default is zeroed metrics.
    """

    def __init__(
        self,
        *,
        latest_prices: Mapping[str, float] | None = None,
        metrics: Mapping[str, DashboardMetrics] | None = None,
        metrics_source: Callable[[Portfolio], DashboardMetrics] | None = None,
        sample_dashboard: DashboardMetrics = SAMPLE_DASHBOARD,
    ) -> None:
        self._portfolios: dict[str, Portfolio] = {}
        self._prices: dict[str, float] = dict(latest_prices or {})
        self._metrics: dict[str, DashboardMetrics] = dict(metrics or {})
        self._metrics_source = metrics_source
        self._sample_dashboard = sample_dashboard
        self._correlation: tuple[tuple[float, ...], ...] = ()
        self._correlation_index: dict[str, int] = {}
        self._call_log: list[tuple[str, tuple]] = []

    def _log(self, name: str, *args: object) -> None:
        self._call_log.append((name, args))

    def _require(self, portfolio_id: str) -> Portfolio:
        try:
            return self._portfolios[portfolio_id]
        except KeyError:
            raise NotFoundError("portfolio not found") from None

    def _position_from_draft(self, position_id: str, draft: PositionDraft) -> Position:
        return Position(
            id=position_id,
            asset=Asset(symbol=draft.symbol),
            quantity=draft.quantity,
            avg_price=draft.avg_price,
        )

    def set_price(self, symbol: str, price: float) -> None:
        """Move the simulated market."""
        self._prices[symbol] = price

    def set_metrics(self, portfolio_id: str, metrics: DashboardMetrics) -> None:
        self._metrics[portfolio_id] = metrics

    def set_correlation(self, symbols: Sequence[str], matrix: Sequence[Sequence[float]]) -> None:
        """Correlation table for a symbol universe; requests may ask for any subset."""
        table = CorrelationResult(symbols=tuple(symbols), matrix=tuple(tuple(row) for row in matrix))
        self._correlation = table.matrix
        self._correlation_index = {s: i for i, s in enumerate(table.symbols)}

    async def list_portfolios(self) -> list[Portfolio]:
        self._log("list_portfolios")
        return list(self._portfolios.values())

    async def get_portfolio(self, portfolio_id: str) -> Portfolio:
        self._log("get_portfolio", portfolio_id)
        return self._require(portfolio_id)

    async def create_portfolio(self, name: str, description: str = "") -> Portfolio:
        self._log("create_portfolio", name)
        if not name.strip():
            raise ServiceError("name is required", 400)
        portfolio = Portfolio(id=str(uuid.uuid4()), name=name, description=description)
        self._portfolios[portfolio.id] = portfolio
        return portfolio

    async def update_portfolio(self, portfolio_id: str, name: str, description: str) -> Portfolio:
        self._log("update_portfolio", portfolio_id, name)
        portfolio = replace(self._require(portfolio_id), name=name, description=description)
        self._portfolios[portfolio_id] = portfolio
        return portfolio

    async def delete_portfolio(self, portfolio_id: str) -> None:
        self._log("delete_portfolio", portfolio_id)
        self._require(portfolio_id)
        del self._portfolios[portfolio_id]
        self._metrics.pop(portfolio_id, None)

    async def create_positions(self, portfolio_id: str, drafts: Sequence[PositionDraft]) -> None:
        self._log("create_positions", portfolio_id, len(drafts))
        portfolio = self._require(portfolio_id)
        added = tuple(self._position_from_draft(str(uuid.uuid4()), d) for d in drafts)
        self._portfolios[portfolio_id] = replace(portfolio, positions=portfolio.positions + added)

    async def update_position(self, portfolio_id: str, position_id: str, draft: PositionDraft) -> None:
        self._log("update_position", portfolio_id, position_id)
        portfolio = self._require(portfolio_id)
        if portfolio.position(position_id) is None:
            raise NotFoundError("position not found")
        positions = tuple(
            self._position_from_draft(position_id, draft) if p.id == position_id else p
            for p in portfolio.positions
        )
        self._portfolios[portfolio_id] = replace(portfolio, positions=positions)

    async def delete_position(self, portfolio_id: str, position_id: str) -> None:
        self._log("delete_position", portfolio_id, position_id)
        portfolio = self._require(portfolio_id)
        if portfolio.position(position_id) is None:
            raise NotFoundError("position not found")
        positions = tuple(p for p in portfolio.positions if p.id != position_id)
        self._portfolios[portfolio_id] = replace(portfolio, positions=positions)

    async def get_price(self, symbol: str) -> float:
        self._log("get_price", symbol)
        if symbol not in self._prices:
            raise NotFoundError(f"Price not found for symbol: {symbol}")
        return self._prices[symbol]

    def _metrics_for(self, portfolio: Portfolio) -> DashboardMetrics:
        if portfolio.id in self._metrics:
            return self._metrics[portfolio.id]
        if self._metrics_source is not None:
            return self._metrics_source(portfolio)
        return DashboardMetrics(source=MetricsSource.PORTFOLIO)

    async def get_dashboard_metrics(self, portfolio_id: str) -> DashboardMetrics:
        self._log("get_dashboard_metrics", portfolio_id)
        return self._metrics_for(self._require(portfolio_id))

    async def get_sample_dashboard(self) -> DashboardMetrics:
        self._log("get_sample_dashboard")
        return self._sample_dashboard

    async def calculate_var(self, request: RiskRequest) -> VaRResult:
        self._log("calculate_var", request.portfolio_id)
        metrics = self._metrics_for(self._require(request.portfolio_id))
        return VaRResult(var=abs(metrics.var_1d))

    async def calculate_cvar(self, request: RiskRequest) -> CVaRResult:
        self._log("calculate_cvar", request.portfolio_id)
        metrics = self._metrics_for(self._require(request.portfolio_id))
        return CVaRResult(cvar=abs(metrics.cvar_1d))

    async def calculate_correlation(self, symbols: Sequence[str], window_days: int) -> CorrelationResult:
        self._log("calculate_correlation", tuple(symbols), window_days)
        if not symbols:
            raise ServiceError("symbols are required", 400)
        if window_days < MIN_CORRELATION_WINDOW:
            raise ServiceError(f"window_days must be at least {MIN_CORRELATION_WINDOW}", 400)
        missing = [s for s in symbols if s not in self._correlation_index]
        if missing:
            raise ServiceError(
                f"Failed to calculate correlations: not enough price data for {', '.join(missing)}", 500
            )
        idx = [self._correlation_index[s] for s in symbols]
        matrix = tuple(tuple(self._correlation[i][j] for j in idx) for i in idx)
        return CorrelationResult(symbols=tuple(symbols), matrix=matrix)

    async def import_positions(self, portfolio_id: str, file: UploadFile) -> None:
        self._log("import_positions", portfolio_id)
        self._require(portfolio_id)
        try:
            df = load_positions_csv(_open_upload(file))
        except ValueError as e:
            raise ServiceError(str(e), 400) from e
        await self.create_positions(portfolio_id, positions_from_dataframe(df))

    async def import_prices(self, portfolio_id: str, file: UploadFile) -> None:
        self._log("import_prices", portfolio_id)
        self._require(portfolio_id)
        try:
            df = load_prices_csv(_open_upload(file))
        except ValueError as e:
            raise ServiceError(str(e), 400) from e
        self._prices.update(latest_prices(df))

    def get_call_log(self) -> list[tuple[str, tuple]]:
        """Every service call made, in order (for debugging and tests)."""
        return list(self._call_log)

    def call_count(self, name: str) -> int:
        return sum(1 for call, _ in self._call_log if call == name)
