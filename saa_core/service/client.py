"""
Risk/data service abstraction.

RiskDataService ABC: portfolio CRUD, positions, prices, dashboard metrics,
on-demand VaR/CVaR/correlation requests and CSV uploads. HttpRiskDataService
talks to the REST API; InMemoryRiskDataService implements the same interface
for demos and tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO, Union

from saa_core.metrics import CorrelationResult, CVaRResult, DashboardMetrics, RiskRequest, VaRResult
from saa_core.portfolio import Portfolio, PositionDraft

# A CSV upload: a path on disk, raw bytes, or an open binary file.
UploadFile = Union[str, Path, bytes, BinaryIO]


class RiskDataService(ABC):
    """
    Abstract risk/data service. Every method may raise ServiceError;
    lookups of unknown ids raise NotFoundError.
    """

    @abstractmethod
    async def list_portfolios(self) -> list[Portfolio]:
        """All portfolios with their positions, in service order."""
        ...

    @abstractmethod
    async def get_portfolio(self, portfolio_id: str) -> Portfolio:
        ...

    @abstractmethod
    async def create_portfolio(self, name: str, description: str = "") -> Portfolio:
        ...

    @abstractmethod
    async def update_portfolio(self, portfolio_id: str, name: str, description: str) -> Portfolio:
        ...

    @abstractmethod
    async def delete_portfolio(self, portfolio_id: str) -> None:
        """Delete a portfolio and, on the service side, all of its positions."""
        ...

    @abstractmethod
    async def create_positions(self, portfolio_id: str, drafts: Sequence[PositionDraft]) -> None:
        ...

    @abstractmethod
    async def update_position(self, portfolio_id: str, position_id: str, draft: PositionDraft) -> None:
        ...

    @abstractmethod
    async def delete_position(self, portfolio_id: str, position_id: str) -> None:
        ...

    @abstractmethod
    async def get_price(self, symbol: str) -> float:
        """Latest market price for symbol. NotFoundError if the symbol is unknown."""
        ...

    @abstractmethod
    async def get_dashboard_metrics(self, portfolio_id: str) -> DashboardMetrics:
        """VaR/CVaR/vol/contributors computed by the risk service for a portfolio."""
        ...

    @abstractmethod
    async def get_sample_dashboard(self) -> DashboardMetrics:
        """Default metrics used when the real ones cannot be loaded."""
        ...

    @abstractmethod
    async def calculate_var(self, request: RiskRequest) -> VaRResult:
        """Value at Risk for a portfolio, computed by the risk service."""
        ...

    @abstractmethod
    async def calculate_cvar(self, request: RiskRequest) -> CVaRResult:
        """Conditional VaR (expected shortfall) for a portfolio."""
        ...

    @abstractmethod
    async def calculate_correlation(self, symbols: Sequence[str], window_days: int) -> CorrelationResult:
        """Correlation matrix of symbols over the last window_days (at least 10)."""
        ...

    @abstractmethod
    async def import_positions(self, portfolio_id: str, file: UploadFile) -> None:
        """Upload a positions CSV (symbol,quantity,avg_price)."""
        ...

    @abstractmethod
    async def import_prices(self, portfolio_id: str, file: UploadFile) -> None:
        """Upload a price history CSV (date,symbol,close)."""
        ...

    async def aclose(self) -> None:
        """Release connections. Default: nothing to release."""
        return None
