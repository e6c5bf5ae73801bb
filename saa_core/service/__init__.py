"""
Service layer: data-service abstraction, HTTP and in-memory services,
price fetching and the active-portfolio controller.

RiskDataService interface; InMemoryRiskDataService for simulation;
HttpRiskDataService over httpx; PortfolioController orchestrates them.
"""

from saa_core.service.client import RiskDataService
from saa_core.service.memory import InMemoryRiskDataService
from saa_core.service.http import HttpRiskDataService
from saa_core.service.fetcher import PriceFetcher, PriceRefresher
from saa_core.service.controller import ControllerState, PortfolioController, RequestTag
from saa_core.service.types import (
    MutationResult,
    MutationStatusKind,
    NotFoundError,
    PriceQuote,
    PriceStatusKind,
    RefreshReport,
    ServiceError,
)

__all__ = [
    "RiskDataService",
    "InMemoryRiskDataService",
    "HttpRiskDataService",
    "PriceFetcher",
    "PriceRefresher",
    "ControllerState",
    "PortfolioController",
    "RequestTag",
    "MutationResult",
    "MutationStatusKind",
    "NotFoundError",
    "PriceQuote",
    "PriceStatusKind",
    "RefreshReport",
    "ServiceError",
]
