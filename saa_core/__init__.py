"""
saa-core: valuation and live-price reconciliation core for the SAA risk dashboard.

No UI, no risk numerics. Models, price cache, valuation engine and the
active-portfolio controller (in saa_core.service).
"""

__version__ = "0.1.0"

from saa_core.portfolio import Asset, Portfolio, PortfolioStore, Position, PositionDraft
from saa_core.prices import PriceCache
from saa_core.metrics import Contributor, DashboardMetrics, MetricsSource
from saa_core.valuation import PortfolioValuation, PositionValuation, PriceSource, value_portfolio, value_position
from saa_core.navigation import NavigationGate, NavigationSignal
from saa_core.config import DashboardConfig

__all__ = [
    "Asset",
    "Portfolio",
    "PortfolioStore",
    "Position",
    "PositionDraft",
    "PriceCache",
    "Contributor",
    "DashboardMetrics",
    "MetricsSource",
    "PortfolioValuation",
    "PositionValuation",
    "PriceSource",
    "value_portfolio",
    "value_position",
    "NavigationGate",
    "NavigationSignal",
    "DashboardConfig",
]
