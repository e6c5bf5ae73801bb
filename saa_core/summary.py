"""
Dashboard summary: everything the dashboard displays for the active portfolio.

Merges the valuation (from cached prices) with the risk service's metrics:
VaR/CVaR as a share of current value, volatility in percent, contributors,
and per-position weights.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from saa_core.metrics import Contributor, DashboardMetrics, MetricsSource
from saa_core.portfolio import Portfolio
from saa_core.valuation import PortfolioValuation, PriceSource


@dataclass(frozen=True)
class PositionRow:
    """One row of the positions table."""

    position_id: str
    symbol: str
    quantity: float
    avg_price: float
    current_price: float
    current_value: float
    pnl: float
    pnl_percent: float
    weight_pct: float
    live_price: bool


@dataclass(frozen=True)
class DashboardSummary:
    """Display-ready figures for one portfolio."""

    portfolio_id: str
    portfolio_name: str
    total_purchase_value: float
    total_current_value: float
    total_pnl: float
    total_pnl_percent: float
    var_1d: float
    cvar_1d: float
    var_pct_of_value: float | None
    cvar_pct_of_value: float | None
    vol_pct: float
    metrics_source: MetricsSource
    contributors: tuple[Contributor, ...] = ()
    contribution_total: float = 0.0
    rows: tuple[PositionRow, ...] = field(default=())
    fallback_count: int = 0


def _share_of_value(amount: float, total_value: float) -> float | None:
    """|amount| as percent of total_value; None when either is zero (shown as N/A)."""
    if not amount or total_value <= 0:
        return None
    return abs(amount) / total_value * 100.0


def position_weights(valuation: PortfolioValuation) -> np.ndarray:
    """Percent of total current value per position; zeros if the total is zero."""
    values = np.array([pv.current_value for pv in valuation.positions], dtype=float)
    total = values.sum()
    if values.size == 0 or total <= 0:
        return np.zeros(values.size)
    return values / total * 100.0


def build_summary(
    portfolio: Portfolio,
    valuation: PortfolioValuation,
    metrics: DashboardMetrics | None,
) -> DashboardSummary:
    """
    Combine a portfolio's valuation with its risk metrics.

    Parameters
    ----------
    portfolio : Portfolio
        The active portfolio.
    valuation : PortfolioValuation
        Output of value_portfolio() for its positions.
    metrics : DashboardMetrics or None
        Risk service output; None is treated as zeroed metrics.

    Returns
    -------
    DashboardSummary
    """
    m = metrics or DashboardMetrics.empty()
    weights = position_weights(valuation)
    rows = tuple(
        PositionRow(
            position_id=pv.position.id,
            symbol=pv.symbol,
            quantity=pv.position.quantity,
            avg_price=pv.position.avg_price,
            current_price=pv.current_price,
            current_value=pv.current_value,
            pnl=pv.pnl,
            pnl_percent=pv.pnl_percent,
            weight_pct=float(w),
            live_price=pv.price_source is PriceSource.LIVE,
        )
        for pv, w in zip(valuation.positions, weights)
    )
    total_value = valuation.total_current_value
    return DashboardSummary(
        portfolio_id=portfolio.id,
        portfolio_name=portfolio.name,
        total_purchase_value=valuation.total_purchase_value,
        total_current_value=total_value,
        total_pnl=valuation.total_pnl,
        total_pnl_percent=valuation.total_pnl_percent,
        var_1d=m.var_1d,
        cvar_1d=m.cvar_1d,
        var_pct_of_value=_share_of_value(m.var_1d, total_value),
        cvar_pct_of_value=_share_of_value(m.cvar_1d, total_value),
        vol_pct=m.vol * 100.0,
        metrics_source=m.source,
        contributors=m.contributors,
        contribution_total=float(np.sum([c.contribution for c in m.contributors])) if m.contributors else 0.0,
        rows=rows,
        fallback_count=sum(1 for r in rows if not r.live_price),
    )
