"""
Sample data: the default dashboard shown when real metrics are unavailable,
and a demo price table for the in-memory service and examples.
"""

from __future__ import annotations

from saa_core.metrics import Contributor, DashboardMetrics, MetricsSource
from saa_core.portfolio import PositionDraft

SAMPLE_DASHBOARD = DashboardMetrics(
    var_1d=125432.50,
    cvar_1d=187654.30,
    vol=0.154,
    contributors=(
        Contributor("BTC", 0.452),
        Contributor("SPY", 0.285),
        Contributor("GLD", 0.153),
        Contributor("TLT", 0.087),
        Contributor("EURUSD", 0.023),
    ),
    source=MetricsSource.SAMPLE,
)

# Reference closes, Nov 13 2025.
DEMO_PRICES: dict[str, float] = {
    "BTC": 99886.29,
    "ETH": 3276.12,
    "SOL": 215.30,
    "SPY": 595.12,
    "QQQ": 507.83,
    "IWM": 226.45,
    "TLT": 94.23,
    "IEF": 99.87,
    "GLD": 234.56,
    "SLV": 27.89,
    "EURUSD": 1.0550,
    "GBPUSD": 1.2750,
}

DEMO_POSITIONS: tuple[PositionDraft, ...] = (
    PositionDraft("SPY", 100, 595.12),
    PositionDraft("TLT", 500, 94.23),
    PositionDraft("GLD", 50, 234.56),
    PositionDraft("BTC", 1, 99886.29),
)
