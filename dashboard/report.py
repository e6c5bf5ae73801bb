"""
Dashboard report: print the dashboard for the active portfolio as text.
"""

from __future__ import annotations

from saa_core.metrics import MetricsSource
from saa_core.summary import DashboardSummary


def _pct(value: float | None) -> str:
    return "N/A" if value is None else f"{value:.2f}% of portfolio"


def print_report(summary: DashboardSummary) -> DashboardSummary:
    """
    Print a dashboard summary and return it unchanged.

    Positions priced at their average price (no live quote yet) are marked '*'.
    """
    print(f"--- {summary.portfolio_name} ---")
    print(f"Purchase value:  {summary.total_purchase_value:,.2f}")
    print(f"Current value:   {summary.total_current_value:,.2f}")
    print(f"Total PnL:       {summary.total_pnl:+,.2f} ({summary.total_pnl_percent:+.2f}%)")
    print(f"VaR 1d:          {abs(summary.var_1d):,.2f} ({_pct(summary.var_pct_of_value)})")
    print(f"CVaR 1d:         {abs(summary.cvar_1d):,.2f} ({_pct(summary.cvar_pct_of_value)})")
    print(f"Volatility:      {summary.vol_pct:.1f}%")
    if summary.metrics_source is not MetricsSource.PORTFOLIO:
        print(f"(metrics from {summary.metrics_source.value} data)")
    if summary.contributors:
        print("Risk contributors:")
        for c in summary.contributors:
            print(f"  {c.symbol:<8} {c.contribution * 100:5.1f}%")
    print("Positions:")
    for row in summary.rows:
        mark = "" if row.live_price else "*"
        print(
            f"  {row.symbol + mark:<9} {row.quantity:>10,.4g} @ {row.avg_price:>12,.2f}"
            f"  now {row.current_price:>12,.2f}  value {row.current_value:>14,.2f}"
            f"  pnl {row.pnl:>+12,.2f} ({row.pnl_percent:+.2f}%)  weight {row.weight_pct:5.1f}%"
        )
    if summary.fallback_count:
        print(f"* {summary.fallback_count} position(s) shown at purchase price (no live quote)")
    print("-" * (len(summary.portfolio_name) + 8))
    return summary
