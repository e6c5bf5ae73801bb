"""
Tests for the dashboard summary and report.
"""

import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest

from dashboard import print_report
from saa_core import Asset, DashboardMetrics, Portfolio, Position, value_portfolio
from saa_core.examples.sample_data import SAMPLE_DASHBOARD
from saa_core.metrics import Contributor
from saa_core.summary import build_summary, position_weights

ROOT = Path(__file__).resolve().parent.parent


def _portfolio() -> Portfolio:
    return Portfolio(
        id="p1",
        name="Core",
        positions=[
            Position(id="1", asset=Asset("SPY"), quantity=100, avg_price=595.12),
            Position(id="2", asset=Asset("TLT"), quantity=500, avg_price=94.23),
        ],
    )


# --- Summary ---


def test_weights_sum_to_hundred():
    v = value_portfolio(_portfolio().positions, {"SPY": 600.0, "TLT": 94.23})
    w = position_weights(v)
    assert w.shape == (2,)
    assert w.sum() == pytest.approx(100.0)
    assert w[0] == pytest.approx(60000.0 / (60000.0 + 47115.0) * 100)


def test_weights_zero_when_no_value():
    v = value_portfolio([Position(id="1", asset=Asset("X"), quantity=0, avg_price=1.0)], {})
    np.testing.assert_array_equal(position_weights(v), np.zeros(1))


def test_summary_combines_valuation_and_metrics():
    portfolio = _portfolio()
    v = value_portfolio(portfolio.positions, {"SPY": 600.0})
    metrics = DashboardMetrics(
        var_1d=-2142.3,
        cvar_1d=-3000.0,
        vol=0.12,
        contributors=(Contributor("SPY", 0.7), Contributor("TLT", 0.4)),
    )
    s = build_summary(portfolio, v, metrics)
    assert s.total_current_value == v.total_current_value
    assert s.var_pct_of_value == pytest.approx(2142.3 / v.total_current_value * 100)
    assert s.vol_pct == pytest.approx(12.0)
    assert s.contribution_total == pytest.approx(1.1)
    assert [r.symbol for r in s.rows] == ["SPY", "TLT"]
    assert s.rows[0].live_price and not s.rows[1].live_price
    assert s.fallback_count == 1


def test_summary_without_metrics_or_value():
    portfolio = Portfolio(id="e", name="Empty")
    s = build_summary(portfolio, value_portfolio([], {}), None)
    assert s.var_pct_of_value is None
    assert s.cvar_pct_of_value is None
    assert s.contribution_total == 0.0
    assert s.rows == ()


def test_core_does_not_import_dashboard_package():
    code = "import sys, saa_core, saa_core.service; sys.exit('dashboard' in sys.modules)"
    result = subprocess.run([sys.executable, "-c", code], cwd=ROOT)
    assert result.returncode == 0


# --- Report ---


def test_print_report_marks_fallback_and_sample(capsys):
    portfolio = _portfolio()
    s = build_summary(portfolio, value_portfolio(portfolio.positions, {"SPY": 600.0}), SAMPLE_DASHBOARD)
    assert print_report(s) is s
    out = capsys.readouterr().out
    assert "--- Core ---" in out
    assert "(metrics from sample data)" in out
    assert "TLT*" in out
    assert "1 position(s) shown at purchase price" in out
    assert "BTC" in out


def test_print_report_na_when_no_value(capsys):
    s = build_summary(Portfolio(id="e", name="Empty"), value_portfolio([], {}), DashboardMetrics())
    print_report(s)
    out = capsys.readouterr().out
    assert "N/A" in out
    assert "metrics from" not in out
