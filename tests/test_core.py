"""
Tests for saa_core: Asset, Position, Portfolio, PortfolioStore, PriceCache,
DashboardMetrics, NavigationGate, DashboardConfig.
"""

import pytest

from saa_core import (
    Asset,
    DashboardConfig,
    DashboardMetrics,
    MetricsSource,
    NavigationGate,
    NavigationSignal,
    Portfolio,
    PortfolioStore,
    Position,
    PositionDraft,
    PriceCache,
)
from saa_core.navigation import GateState


def _make_position(pid: str = "p1", symbol: str = "SPY", quantity: float = 100.0, avg_price: float = 595.12) -> Position:
    return Position(id=pid, asset=Asset(symbol=symbol), quantity=quantity, avg_price=avg_price)


# --- Asset / Position / Portfolio ---


def test_asset_symbol_normalized():
    assert Asset(symbol=" spy ").symbol == "SPY"


def test_position_purchase_value():
    pos = _make_position(quantity=100, avg_price=595.12)
    assert pos.purchase_value == pytest.approx(59512.0)
    assert pos.symbol == "SPY"


def test_position_from_dict_nested_asset():
    pos = Position.from_dict(
        {"id": "abc", "asset": {"symbol": "gld", "name": "Gold"}, "quantity": 50, "avg_price": 234.56}
    )
    assert pos.id == "abc"
    assert pos.symbol == "GLD"
    assert pos.asset.name == "Gold"
    assert pos.quantity == 50.0
    assert pos.avg_price == 234.56


def test_position_draft_rejects_negative():
    with pytest.raises(ValueError):
        PositionDraft("SPY", -1, 10.0)
    with pytest.raises(ValueError):
        PositionDraft("SPY", 1, -10.0)


def test_position_draft_payload():
    d = PositionDraft("tlt", 500, 94.23)
    assert d.to_payload() == {"symbol": "TLT", "quantity": 500, "avg_price": 94.23}


def test_portfolio_symbols_distinct_in_order():
    p = Portfolio(
        id="x",
        name="Mixed",
        positions=[
            _make_position("1", "SPY"),
            _make_position("2", "TLT"),
            _make_position("3", "SPY"),
        ],
    )
    assert isinstance(p.positions, tuple)
    assert p.symbols() == ["SPY", "TLT"]
    assert p.has_positions
    assert p.position("2").symbol == "TLT"
    assert p.position("missing") is None


def test_portfolio_from_dict_without_positions():
    p = Portfolio.from_dict({"id": "42", "name": "Empty", "description": None})
    assert p.id == "42"
    assert p.description == ""
    assert p.positions == ()
    assert not p.has_positions


# --- PortfolioStore ---


def test_store_replace_and_order():
    store = PortfolioStore()
    store.replace_all([Portfolio(id="b", name="B"), Portfolio(id="a", name="A")])
    assert store.ids() == ["b", "a"]
    assert store.first().id == "b"
    assert "a" in store
    assert len(store) == 2
    assert store.get(None) is None


def test_store_put_keeps_position():
    store = PortfolioStore()
    store.replace_all([Portfolio(id="a", name="A"), Portfolio(id="b", name="B")])
    store.put(Portfolio(id="a", name="A2"))
    assert store.ids() == ["a", "b"]
    assert store.get("a").name == "A2"
    store.remove("a")
    assert store.ids() == ["b"]


# --- PriceCache ---


def test_cache_merge_and_get():
    cache = PriceCache()
    written = cache.merge({"SPY": 600.0, "TLT": 94.0})
    assert written == ["SPY", "TLT"]
    assert cache.get("SPY") == 600.0
    assert cache.get("GLD") is None
    assert len(cache) == 2


def test_cache_failed_fetch_keeps_previous_value():
    cache = PriceCache()
    cache.merge({"SPY": 100.0})
    cache.merge({"SPY": None})
    assert cache.get("SPY") == 100.0


def test_cache_ignores_non_positive():
    cache = PriceCache({"SPY": 100.0})
    cache.merge({"SPY": 0.0, "TLT": -5.0})
    assert cache.get("SPY") == 100.0
    assert "TLT" not in cache


def test_cache_newest_write_wins():
    cache = PriceCache({"SPY": 100.0})
    cache.merge({"SPY": 101.0})
    cache.merge({"SPY": 102.5})
    assert cache.get("SPY") == 102.5


def test_cache_snapshot_unaffected_by_later_merge():
    cache = PriceCache({"SPY": 100.0})
    snap = cache.snapshot()
    cache.merge({"SPY": 200.0, "GLD": 230.0})
    assert snap["SPY"] == 100.0
    assert "GLD" not in snap
    assert cache.snapshot()["SPY"] == 200.0
    with pytest.raises(TypeError):
        snap["SPY"] = 1.0


def test_cache_clear():
    cache = PriceCache({"SPY": 100.0})
    cache.clear()
    assert len(cache) == 0


# --- DashboardMetrics ---


def test_metrics_from_dict():
    m = DashboardMetrics.from_dict(
        {"var_1d": -1200.5, "cvar_1d": -1800.0, "vol": 0.12, "contributors": [{"symbol": "SPY", "contribution": 0.6}]}
    )
    assert m.var_1d == -1200.5
    assert m.contributors[0].symbol == "SPY"
    assert m.source == MetricsSource.PORTFOLIO


def test_metrics_empty_is_zeroed():
    m = DashboardMetrics.empty()
    assert (m.var_1d, m.cvar_1d, m.vol) == (0.0, 0.0, 0.0)
    assert m.contributors == ()
    assert m.source == MetricsSource.EMPTY


def test_metrics_contribution_total_not_normalized():
    m = DashboardMetrics.from_dict(
        {"contributors": [{"symbol": "A", "contribution": 0.7}, {"symbol": "B", "contribution": 0.5}]}
    )
    assert m.contribution_total == pytest.approx(1.2)


# --- NavigationGate ---


def test_gate_fires_once_per_arrival():
    gate = NavigationGate()
    sig = NavigationSignal(origin="/import", reload=True, key="k1")
    assert gate.observe(sig) is True
    assert gate.state == GateState.FIRED
    assert gate.observe(sig) is False
    assert gate.observe(NavigationSignal(origin="/import", reload=True, key="k1")) is False


def test_gate_ignores_signals_without_reload_or_origin():
    gate = NavigationGate()
    assert gate.observe(NavigationSignal(origin="/import", reload=False)) is False
    assert gate.observe(NavigationSignal(origin=None, reload=True)) is False
    assert gate.observe(NavigationSignal(origin="/", reload=True)) is False
    assert gate.state == GateState.ARMED


def test_gate_new_arrival_rearms():
    gate = NavigationGate()
    assert gate.observe(NavigationSignal(origin="/import", reload=True, key="k1"))
    assert gate.observe(NavigationSignal(origin="/analytics", reload=True, key="k2"))
    assert gate.observe(NavigationSignal(origin="/import", reload=True, key="k3"))


def test_gate_leave_rearms():
    gate = NavigationGate()
    sig = NavigationSignal(origin="/import", reload=True)
    assert gate.observe(sig)
    gate.leave()
    assert gate.state == GateState.ARMED
    assert gate.observe(sig)


# --- DashboardConfig ---


def test_config_defaults():
    cfg = DashboardConfig()
    assert cfg.refresh_interval == 30.0
    assert cfg.api_base_url.endswith("/api")


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("SAA_API_BASE_URL", "http://risk.internal/api/")
    monkeypatch.setenv("SAA_PRICE_REFRESH_SECONDS", "15")
    monkeypatch.setenv("SAA_PRICE_TIMEOUT_SECONDS", "2.5")
    cfg = DashboardConfig.from_env()
    assert cfg.api_base_url == "http://risk.internal/api"
    assert cfg.refresh_interval == 15.0
    assert cfg.price_timeout == 2.5
    assert cfg.request_timeout == 10.0


def test_config_from_env_rejects_bad_values(monkeypatch):
    monkeypatch.setenv("SAA_PRICE_REFRESH_SECONDS", "soon")
    with pytest.raises(ValueError):
        DashboardConfig.from_env()
    monkeypatch.setenv("SAA_PRICE_REFRESH_SECONDS", "0")
    with pytest.raises(ValueError):
        DashboardConfig.from_env()
