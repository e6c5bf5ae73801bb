"""
Tests for the valuation engine: per-position figures, totals, fallbacks.
"""

import pytest

from saa_core import Asset, Position, PriceCache, PriceSource, PortfolioValuation, value_portfolio, value_position


def _make_position(pid: str, symbol: str, quantity: float, avg_price: float) -> Position:
    return Position(id=pid, asset=Asset(symbol=symbol), quantity=quantity, avg_price=avg_price)


def _make_book() -> list[Position]:
    return [
        _make_position("1", "SPY", 100, 595.12),
        _make_position("2", "TLT", 500, 94.23),
        _make_position("3", "GLD", 50, 234.56),
        _make_position("4", "BTC", 1, 99886.29),
    ]


# --- Single position ---


def test_uncached_symbol_uses_avg_price():
    pv = value_position(_make_position("1", "SPY", 100, 595.12), PriceCache())
    assert pv.current_price == 595.12
    assert pv.price_source == PriceSource.FALLBACK
    assert pv.pnl == 0.0
    assert pv.pnl_percent == 0.0


def test_cached_price_drives_current_value():
    cache = PriceCache()
    cache.merge({"SPY": 600.00})
    pv = value_position(_make_position("1", "SPY", 100, 595.12), cache)
    assert pv.price_source == PriceSource.LIVE
    assert pv.current_value == pytest.approx(60000.00)
    assert pv.purchase_value == pytest.approx(59512.00)
    assert pv.pnl == pytest.approx(488.00)
    assert pv.pnl_percent == pytest.approx(0.82, abs=0.001)


def test_purchase_value_ignores_cache():
    pos = _make_position("1", "SPY", 10, 50.0)
    assert value_position(pos, {"SPY": 999.0}).purchase_value == 500.0


def test_zero_purchase_value_guarded():
    pv = value_position(_make_position("1", "AIRDROP", 10, 0.0), {"AIRDROP": 3.0})
    assert pv.purchase_value == 0.0
    assert pv.pnl == 30.0
    assert pv.pnl_percent == 0.0


# --- Portfolio totals ---


def test_empty_portfolio_totals_are_zero():
    v = value_portfolio([], PriceCache())
    assert v.total_purchase_value == 0
    assert v.total_current_value == 0
    assert v.total_pnl == 0
    assert v.total_pnl_percent == 0
    assert v.positions == ()


def test_total_current_value_equals_sum_of_positions():
    cache = PriceCache({"SPY": 600.0, "TLT": 90.1, "BTC": 101000.0})
    v = value_portfolio(_make_book(), cache)
    assert v.total_current_value == sum(pv.current_value for pv in v.positions)
    assert v.total_purchase_value == sum(pv.purchase_value for pv in v.positions)
    assert v.total_pnl == sum(pv.pnl for pv in v.positions)
    assert v.total_pnl_percent == pytest.approx(v.total_pnl / v.total_purchase_value * 100)


def test_fallback_symbols_reported():
    v = value_portfolio(_make_book(), {"SPY": 600.0})
    assert v.fallback_symbols == ("TLT", "GLD", "BTC")


def test_incremental_combine_matches_single_pass():
    book = _make_book()
    cache = PriceCache({"SPY": 601.3, "TLT": 91.07, "GLD": 240.11, "BTC": 98000.5})
    whole = value_portfolio(book, cache)
    parts = [value_portfolio([p], cache) for p in book]
    combined = PortfolioValuation.combine(parts)
    assert combined.total_current_value == pytest.approx(whole.total_current_value)
    assert combined.total_purchase_value == pytest.approx(whole.total_purchase_value)
    assert combined.total_pnl == pytest.approx(whole.total_pnl)
    assert combined.total_pnl_percent == pytest.approx(whole.total_pnl_percent)


def test_accepts_plain_mapping():
    v = value_portfolio([_make_position("1", "SPY", 2, 10.0)], {"SPY": 12.0})
    assert v.total_current_value == 24.0
    assert v.total_pnl == 4.0
    assert v.total_pnl_percent == pytest.approx(20.0)
