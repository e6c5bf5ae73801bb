"""
Valuation engine: (positions, prices) -> per-position and total figures.

Pure functions, no side effects. Purchase value comes from the position alone;
the price lookup only affects current value. A symbol with no price falls back
to the position's average price.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from saa_core.portfolio import Position


class PriceLookup(Protocol):
    """Anything with get(symbol) -> price or None (PriceCache, dict, snapshot)."""

    def get(self, symbol: str) -> float | None:
        ...


class PriceSource(Enum):
    LIVE = "live"
    FALLBACK = "fallback"


def _pct(pnl: float, base: float) -> float:
    return pnl / base * 100.0 if base > 0 else 0.0


@dataclass(frozen=True)
class PositionValuation:
    """Financial figures for one position at the current prices."""

    position: Position
    current_price: float
    price_source: PriceSource
    purchase_value: float
    current_value: float
    pnl: float
    pnl_percent: float

    @property
    def symbol(self) -> str:
        return self.position.symbol


@dataclass(frozen=True)
class PortfolioValuation:
    """Per-position valuations plus independently summed totals."""

    positions: tuple[PositionValuation, ...] = ()
    total_purchase_value: float = 0.0
    total_current_value: float = 0.0
    total_pnl: float = 0.0
    total_pnl_percent: float = 0.0
    fallback_symbols: tuple[str, ...] = field(default=())

    @classmethod
    def combine(cls, parts: Iterable[PortfolioValuation]) -> PortfolioValuation:
        """Merge valuations of disjoint position sets into one."""
        rows: list[PositionValuation] = []
        for part in parts:
            rows.extend(part.positions)
        return _aggregate(rows)


def value_position(position: Position, prices: PriceLookup) -> PositionValuation:
    """Value one position; unpriced symbols use avg_price."""
    cached = prices.get(position.symbol)
    if cached is not None and cached > 0:
        current_price, source = cached, PriceSource.LIVE
    else:
        current_price, source = position.avg_price, PriceSource.FALLBACK
    purchase_value = position.quantity * position.avg_price
    current_value = position.quantity * current_price
    pnl = current_value - purchase_value
    return PositionValuation(
        position=position,
        current_price=current_price,
        price_source=source,
        purchase_value=purchase_value,
        current_value=current_value,
        pnl=pnl,
        pnl_percent=_pct(pnl, purchase_value),
    )


def _aggregate(rows: Sequence[PositionValuation]) -> PortfolioValuation:
    total_purchase = sum(r.purchase_value for r in rows)
    total_pnl = sum(r.pnl for r in rows)
    fallback: dict[str, None] = {}
    for r in rows:
        if r.price_source is PriceSource.FALLBACK:
            fallback.setdefault(r.symbol, None)
    return PortfolioValuation(
        positions=tuple(rows),
        total_purchase_value=total_purchase,
        total_current_value=sum(r.current_value for r in rows),
        total_pnl=total_pnl,
        total_pnl_percent=_pct(total_pnl, total_purchase),
        fallback_symbols=tuple(fallback),
    )


def value_portfolio(positions: Iterable[Position], prices: PriceLookup) -> PortfolioValuation:
    """
    Value every position and sum the totals.

    Each total is summed from the per-position figures on its own; total P&L
    is not derived as current minus purchase. Zero positions give all-zero
    totals with a 0 percent, never a division error.
    """
    return _aggregate([value_position(p, prices) for p in positions])
