"""
Portfolio: positions held at recorded average prices. Read model for valuation.

The core holds what the data service returned; it does not reconcile with it.
PortfolioStore is the single source of truth for which portfolios exist.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Asset:
    """A tradable instrument, keyed by symbol. Resolved, never owned."""

    symbol: str
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", str(self.symbol).strip().upper())


@dataclass(frozen=True)
class PositionDraft:
    """Position fields as sent to the service (create/update/import row)."""

    symbol: str
    quantity: float
    avg_price: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", str(self.symbol).strip().upper())
        if self.quantity < 0:
            raise ValueError(f"quantity must be non-negative, got {self.quantity}")
        if self.avg_price < 0:
            raise ValueError(f"avg_price must be non-negative, got {self.avg_price}")

    def to_payload(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "quantity": self.quantity, "avg_price": self.avg_price}


@dataclass(frozen=True)
class Position:
    """A quantity of one asset held at an average purchase price."""

    id: str
    asset: Asset
    quantity: float
    avg_price: float

    @property
    def symbol(self) -> str:
        return self.asset.symbol

    @property
    def purchase_value(self) -> float:
        """quantity * avg_price. Never depends on market prices."""
        return self.quantity * self.avg_price

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Position:
        asset = data.get("asset") or {}
        symbol = asset.get("symbol") or data.get("symbol") or ""
        return cls(
            id=str(data.get("id", "")),
            asset=Asset(symbol=symbol, name=asset.get("name", "")),
            quantity=float(data.get("quantity") or 0.0),
            avg_price=float(data.get("avg_price") or 0.0),
        )


@dataclass(frozen=True)
class Portfolio:
    """Named, ordered collection of positions."""

    id: str
    name: str
    description: str = ""
    positions: tuple[Position, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.positions, tuple):
            object.__setattr__(self, "positions", tuple(self.positions))

    @property
    def has_positions(self) -> bool:
        return len(self.positions) > 0

    def symbols(self) -> list[str]:
        """Distinct held symbols in first-seen order."""
        seen: dict[str, None] = {}
        for pos in self.positions:
            if pos.symbol:
                seen.setdefault(pos.symbol, None)
        return list(seen)

    def position(self, position_id: str) -> Position | None:
        for pos in self.positions:
            if pos.id == position_id:
                return pos
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Portfolio:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            description=data.get("description") or "",
            positions=tuple(Position.from_dict(p) for p in data.get("positions") or ()),
        )


@dataclass
class PortfolioStore:
    """
    Ordered mapping of portfolio id -> Portfolio. Mutable; replaced wholesale
    on reload and patched per portfolio when one is re-fetched.
    """

    _portfolios: dict[str, Portfolio] = field(default_factory=dict)

    def replace_all(self, portfolios: Sequence[Portfolio]) -> None:
        self._portfolios = {p.id: p for p in portfolios}

    def put(self, portfolio: Portfolio) -> None:
        """Insert or replace one portfolio, keeping its position in the order."""
        self._portfolios[portfolio.id] = portfolio

    def remove(self, portfolio_id: str) -> None:
        self._portfolios.pop(portfolio_id, None)

    def get(self, portfolio_id: str | None) -> Portfolio | None:
        if portfolio_id is None:
            return None
        return self._portfolios.get(portfolio_id)

    def first(self) -> Portfolio | None:
        return next(iter(self._portfolios.values()), None)

    def ids(self) -> list[str]:
        return list(self._portfolios)

    def all(self) -> list[Portfolio]:
        return list(self._portfolios.values())

    def __contains__(self, portfolio_id: object) -> bool:
        return portfolio_id in self._portfolios

    def __len__(self) -> int:
        return len(self._portfolios)

    def __iter__(self) -> Iterator[Portfolio]:
        return iter(list(self._portfolios.values()))
