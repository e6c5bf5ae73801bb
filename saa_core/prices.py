"""
PriceCache: symbol -> last observed market price for the viewing session.

Written only through merge(). A missing value in an update never erases what
is already cached, so one failed lookup cannot blank a displayed price.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType


class PriceCache:
    """
    Latest price per symbol. Newest write wins; no history is kept.

    merge() builds the next mapping and swaps it in with a single assignment,
    so snapshots taken by readers are never partially updated.
    """

    def __init__(self, initial: Mapping[str, float] | None = None) -> None:
        self._prices: dict[str, float] = {}
        if initial:
            self.merge(initial)

    def merge(self, updates: Mapping[str, float | None]) -> list[str]:
        """
        Apply updates. None (failed fetch) and non-positive values are skipped
        and leave the prior entry untouched. Returns the symbols written.
        """
        merged = dict(self._prices)
        written: list[str] = []
        for symbol, price in updates.items():
            if price is None or price <= 0:
                continue
            merged[symbol] = float(price)
            written.append(symbol)
        self._prices = merged
        return written

    def get(self, symbol: str) -> float | None:
        """Cached price, or None if the symbol was never priced."""
        return self._prices.get(symbol)

    def snapshot(self) -> Mapping[str, float]:
        """Read-only view of the current state; unaffected by later merges."""
        return MappingProxyType(self._prices)

    def clear(self) -> None:
        """Drop all entries (full reset only, not on portfolio switch)."""
        self._prices = {}

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._prices

    def __len__(self) -> int:
        return len(self._prices)
