"""
Price fetching: one symbol at a time (PriceFetcher) and fan-out over a
portfolio's symbols (PriceRefresher).

A fetch never raises; every failure becomes a PriceQuote with a non-FOUND
status. The refresher waits for all fetches to settle before touching the
cache, then merges everything in one PriceCache.merge() call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from saa_core.prices import PriceCache

from saa_core.service.client import RiskDataService
from saa_core.service.types import NotFoundError, PriceQuote, PriceStatusKind, RefreshReport, ServiceError

logger = logging.getLogger(__name__)


class PriceFetcher:
    """Single-symbol lookup with a timeout. No retries; the caller decides."""

    def __init__(self, service: RiskDataService, *, timeout: float | None = 5.0) -> None:
        self.service = service
        self.timeout = timeout

    async def fetch(self, symbol: str) -> PriceQuote:
        try:
            price = await asyncio.wait_for(self.service.get_price(symbol), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Price fetch timed out for %s after %ss", symbol, self.timeout)
            return PriceQuote(symbol, PriceStatusKind.UNAVAILABLE, message="timeout", timestamp=datetime.now())
        except NotFoundError as e:
            logger.warning("No price for %s: %s", symbol, e.message)
            return PriceQuote(symbol, PriceStatusKind.NOT_FOUND, message=e.message, timestamp=datetime.now())
        except ServiceError as e:
            logger.warning("Price fetch failed for %s: %s", symbol, e.message)
            return PriceQuote(symbol, PriceStatusKind.UNAVAILABLE, message=e.message, timestamp=datetime.now())
        except Exception as e:  # noqa: BLE001
            logger.exception("Price fetch raised for %s", symbol)
            return PriceQuote(symbol, PriceStatusKind.UNAVAILABLE, message=f"{e!s}", timestamp=datetime.now())

        if price is None or price <= 0:
            logger.warning("Ignoring non-positive price %s for %s", price, symbol)
            return PriceQuote(symbol, PriceStatusKind.UNAVAILABLE, message="invalid price", timestamp=datetime.now())
        logger.debug("Fetched price for %s: %s", symbol, price)
        return PriceQuote(symbol, PriceStatusKind.FOUND, price=float(price), timestamp=datetime.now())


class PriceRefresher:
    """
    Fan-out refresh: fetch every symbol concurrently, settle all, merge once.

    commit_if is checked after all fetches settle and before merging; when it
    returns False the results are dropped (stale) and the cache is untouched.
    """

    def __init__(self, fetcher: PriceFetcher, cache: PriceCache) -> None:
        self.fetcher = fetcher
        self.cache = cache

    async def fetch_all(self, symbols: Iterable[str]) -> list[PriceQuote]:
        distinct = list(dict.fromkeys(s for s in symbols if s))
        if not distinct:
            return []
        return list(await asyncio.gather(*(self.fetcher.fetch(s) for s in distinct)))

    async def refresh(
        self,
        symbols: Iterable[str],
        *,
        commit_if: Callable[[], bool] | None = None,
    ) -> RefreshReport:
        quotes = await self.fetch_all(symbols)
        failed = tuple(q.symbol for q in quotes if not q.ok)

        if commit_if is not None and not commit_if():
            logger.info("Discarding stale price refresh (%d symbols)", len(quotes))
            return RefreshReport(quotes=tuple(quotes), applied=False, failed=failed)

        updated = self.cache.merge({q.symbol: q.price if q.ok else None for q in quotes})
        if failed:
            logger.info("Price refresh: %d updated, %d kept last-known (%s)", len(updated), len(failed), ", ".join(failed))
        return RefreshReport(quotes=tuple(quotes), applied=True, updated=tuple(updated), failed=failed)
