"""
Active-portfolio controller: selection, loading, price polling and
navigation-triggered reloads over a RiskDataService.

Flow: list portfolios → pick active → fetch its positions and metrics →
fan-out price refresh → valuation on read. A background task repeats the
price refresh; mutations and navigation arrivals go through reload().

Every load and refresh is tagged with the request generation active when it
was issued. Results whose tag is no longer current are dropped, so a
portfolio switch mid-flight never lets the old portfolio's data through.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from saa_core.config import DashboardConfig
from saa_core.metrics import MIN_CORRELATION_WINDOW, CorrelationResult, DashboardMetrics
from saa_core.navigation import NavigationGate, NavigationSignal
from saa_core.portfolio import Portfolio, PortfolioStore, PositionDraft
from saa_core.prices import PriceCache
from saa_core.summary import DashboardSummary, build_summary
from saa_core.valuation import PortfolioValuation, value_portfolio

from saa_core.service.client import RiskDataService, UploadFile
from saa_core.service.fetcher import PriceFetcher, PriceRefresher
from saa_core.service.types import MutationResult, MutationStatusKind, RefreshReport, ServiceError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Request failed"
_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


class ControllerState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class RequestTag:
    """Identity of an in-flight request: generation and portfolio at issue time."""

    generation: int
    portfolio_id: str | None


def _failed(message: str | None) -> MutationResult:
    return MutationResult(status=MutationStatusKind.FAILED, message=message or GENERIC_ERROR)


def _invalid(message: str) -> MutationResult:
    return MutationResult(status=MutationStatusKind.INVALID, message=message)


class PortfolioController:
    """
    Owns the active portfolio id and everything displayed for it.

    State: IDLE → LOADING → READY | ERROR; reload() goes back through LOADING.
    prices_refreshing is orthogonal and only set by user-requested refreshes.
    Read paths degrade (sample metrics, last-known prices); write paths return
    a MutationResult carrying the server message.
    """

    def __init__(
        self,
        service: RiskDataService,
        *,
        config: DashboardConfig | None = None,
        cache: PriceCache | None = None,
        navigation: NavigationGate | None = None,
    ) -> None:
        self.service = service
        self.config = config or DashboardConfig()
        self.store = PortfolioStore()
        self.cache = cache if cache is not None else PriceCache()
        self.fetcher = PriceFetcher(service, timeout=self.config.price_timeout)
        self.refresher = PriceRefresher(self.fetcher, self.cache)
        self.navigation = navigation or NavigationGate()
        self.state = ControllerState.IDLE
        self.error: str | None = None
        self.metrics: DashboardMetrics | None = None
        self.last_refresh: RefreshReport | None = None
        self._active_id: str | None = None
        self._generation = 0
        self._refreshing = 0
        self._started = False
        self._poll_task: asyncio.Task | None = None

    # --- Selection and request tagging ---

    @property
    def active_id(self) -> str | None:
        return self._active_id

    @property
    def active_portfolio(self) -> Portfolio | None:
        return self.store.get(self._active_id)

    @property
    def prices_refreshing(self) -> bool:
        return self._refreshing > 0

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def current_tag(self) -> RequestTag:
        return RequestTag(self._generation, self._active_id)

    def is_current(self, tag: RequestTag) -> bool:
        return tag.generation == self._generation and tag.portfolio_id == self._active_id

    def _set_active(self, portfolio_id: str | None) -> RequestTag:
        """Change selection and invalidate everything issued before."""
        self._generation += 1
        self._active_id = portfolio_id
        if portfolio_id is None:
            self._stop_polling()
        elif self._started:
            self._ensure_polling()
        return RequestTag(self._generation, portfolio_id)

    # --- Lifecycle ---

    async def start(self) -> None:
        """Mount: load everything and begin polling prices."""
        logger.info("Dashboard controller starting")
        self._started = True
        await self.reload(preserve_selection=False)

    async def close(self) -> None:
        """Dispose: stop background work. The service is left open."""
        self._started = False
        task = self._poll_task
        self._stop_polling()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> PortfolioController:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- Loading ---

    async def reload(self, *, preserve_selection: bool = True, prefer_id: str | None = None) -> None:
        """
        Reload the portfolio list and the active portfolio.

        Target selection: prefer_id if it exists, else the current selection
        when preserve_selection and it still exists, else the first portfolio,
        else the empty state. A newer reload or select supersedes this one.
        """
        self._generation += 1
        generation = self._generation
        self.state = ControllerState.LOADING
        logger.info("Loading portfolios")
        try:
            portfolios = await self.service.list_portfolios()
        except ServiceError as e:
            if generation != self._generation:
                return
            await self._fail_load(e.message or "Failed to load portfolios")
            return

        if generation != self._generation:
            logger.debug("Portfolio list superseded by a newer request")
            return

        self.store.replace_all(portfolios)
        self.error = None
        if not portfolios:
            logger.info("No portfolios found")
            self._set_active(None)
            self.metrics = None
            self.state = ControllerState.READY
            return

        if prefer_id is not None and prefer_id in self.store:
            target = prefer_id
        elif preserve_selection and self._active_id in self.store:
            target = self._active_id
        else:
            target = self.store.ids()[0]
        logger.info("Loaded %d portfolio(s); active=%s", len(portfolios), target)
        await self._load_active(self._set_active(target))

    async def _fail_load(self, message: str) -> None:
        logger.warning("Portfolio load failed: %s; falling back to sample dashboard", message)
        self.store.replace_all([])
        tag = self._set_active(None)
        self.error = message
        metrics = await self._fallback_metrics()
        if self.is_current(tag):
            self.metrics = metrics
            self.state = ControllerState.ERROR

    async def select(self, portfolio_id: str) -> bool:
        """Make portfolio_id active and load it. False if it does not exist."""
        if portfolio_id not in self.store:
            logger.warning("Cannot select unknown portfolio %s", portfolio_id)
            return False
        await self._load_active(self._set_active(portfolio_id))
        return True

    async def _load_active(self, tag: RequestTag) -> None:
        self.state = ControllerState.LOADING
        pid = tag.portfolio_id
        try:
            portfolio = await self.service.get_portfolio(pid)
        except ServiceError as e:
            logger.warning("Could not refresh portfolio %s: %s; using listed positions", pid, e.message)
        else:
            if self.is_current(tag):
                self.store.put(portfolio)

        if not self.is_current(tag):
            return
        metrics = await self._load_metrics(pid)
        if not self.is_current(tag):
            logger.debug("Dropping metrics for %s: selection changed", pid)
            return
        self.metrics = metrics
        self.error = None
        self.state = ControllerState.READY
        await self._refresh(tag, show_progress=False)

    async def _load_metrics(self, portfolio_id: str) -> DashboardMetrics:
        try:
            return await self.service.get_dashboard_metrics(portfolio_id)
        except ServiceError as e:
            logger.warning("Dashboard metrics unavailable for %s: %s", portfolio_id, e.message)
        return await self._fallback_metrics()

    async def _fallback_metrics(self) -> DashboardMetrics:
        try:
            return await self.service.get_sample_dashboard()
        except ServiceError as e:
            logger.error("Sample dashboard unavailable: %s; showing empty metrics", e.message)
            return DashboardMetrics.empty()

    # --- Prices ---

    async def _refresh(self, tag: RequestTag, *, show_progress: bool) -> RefreshReport | None:
        portfolio = self.store.get(tag.portfolio_id)
        if portfolio is None or not portfolio.has_positions:
            return None
        if show_progress:
            self._refreshing += 1
        try:
            report = await self.refresher.refresh(portfolio.symbols(), commit_if=lambda: self.is_current(tag))
        finally:
            if show_progress:
                self._refreshing -= 1
        if report.applied:
            self.last_refresh = report
        return report

    async def refresh_prices(self, *, show_progress: bool = False) -> RefreshReport | None:
        """Fan-out price refresh for the active portfolio only. None if nothing to price."""
        if self._active_id is None:
            return None
        return await self._refresh(self.current_tag(), show_progress=show_progress)

    async def poll_once(self) -> RefreshReport | None:
        """One timer tick: refresh prices if a portfolio with positions is active."""
        portfolio = self.active_portfolio
        if portfolio is None or not portfolio.has_positions:
            return None
        return await self.refresh_prices()

    async def _poll_loop(self) -> None:
        interval = self.config.refresh_interval
        while True:
            await asyncio.sleep(interval)
            try:
                await self.poll_once()
            except Exception:  # noqa: BLE001
                logger.exception("Background price refresh failed")

    def _ensure_polling(self) -> None:
        if not self.polling:
            self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())
            logger.debug("Price polling started (every %ss)", self.config.refresh_interval)

    def _stop_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
            logger.debug("Price polling stopped")

    async def quote(self, symbol: str) -> float | None:
        """Current price for one symbol (e.g. to pre-fill an edit form). Cache untouched."""
        quote = await self.fetcher.fetch(symbol.strip().upper())
        return quote.price if quote.ok else None

    async def recalculate_risk(self) -> MutationResult:
        """Re-request metrics for the active portfolio; errors are surfaced, not masked."""
        if self._active_id is None:
            return _invalid("Please create a portfolio first")
        tag = self.current_tag()
        try:
            metrics = await self.service.get_dashboard_metrics(tag.portfolio_id)
        except ServiceError as e:
            logger.warning("Risk recalculation failed: %s", e.message)
            return _failed(e.message)
        if self.is_current(tag):
            self.metrics = metrics
        return MutationResult(status=MutationStatusKind.OK, portfolio_id=tag.portfolio_id)

    async def correlation(
        self,
        symbols: Sequence[str] | None = None,
        *,
        window_days: int = MIN_CORRELATION_WINDOW,
    ) -> CorrelationResult | None:
        """
        Correlation matrix for the analytics view. Defaults to the active
        portfolio's symbols. None when there is nothing to correlate or the
        risk service cannot compute it (e.g. not enough price history).
        """
        if symbols is None:
            portfolio = self.active_portfolio
            symbols = portfolio.symbols() if portfolio is not None else []
        wanted = list(dict.fromkeys(s.strip().upper() for s in symbols if s and s.strip()))
        if not wanted:
            return None
        try:
            return await self.service.calculate_correlation(wanted, window_days)
        except ServiceError as e:
            logger.warning("Correlation unavailable for %s: %s", ", ".join(wanted), e.message)
            return None

    # --- Navigation ---

    async def on_navigation(self, signal: NavigationSignal) -> bool:
        """Reload once per arrival that asks for it. True if a reload ran."""
        if not self.config.reload_on_navigation:
            return False
        if not self.navigation.observe(signal):
            return False
        await self.reload(preserve_selection=False)
        return True

    def on_leave(self) -> None:
        """The dashboard is no longer shown; rearm navigation reloads."""
        self.navigation.leave()

    # --- Mutations ---

    async def _mutate(
        self,
        action: str,
        call: Callable[[], Awaitable[object]],
        *,
        prefer_id: str | None = None,
    ) -> MutationResult:
        try:
            await call()
        except ServiceError as e:
            logger.warning("%s failed: %s", action, e.message)
            return _failed(e.message)
        logger.info("%s succeeded", action)
        await self.reload(preserve_selection=True, prefer_id=prefer_id)
        return MutationResult(status=MutationStatusKind.OK, portfolio_id=prefer_id or self._active_id)

    async def create_portfolio(self, name: str, description: str = "") -> MutationResult:
        try:
            portfolio = await self.service.create_portfolio(name, description)
        except ServiceError as e:
            logger.warning("Create portfolio failed: %s", e.message)
            return _failed(e.message)
        await self.reload(preserve_selection=True)
        return MutationResult(status=MutationStatusKind.OK, portfolio_id=portfolio.id)

    async def update_portfolio(self, portfolio_id: str, name: str, description: str = "") -> MutationResult:
        return await self._mutate(
            "Update portfolio", lambda: self.service.update_portfolio(portfolio_id, name, description)
        )

    async def delete_portfolio(self, portfolio_id: str) -> MutationResult:
        try:
            await self.service.delete_portfolio(portfolio_id)
        except ServiceError as e:
            logger.warning("Delete portfolio failed: %s", e.message)
            return _failed(e.message)
        if portfolio_id == self._active_id:
            self._set_active(None)
            self.metrics = None
        await self.reload(preserve_selection=True)
        return MutationResult(status=MutationStatusKind.OK, portfolio_id=portfolio_id)

    async def create_positions(self, portfolio_id: str, drafts: Sequence[PositionDraft]) -> MutationResult:
        if not drafts:
            return _invalid("Add at least one position")
        return await self._mutate(
            "Create positions", lambda: self.service.create_positions(portfolio_id, list(drafts))
        )

    async def update_position(self, position_id: str, draft: PositionDraft) -> MutationResult:
        """Edit a position of the active portfolio."""
        pid = self._active_id
        if pid is None:
            return _invalid("No portfolio selected")
        return await self._mutate(
            "Update position", lambda: self.service.update_position(pid, position_id, draft)
        )

    async def delete_position(self, position_id: str) -> MutationResult:
        """Delete a position of the active portfolio. Malformed ids never reach the service."""
        pid = self._active_id
        if pid is None:
            return _invalid("No portfolio selected")
        if not position_id:
            return _invalid("Position ID is missing")
        if not _UUID_RE.match(position_id):
            logger.error("Invalid position id format: %s", position_id)
            return _invalid("Invalid position ID format")
        return await self._mutate(
            "Delete position", lambda: self.service.delete_position(pid, position_id)
        )

    async def import_positions(self, file: UploadFile) -> MutationResult:
        pid = self._active_id
        if pid is None:
            return _invalid("No portfolio selected")
        return await self._mutate("Import positions", lambda: self.service.import_positions(pid, file))

    async def import_prices(self, file: UploadFile) -> MutationResult:
        pid = self._active_id
        if pid is None:
            return _invalid("No portfolio selected")
        return await self._mutate("Import prices", lambda: self.service.import_prices(pid, file))

    async def create_portfolio_with_positions(
        self, name: str, drafts: Sequence[PositionDraft]
    ) -> MutationResult:
        """Manual entry: create, populate, then reload with the new portfolio active."""
        if not drafts:
            return _invalid("Add at least one position")
        return await self._create_and_fill(
            name, lambda pid: self.service.create_positions(pid, list(drafts))
        )

    async def import_portfolio_files(
        self, name: str, positions_file: UploadFile, prices_file: UploadFile
    ) -> MutationResult:
        """CSV import: create, upload positions then prices, reload with it active."""

        async def upload(pid: str) -> None:
            await self.service.import_positions(pid, positions_file)
            await self.service.import_prices(pid, prices_file)

        return await self._create_and_fill(name, upload)

    async def _create_and_fill(
        self, name: str, fill: Callable[[str], Awaitable[object]]
    ) -> MutationResult:
        try:
            portfolio = await self.service.create_portfolio(name)
        except ServiceError as e:
            logger.warning("Create portfolio failed: %s", e.message)
            return _failed(e.message)
        try:
            await fill(portfolio.id)
        except ServiceError as e:
            # The portfolio exists server-side now; show it as it is.
            logger.warning("Populating portfolio %s failed: %s", portfolio.id, e.message)
            await self.reload(preserve_selection=True, prefer_id=portfolio.id)
            return MutationResult(
                status=MutationStatusKind.FAILED,
                message=e.message or GENERIC_ERROR,
                portfolio_id=portfolio.id,
            )
        await self.reload(preserve_selection=True, prefer_id=portfolio.id)
        return MutationResult(status=MutationStatusKind.OK, portfolio_id=portfolio.id)

    # --- Views ---

    def valuation(self) -> PortfolioValuation:
        """Valuation of the active portfolio at cached prices (empty if none)."""
        portfolio = self.active_portfolio
        if portfolio is None:
            return PortfolioValuation()
        return value_portfolio(portfolio.positions, self.cache.snapshot())

    def summary(self) -> DashboardSummary | None:
        portfolio = self.active_portfolio
        if portfolio is None:
            return None
        return build_summary(portfolio, self.valuation(), self.metrics)
