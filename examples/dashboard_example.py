"""
Dashboard example: drive the portfolio controller against the in-memory service.

Shows: loading and selecting portfolios, fan-out price refresh, fallback to
average price for symbols without a quote, timer polling, a correlation matrix,
a navigation reload, and a mutation with its result. Set SAA_API_BASE_URL and
pass --http to run the same flow against a live risk API instead.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from dashboard import print_report
from saa_core import DashboardConfig, DashboardMetrics, NavigationSignal, PositionDraft
from saa_core.examples.sample_data import DEMO_POSITIONS, DEMO_PRICES
from saa_core.metrics import Contributor
from saa_core.service import HttpRiskDataService, InMemoryRiskDataService, PortfolioController


def build_demo_service() -> InMemoryRiskDataService:
    prices = {s: p for s, p in DEMO_PRICES.items() if s != "GLD"}
    return InMemoryRiskDataService(latest_prices=prices)


async def seed(service: InMemoryRiskDataService) -> None:
    core = await service.create_portfolio("Core", "Multi-asset demo book")
    await service.create_positions(core.id, list(DEMO_POSITIONS))
    service.set_metrics(
        core.id,
        DashboardMetrics(
            var_1d=-4210.75,
            cvar_1d=-6120.40,
            vol=0.138,
            contributors=(Contributor("BTC", 0.51), Contributor("SPY", 0.33), Contributor("TLT", 0.16)),
        ),
    )
    service.set_correlation(
        ["SPY", "TLT", "GLD", "BTC"],
        [
            [1.0, -0.32, 0.08, 0.41],
            [-0.32, 1.0, 0.27, -0.12],
            [0.08, 0.27, 1.0, 0.05],
            [0.41, -0.12, 0.05, 1.0],
        ],
    )
    crypto = await service.create_portfolio("Crypto")
    await service.create_positions(crypto.id, [PositionDraft("BTC", 2, 91000.0), PositionDraft("ETH", 10, 3100.0)])


async def run(controller: PortfolioController, service: InMemoryRiskDataService | None) -> None:
    await controller.start()
    print(f"State: {controller.state.value}, portfolios: {len(controller.store)}")
    summary = controller.summary()
    if summary is None:
        print("No portfolios yet.")
        return
    print_report(summary)

    if service is not None:
        print("\n--- Market moves; next poll picks it up ---")
        service.set_price("SPY", 612.40)
        service.set_price("BTC", 97500.00)
        report = await controller.poll_once()
        print(f"Updated: {', '.join(report.updated)}; kept last-known: {', '.join(report.failed) or '-'}")
        print_report(controller.summary())

    correlation = await controller.correlation()
    if correlation is not None:
        print("\n--- Correlation (10-day window) ---")
        for symbol, row in zip(correlation.symbols, correlation.matrix):
            print(f"{symbol:<6} " + " ".join(f"{x:>6.2f}" for x in row))

    others = [pid for pid in controller.store.ids() if pid != controller.active_id]
    if others:
        print("\n--- Switch portfolio ---")
        await controller.select(others[0])
        print_report(controller.summary())

    print("\n--- Back from the import page ---")
    ran = await controller.on_navigation(NavigationSignal(origin="/import", reload=True, key="demo"))
    again = await controller.on_navigation(NavigationSignal(origin="/import", reload=True, key="demo"))
    print(f"Reloaded: {ran}; repeated signal reloaded: {again}")

    print("\n--- Mutation with a malformed position id ---")
    result = await controller.delete_position("42")
    print(f"Result: {result.status.value} ({result.message})")


async def main_async(use_http: bool) -> None:
    config = DashboardConfig.from_env()
    if use_http:
        service = HttpRiskDataService(config=config)
        try:
            async with PortfolioController(service, config=config) as controller:
                await run(controller, None)
        finally:
            await service.aclose()
        return

    service = build_demo_service()
    await seed(service)
    async with PortfolioController(service, config=config) as controller:
        await run(controller, service)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(main_async("--http" in sys.argv[1:]))


if __name__ == "__main__":
    main()
