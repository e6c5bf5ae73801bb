"""
Import example: create a portfolio from the CSVs in examples/data.

Validates the files locally with the dashboard loaders first, then runs the
create → upload positions → upload prices flow through the controller and
prints the resulting dashboard.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from dashboard import print_report
from saa_core import DashboardConfig
from saa_core.data_loader import latest_prices, load_positions_csv, load_prices_csv
from saa_core.service import InMemoryRiskDataService, PortfolioController

DATA_DIR = Path(__file__).resolve().parent / "data"


async def main_async() -> None:
    positions_path = DATA_DIR / "positions.csv"
    prices_path = DATA_DIR / "prices.csv"

    positions = load_positions_csv(positions_path)
    prices = load_prices_csv(prices_path)
    print(f"Positions file: {len(positions)} row(s), symbols {', '.join(positions['symbol'])}")
    print(f"Prices file: {len(prices)} row(s), {prices['date'].min():%Y-%m-%d} .. {prices['date'].max():%Y-%m-%d}")
    print(f"Latest closes: {latest_prices(prices)}")

    service = InMemoryRiskDataService()
    async with PortfolioController(service, config=DashboardConfig.from_env()) as controller:
        result = await controller.import_portfolio_files("Imported", positions_path, prices_path)
        print(f"Import: {result.status.value}" + (f" ({result.message})" if result.message else ""))
        summary = controller.summary()
        if summary is not None:
            print_report(summary)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
