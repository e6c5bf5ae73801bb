"""
Load positions and price-history CSVs for import.

Positions: symbol, quantity, avg_price. Prices: date, symbol, close.
Headers are normalized (case, whitespace, common aliases); symbols upper-cased.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, Union

import pandas as pd

from saa_core.portfolio import PositionDraft

POSITION_COLUMNS = ("symbol", "quantity", "avg_price")
PRICE_COLUMNS = ("date", "symbol", "close")

CsvSource = Union[str, Path, IO[str], IO[bytes]]


POSITION_ALIASES = {
    "ticker": "symbol",
    "qty": "quantity",
    "shares": "quantity",
    "avgprice": "avg_price",
    "average_price": "avg_price",
    "price": "avg_price",
}
PRICE_ALIASES = {
    "ticker": "symbol",
    "close_price": "close",
    "price": "close",
    "last": "close",
    "datetime": "date",
}


def _normalize_columns(df: pd.DataFrame, renames: dict[str, str]) -> pd.DataFrame:
    """Lowercase headers; map common aliases to the canonical column names."""
    out = df.copy()
    out.columns = [str(c).lower().strip().replace(" ", "_") for c in out.columns]
    out = out.rename(columns={k: v for k, v in renames.items() if k in out.columns and v not in out.columns})
    return out


def _require(df: pd.DataFrame, columns: tuple[str, ...], what: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{what} CSV is missing column(s): {', '.join(missing)}")


def _clean_symbols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.dropna(subset=["symbol"]).copy()
    df["symbol"] = df["symbol"].astype(str).str.strip().str.upper()
    return df[df["symbol"] != ""]


def load_positions_csv(source: CsvSource) -> pd.DataFrame:
    """
    Load a positions CSV.

    Parameters
    ----------
    source : str, Path or file-like
        CSV with columns symbol, quantity, avg_price (aliases accepted).

    Returns
    -------
    pd.DataFrame
        Columns symbol, quantity, avg_price; one row per position, file order.

    Raises
    ------
    ValueError
        On missing columns, non-numeric or negative quantity/avg_price.
    """
    df = _normalize_columns(pd.read_csv(source), POSITION_ALIASES)
    _require(df, POSITION_COLUMNS, "Positions")
    df = _clean_symbols(df[list(POSITION_COLUMNS)].copy())
    for col in ("quantity", "avg_price"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
        if df[col].isna().any():
            raise ValueError(f"Positions CSV has non-numeric {col}")
        if (df[col] < 0).any():
            raise ValueError(f"Positions CSV has negative {col}")
    return df.reset_index(drop=True)


def load_prices_csv(source: CsvSource, *, datetime_format: str | None = None) -> pd.DataFrame:
    """
    Load a price-history CSV.

    Returns
    -------
    pd.DataFrame
        Columns date (datetime64), symbol, close; sorted by date then symbol.
        Rows with non-positive or missing close are dropped.
    """
    df = _normalize_columns(pd.read_csv(source), PRICE_ALIASES)
    _require(df, PRICE_COLUMNS, "Prices")
    df = _clean_symbols(df[list(PRICE_COLUMNS)].copy())
    df["date"] = pd.to_datetime(df["date"], format=datetime_format)
    df["close"] = pd.to_numeric(df["close"], errors="coerce")
    df = df[df["close"] > 0]
    return df.sort_values(["date", "symbol"]).reset_index(drop=True)


def positions_from_dataframe(df: pd.DataFrame) -> list[PositionDraft]:
    """Turn a loaded positions frame into drafts for create_positions()."""
    return [
        PositionDraft(symbol=row.symbol, quantity=float(row.quantity), avg_price=float(row.avg_price))
        for row in df.itertuples(index=False)
    ]


def latest_prices(df: pd.DataFrame) -> dict[str, float]:
    """Most recent close per symbol from a loaded prices frame."""
    if df.empty:
        return {}
    last = df.sort_values("date").groupby("symbol", sort=True)["close"].last()
    return {str(sym): float(px) for sym, px in last.items()}
