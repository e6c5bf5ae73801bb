"""
Risk figures supplied by the external risk service.

DashboardMetrics is opaque to the valuation engine. The core only parses it and
tags where it came from (the portfolio's own metrics, the sample dashboard, or
the zeroed last-resort object). RiskRequest and the VaR/CVaR/correlation
results are the contract of the on-demand risk endpoints; the numerics stay
on the service side.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any


class MetricsSource(Enum):
    PORTFOLIO = "portfolio"
    SAMPLE = "sample"
    EMPTY = "empty"


@dataclass(frozen=True)
class Contributor:
    """An asset's fractional share of portfolio risk."""

    symbol: str
    contribution: float


@dataclass(frozen=True)
class DashboardMetrics:
    """One-day VaR/CVaR, volatility and risk contributors."""

    var_1d: float = 0.0
    cvar_1d: float = 0.0
    vol: float = 0.0
    contributors: tuple[Contributor, ...] = ()
    source: MetricsSource = MetricsSource.PORTFOLIO

    @classmethod
    def empty(cls) -> DashboardMetrics:
        """Explicitly zeroed metrics so the view always has something to render."""
        return cls(source=MetricsSource.EMPTY)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        source: MetricsSource = MetricsSource.PORTFOLIO,
    ) -> DashboardMetrics:
        contributors = tuple(
            Contributor(symbol=str(c.get("symbol", "")), contribution=float(c.get("contribution") or 0.0))
            for c in data.get("contributors") or ()
        )
        return cls(
            var_1d=float(data.get("var_1d") or 0.0),
            cvar_1d=float(data.get("cvar_1d") or 0.0),
            vol=float(data.get("vol") or 0.0),
            contributors=contributors,
            source=source,
        )

    @property
    def contribution_total(self) -> float:
        """Sum of contributor fractions. Informational; not expected to be 1."""
        return sum(c.contribution for c in self.contributors)


# --- On-demand risk requests (computed by the risk service) ---

MIN_CORRELATION_WINDOW = 10


@dataclass(frozen=True)
class RiskRequest:
    """
    Parameters of a VaR or CVaR request for one portfolio.

    method: historical, parametric_normal, parametric_student or monte_carlo.
    """

    portfolio_id: str
    confidence: float = 0.95
    horizon_days: int = 1
    method: str = "historical"
    window_days: int = 250

    def __post_init__(self) -> None:
        if not 0 < self.confidence < 1:
            raise ValueError("confidence must be between 0 and 1")
        if self.horizon_days < 1:
            raise ValueError("horizon_days must be >= 1")

    def to_payload(self) -> dict[str, Any]:
        return {
            "portfolio_id": self.portfolio_id,
            "confidence": self.confidence,
            "horizon_days": self.horizon_days,
            "method": self.method,
            "window_days": self.window_days,
        }


@dataclass(frozen=True)
class VaRResult:
    var: float
    job_id: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VaRResult:
        return cls(var=float(data.get("var") or 0.0), job_id=_job_id(data))


@dataclass(frozen=True)
class CVaRResult:
    cvar: float
    job_id: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CVaRResult:
        return cls(cvar=float(data.get("cvar") or 0.0), job_id=_job_id(data))


@dataclass(frozen=True)
class CorrelationResult:
    """Pairwise correlation matrix; row and column order follow symbols."""

    symbols: tuple[str, ...]
    matrix: tuple[tuple[float, ...], ...]
    job_id: str | None = None

    def __post_init__(self) -> None:
        n = len(self.symbols)
        if len(self.matrix) != n or any(len(row) != n for row in self.matrix):
            raise ValueError(f"correlation matrix must be {n}x{n}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], symbols: Sequence[str]) -> CorrelationResult:
        matrix = tuple(tuple(float(x) for x in row) for row in data.get("matrix") or ())
        return cls(symbols=tuple(symbols), matrix=matrix, job_id=_job_id(data))

    def get(self, a: str, b: str) -> float:
        """Correlation between two symbols of the request."""
        return self.matrix[self.symbols.index(a)][self.symbols.index(b)]


def _job_id(data: Mapping[str, Any]) -> str | None:
    job = data.get("job_id")
    return str(job) if job else None
