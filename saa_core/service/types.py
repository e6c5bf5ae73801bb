"""
Service-layer types: errors raised by data services, and the immutable status
objects the controller hands back instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ServiceError(Exception):
    """A data-service call failed. message is the server's text when it sent one."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(ServiceError):
    """The requested portfolio, position or price does not exist."""

    def __init__(self, message: str = "not found", status_code: int | None = 404) -> None:
        super().__init__(message, status_code)


class PriceStatusKind(Enum):
    """Outcome of a single-symbol price lookup."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class PriceQuote:
    """Result of fetching one symbol's price. Immutable."""

    symbol: str
    status: PriceStatusKind
    price: float | None = None
    message: str | None = None
    timestamp: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status == PriceStatusKind.FOUND and self.price is not None


@dataclass(frozen=True)
class RefreshReport:
    """Outcome of one fan-out refresh. applied is False when discarded as stale."""

    quotes: tuple[PriceQuote, ...] = ()
    applied: bool = False
    updated: tuple[str, ...] = ()
    failed: tuple[str, ...] = field(default=())


class MutationStatusKind(Enum):
    """Result of a user-initiated write."""

    OK = "ok"
    FAILED = "failed"
    INVALID = "invalid"


@dataclass(frozen=True)
class MutationResult:
    """What the UI shows after a create/edit/delete: success or a message."""

    status: MutationStatusKind
    message: str | None = None
    portfolio_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == MutationStatusKind.OK
