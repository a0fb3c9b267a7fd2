"""Request context utilities.

Carries the correlation ID and the store round-trip counter of the current
request (or benchmark run) through ``ContextVar``s, so code deep inside the
database layer can reach them without explicit plumbing.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from uuid import uuid4

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


@dataclass
class RoundTripCounter:
    """Mutable counter of statements sent to the database."""

    count: int = 0

    def increment(self) -> None:
        self.count += 1


_round_trips_var: ContextVar[RoundTripCounter | None] = ContextVar(
    "round_trips", default=None
)


def get_request_id() -> str | None:
    """Get the current request correlation ID (if any)."""

    return _request_id_var.get()


def set_request_id(request_id: str | None) -> Token[str | None]:
    """Set the current request correlation ID and return the reset token."""

    return _request_id_var.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    """Reset the correlation ID to the previous value using the token."""

    _request_id_var.reset(token)


def new_request_id() -> str:
    """Generate a new correlation ID."""

    return str(uuid4())


@contextmanager
def request_id_context(request_id: str | None):
    """Context manager that sets the correlation ID for the duration."""

    token = set_request_id(request_id)
    try:
        yield
    finally:
        reset_request_id(token)


def current_round_trip_counter() -> RoundTripCounter | None:
    """Return the counter bound to the current context, if one is open."""

    return _round_trips_var.get()


@contextmanager
def count_round_trips() -> Iterator[RoundTripCounter]:
    """Count database round trips issued while the block runs.

    The counter object is shared, not copied, so statements executed in child
    tasks spawned inside the block are counted too.

    Usage:
        with count_round_trips() as counter:
            await service.create(org_id, body)
        print(counter.count)
    """

    counter = RoundTripCounter()
    token = _round_trips_var.set(counter)
    try:
        yield counter
    finally:
        _round_trips_var.reset(token)
