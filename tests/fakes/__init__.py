"""Fake HTTP sessions, clocks and sources for client and aggregator tests (no live network)."""

from .http import (
    FAKE_EPOCH,
    FakeClock,
    FakeResponse,
    FakeSession,
    RecordingSleep,
    connection_error,
    ok,
    rate_limited,
    server_error,
)
from .sources import FakeSource, FakeSourceAlwaysFail

__all__ = [
    "FAKE_EPOCH",
    "FakeClock",
    "FakeResponse",
    "FakeSession",
    "FakeSource",
    "FakeSourceAlwaysFail",
    "RecordingSleep",
    "connection_error",
    "ok",
    "rate_limited",
    "server_error",
]
