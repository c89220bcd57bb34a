from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from ledger.accounts import AccountService
from ledger.persistence import InMemoryKeyValueStore
from ledger.store import LedgerStore


class FixedClock:
    """Returns the same instant until advanced."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def backend() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(backend: InMemoryKeyValueStore, clock: FixedClock) -> LedgerStore:
    return LedgerStore(backend, clock=clock)


@pytest.fixture
def accounts(store: LedgerStore, backend: InMemoryKeyValueStore) -> AccountService:
    return AccountService(store, backend)
