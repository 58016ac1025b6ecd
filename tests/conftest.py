# Test configuration
import os
from datetime import datetime, timedelta, timezone

# Set test environment variables BEFORE importing package modules
os.environ["USE_IN_MEMORY_STORE"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_JSON"] = "false"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_KEY"] = ""

import pytest

from account_security.domain.entities import LockoutPolicy
from account_security.governor import LoginAttemptGovernor
from account_security.repositories.memory_repository import (
    InMemoryAccountLookup, InMemorySecurityEventSink,
    InMemorySecurityRecordStore)

KNOWN_EMAIL = "known@example.com"
KNOWN_ACCOUNT_ID = "acct-known"


class FakeClock:
    """Controllable clock for governor tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def account_lookup():
    return InMemoryAccountLookup({KNOWN_EMAIL: KNOWN_ACCOUNT_ID})


@pytest.fixture
def record_store():
    return InMemorySecurityRecordStore()


@pytest.fixture
def event_sink():
    return InMemorySecurityEventSink()


@pytest.fixture
def governor(account_lookup, record_store, event_sink, clock):
    return LoginAttemptGovernor(
        account_lookup,
        record_store,
        event_sink,
        policy=LockoutPolicy(),
        clock=clock,
    )
