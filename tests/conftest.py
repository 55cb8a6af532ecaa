"""Shared fixtures: a controllable clock, a store and a manager bound to both."""

import pytest

from hive_mfa.auth.hotp import hotp
from hive_mfa.auth.manager import TwoFactorManager
from hive_mfa.auth.store import InMemoryProfileStore
from hive_mfa.auth.totp import TOTPEngine
from hive_mfa.core_crypto import base32


# 2033-05-18T03:33:30Z, exactly on a 30-second step boundary
START_TIME = 2_000_000_010.0


class FakeClock:
    """Clock whose time only moves when told to."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def code_for(secret_base32: str, engine: TOTPEngine, steps: int = 0) -> str:
    """Code an authenticator would show `steps` time steps from now."""
    return hotp(base32.decode(secret_base32), engine.current_counter() + steps)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return TOTPEngine(clock=clock)


@pytest.fixture
def store():
    return InMemoryProfileStore()


@pytest.fixture
def manager(store, engine):
    return TwoFactorManager(store, engine=engine)


@pytest.fixture
def enrolled(manager, engine):
    """An account that has provisioned and confirmed; returns the setup result."""
    setup = manager.provision("acct-1", "alice@example.com")
    result = manager.confirm("acct-1", code_for(setup.secret_base32, engine))
    assert result.enabled
    return setup
