"""Shared pytest fixtures for access registry tests.

Uses an in-memory SQLite database (one per test) so that tests never touch a
real database file, and a frozen clock so that expiry can be driven
explicitly.
"""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from accessreg.auth.security import create_access_token
from accessreg.core.db import init_db
from accessreg.core.registry import AccessRegistry
from accessreg.main import create_app

OWNER = "0x" + "0" * 39 + "1"
ALICE = "0x" + "a" * 40
BOB = "0x" + "b" * 40
CAROL = "0x" + "c" * 40
VERA = "0x" + "e" * 40

START_TIME = 1_700_000_000
DAY = 86_400


class FrozenClock:
    """Time source that only moves when a test says so."""

    def __init__(self, start: int = START_TIME) -> None:
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture()
def engine():
    """Create an in-memory SQLite engine shared by every session of a test."""
    _engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(_engine)
    yield _engine
    _engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def registry(session_factory, clock) -> AccessRegistry:
    """A registry deployed by ``OWNER`` at ``START_TIME``."""
    reg = AccessRegistry(session_factory, clock=clock)
    reg.deploy(OWNER)
    return reg


@pytest.fixture()
def verified_alice(registry: AccessRegistry) -> str:
    """Register and verify ALICE; return her principal."""
    registry.register_identity(ALICE, "Alice", "a@x.com")
    registry.verify_identity(OWNER, ALICE)
    return ALICE


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(registry: AccessRegistry) -> Generator[TestClient, None, None]:
    """Return a ``TestClient`` bound to the test registry."""
    app = create_app(registry)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


def auth_headers(principal: str) -> dict[str, str]:
    """Authorization headers carrying a valid token for *principal*."""
    token = create_access_token({"sub": principal})
    return {"Authorization": f"Bearer {token}"}
