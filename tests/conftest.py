"""
Pytest configuration and shared fixtures for royalty splitter tests.

This module provides shared fixtures including:
- A funded in-memory ledger and a manual block-height clock
- Fresh splitters, with and without a defined split
- Flask app and test client wired to a fresh splitter
"""

import os
import sys

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

# Set up test environment before any imports
os.environ["SPLITTER_API_KEY"] = "test-api-key-12345"
os.environ["SPLITTER_REQUIRE_AUTH"] = "false"
os.environ["STORAGE_BACKEND"] = "memory"

from royalty_splitter import (  # noqa: E402
    BlockHeightClock,
    GlobalConfig,
    InMemoryFunds,
    RoyaltySplitter,
)
from royalty_splitter.monitoring.metrics import MetricsCollector  # noqa: E402
from royalty_splitter.storage import MemoryStorage  # noqa: E402

ADMIN = "ST1ADMIN"
CALLER = "ST1CALLER"
ARTIST_X = "ST2ARTIST"
ARTIST_Y = "ST3ARTIST"
STRANGER = "ST4FAKE"
STARTING_BALANCE = 1_000_000

DEFAULT_SPLIT = [
    {"recipient": ARTIST_X, "share": 6000},
    {"recipient": ARTIST_Y, "share": 4000},
]


@pytest.fixture
def funds():
    """Ledger where the default caller holds the starting balance."""
    return InMemoryFunds({CALLER: STARTING_BALANCE})


@pytest.fixture
def clock():
    return BlockHeightClock()


@pytest.fixture
def splitter(funds, clock):
    """Fresh splitter with default configuration and an isolated metrics collector."""
    return RoyaltySplitter(
        config=GlobalConfig(),
        funds=funds,
        clock=clock,
        metrics_collector=MetricsCollector(),
    )


@pytest.fixture
def defined_splitter(splitter):
    """Splitter with work 1 defined by CALLER as 60/40 between two artists."""
    ok, result = splitter.define_split(CALLER, 1, DEFAULT_SPLIT)
    assert ok, result
    return splitter


@pytest.fixture
def flask_app(funds, clock):
    """Flask app serving a fresh splitter backed by memory storage."""
    from royalty_splitter.api import create_app

    service = RoyaltySplitter(
        funds=funds,
        clock=clock,
        storage=MemoryStorage(),
        metrics_collector=MetricsCollector(),
    )
    app = create_app(service)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def flask_client(flask_app):
    """Create Flask test client."""
    return flask_app.test_client()


@pytest.fixture
def caller_headers():
    return {"Content-Type": "application/json", "X-Caller-Identity": CALLER}


@pytest.fixture
def admin_headers():
    return {"Content-Type": "application/json", "X-Caller-Identity": ADMIN}
