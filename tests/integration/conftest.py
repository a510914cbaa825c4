"""
Shared fixtures for integration tests.

Provides the application configured from environment variables and a
PostgreSQL pool that skips the test when no database is reachable.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings


@pytest.fixture
def app_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run the app without a database and with a fast poller."""
    monkeypatch.setenv("PROFILE_SYNC_ENABLED", "false")
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0.02")
    monkeypatch.setenv("DEMO_EMAIL", "a@x.com")
    monkeypatch.setenv("DEMO_PASSWORD", "secret123")
    monkeypatch.setenv("BCRYPT_COST", "4")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests."""
    settings = get_settings()
    try:
        with psycopg.connect(settings.database_url, connect_timeout=2):
            pass
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not reachable: {e}")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=4,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()
