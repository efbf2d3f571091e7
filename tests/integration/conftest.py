"""
Shared fixtures for integration tests.

Requires PostgreSQL to be running (via docker-compose) at ``DATABASE_URL``.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import (
    PostgresAccountRepository,
    PostgresOtpRepository,
    run_migrations,
)
from src.config.settings import get_settings


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests and apply migrations."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def pg_otp_repository(pool: ConnectionPool) -> PostgresOtpRepository:
    return PostgresOtpRepository(pool)


@pytest.fixture
def pg_accounts(pool: ConnectionPool) -> PostgresAccountRepository:
    return PostgresAccountRepository(pool)


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean all tables before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM otp_records")
        conn.execute("DELETE FROM goals")
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield
