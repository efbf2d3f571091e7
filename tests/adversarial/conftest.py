"""
Shared fixtures for adversarial tests.

Provides common test infrastructure for race condition and replay tests.
Requires PostgreSQL to be running (via docker-compose).
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
from src.domain.credentials import CredentialIssuer
from src.domain.otp import OtpIssuer
from src.domain.password_reset import PasswordResetService
from src.domain.registration import RegistrationService


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=20,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean all tables before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM otp_records")
        conn.execute("DELETE FROM goals")
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield


@pytest.fixture
def pg_credentials() -> CredentialIssuer:
    return CredentialIssuer(secret="test-secret", bcrypt_cost=4)


@pytest.fixture
def pg_registration(
    pool: ConnectionPool, notifier, pg_credentials: CredentialIssuer
) -> RegistrationService:
    """Registration service backed by PostgreSQL and a recording gateway."""
    otp_repository = PostgresOtpRepository(pool)
    return RegistrationService(
        accounts=PostgresAccountRepository(pool),
        otp_repository=otp_repository,
        issuer=OtpIssuer(otp_repository=otp_repository, notifier=notifier),
        credentials=pg_credentials,
    )


@pytest.fixture
def pg_reset(pool: ConnectionPool, notifier, pg_credentials: CredentialIssuer) -> PasswordResetService:
    """Password reset service backed by PostgreSQL and a recording gateway."""
    otp_repository = PostgresOtpRepository(pool)
    return PasswordResetService(
        accounts=PostgresAccountRepository(pool),
        otp_repository=otp_repository,
        issuer=OtpIssuer(otp_repository=otp_repository, notifier=notifier),
        credentials=pg_credentials,
    )
