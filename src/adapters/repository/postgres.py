"""
PostgreSQL repository adapters - Implement the OtpRepository and
AccountRepository protocols.

This module provides the PostgreSQL implementations of the domain's
repository ports using psycopg3 with raw SQL.

Atomicity
---------
- ``otp_records`` has primary key (email, purpose). Issuing uses
  INSERT ... ON CONFLICT DO UPDATE, so concurrent issuers leave exactly one
  row, bound to whichever code was written last.
- ``accounts.email`` is UNIQUE. Account creation uses ON CONFLICT DO NOTHING
  and reports a lost race as ``None`` instead of raising.
- Account creation and the default goal insert share one transaction.

Expiry is always compared against the ``now`` supplied by the domain, so the
domain clock is the single source of time for OTP lifecycles.

Any psycopg error is logged and re-raised as UnexpectedStoreError so that no
driver detail reaches the API layer.
"""

import functools
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import ParamSpec, TypeVar

import psycopg
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from src.domain.exceptions import UnexpectedStoreError
from src.domain.ports import Account, OtpPurpose, OtpRecord

logger = logging.getLogger(__name__)

DEFAULT_GOAL_TITLE = "My Learning Goal"
DEFAULT_GOAL_DESCRIPTION = "Start tracking your learning journey"

P = ParamSpec("P")
R = TypeVar("R")


def _store_errors(method: Callable[P, R]) -> Callable[P, R]:
    """Translate driver errors into UnexpectedStoreError."""

    @functools.wraps(method)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return method(*args, **kwargs)
        except psycopg.Error as e:
            logger.error("Store operation %s failed: %s", method.__name__, e)
            raise UnexpectedStoreError() from e

    return wrapper


class PostgresOtpRepository:
    """
    Implements OtpRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    @_store_errors
    def replace(self, record: OtpRecord) -> None:
        """
        Store ``record``, superseding any row for (email, purpose).

        The upsert resets ``verified`` so a resend always restarts verification.
        """
        sql = """
            INSERT INTO otp_records
                (email, purpose, code_hash, verified, pending_profile, created_at, expires_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (email, purpose) DO UPDATE
            SET code_hash = EXCLUDED.code_hash,
                verified = EXCLUDED.verified,
                pending_profile = EXCLUDED.pending_profile,
                created_at = EXCLUDED.created_at,
                expires_at = EXCLUDED.expires_at
        """
        profile = Jsonb(record.pending_profile) if record.pending_profile is not None else None

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                sql,
                (
                    record.email,
                    record.purpose.value,
                    record.code_hash,
                    record.verified,
                    profile,
                    record.created_at,
                    record.expires_at,
                ),
            )
            conn.commit()

    @_store_errors
    def find_live(self, email: str, purpose: OtpPurpose, now: datetime) -> OtpRecord | None:
        sql = """
            SELECT email, purpose, code_hash, created_at, expires_at, verified, pending_profile
            FROM otp_records
            WHERE email = %s AND purpose = %s AND expires_at > %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, purpose.value, now))
            row = cursor.fetchone()

        if row is None:
            return None
        return OtpRecord(
            email=row[0],
            purpose=OtpPurpose(row[1]),
            code_hash=row[2].strip(),
            created_at=row[3],
            expires_at=row[4],
            verified=row[5],
            pending_profile=row[6],
        )

    @_store_errors
    def mark_verified(self, email: str, purpose: OtpPurpose, code_hash: str) -> bool:
        sql = """
            UPDATE otp_records
            SET verified = TRUE
            WHERE email = %s AND purpose = %s AND code_hash = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, purpose.value, code_hash))
            conn.commit()
            return cursor.rowcount == 1

    @_store_errors
    def delete(self, email: str, purpose: OtpPurpose, code_hash: str | None = None) -> bool:
        if code_hash is None:
            sql = "DELETE FROM otp_records WHERE email = %s AND purpose = %s"
            params: tuple = (email, purpose.value)
        else:
            sql = "DELETE FROM otp_records WHERE email = %s AND purpose = %s AND code_hash = %s"
            params = (email, purpose.value, code_hash)

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, params)
            conn.commit()
            return cursor.rowcount > 0

    @_store_errors
    def purge_expired(self, now: datetime) -> int:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM otp_records WHERE expires_at <= %s", (now,))
            conn.commit()
            purged = cursor.rowcount

        if purged:
            logger.info("Purged %s expired OTP record(s)", purged)
        return purged


_ACCOUNT_COLUMNS = "id, name, email, password_hash, is_email_verified"


def _account_from_row(row: tuple | None) -> Account | None:
    if row is None:
        return None
    return Account(
        id=row[0],
        name=row[1],
        email=row[2],
        password_hash=row[3],
        is_email_verified=row[4],
    )


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    @_store_errors
    def get_by_email(self, email: str) -> Account | None:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s", (email,))
            return _account_from_row(cursor.fetchone())

    @_store_errors
    def get_by_id(self, account_id: int) -> Account | None:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = %s", (account_id,))
            return _account_from_row(cursor.fetchone())

    @_store_errors
    def exists(self, email: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM accounts WHERE email = %s", (email,))
            return cursor.fetchone() is not None

    @_store_errors
    def create(self, name: str, email: str, password_hash: str) -> Account | None:
        """
        Insert a verified Account and its default goal in one transaction.

        Returns:
            The new Account, or None if the email is already taken
        """
        insert_account_sql = f"""
            INSERT INTO accounts (name, email, password_hash, is_email_verified)
            VALUES (%s, %s, %s, TRUE)
            ON CONFLICT (email) DO NOTHING
            RETURNING {_ACCOUNT_COLUMNS}
        """
        insert_goal_sql = """
            INSERT INTO goals (account_id, title, description)
            VALUES (%s, %s, %s)
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(insert_account_sql, (name, email, password_hash))
            account = _account_from_row(cursor.fetchone())
            if account is None:
                conn.commit()
                return None

            cursor.execute(
                insert_goal_sql, (account.id, DEFAULT_GOAL_TITLE, DEFAULT_GOAL_DESCRIPTION)
            )
            conn.commit()
            return account

    @_store_errors
    def update_password(self, email: str, password_hash: str) -> bool:
        sql = """
            UPDATE accounts
            SET password_hash = %s,
                reset_token_hash = NULL,
                reset_token_expires_at = NULL,
                updated_at = NOW()
            WHERE email = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (password_hash, email))
            conn.commit()
            return cursor.rowcount == 1

    @_store_errors
    def set_reset_token(self, email: str, token_hash: str, expires_at: datetime) -> bool:
        sql = """
            UPDATE accounts
            SET reset_token_hash = %s, reset_token_expires_at = %s, updated_at = NOW()
            WHERE email = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token_hash, expires_at, email))
            conn.commit()
            return cursor.rowcount == 1

    @_store_errors
    def find_by_reset_token(self, token_hash: str, now: datetime) -> Account | None:
        sql = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM accounts
            WHERE reset_token_hash = %s AND reset_token_expires_at > %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token_hash, now))
            return _account_from_row(cursor.fetchone())


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %s migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
