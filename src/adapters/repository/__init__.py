"""Repository adapters - Database implementations."""

from .postgres import PostgresAccountRepository, PostgresOtpRepository, run_migrations

__all__ = ["PostgresAccountRepository", "PostgresOtpRepository", "run_migrations"]
