"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory implementations of the OTP and account stores
- A recording notification gateway
- A controllable clock
- Domain services wired to the above
"""

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from src.domain.authentication import AuthenticationService
from src.domain.credentials import CredentialIssuer
from src.domain.otp import OtpIssuer
from src.domain.password_reset import LinkResetService, PasswordResetService
from src.domain.ports import Account, OtpPurpose, OtpRecord
from src.domain.registration import RegistrationService

T0 = datetime(2026, 1, 15, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class InMemoryOtpRepository:
    """Dict-backed OtpRepository keyed by (email, purpose)."""

    def __init__(self) -> None:
        self.records: dict[tuple[str, OtpPurpose], OtpRecord] = {}

    def replace(self, record: OtpRecord) -> None:
        self.records[(record.email, record.purpose)] = record

    def find_live(self, email: str, purpose: OtpPurpose, now: datetime) -> OtpRecord | None:
        record = self.records.get((email, purpose))
        if record is None or not record.is_live(now):
            return None
        return record

    def mark_verified(self, email: str, purpose: OtpPurpose, code_hash: str) -> bool:
        record = self.records.get((email, purpose))
        if record is None or record.code_hash != code_hash:
            return False
        self.records[(email, purpose)] = dataclasses.replace(record, verified=True)
        return True

    def delete(self, email: str, purpose: OtpPurpose, code_hash: str | None = None) -> bool:
        record = self.records.get((email, purpose))
        if record is None or (code_hash is not None and record.code_hash != code_hash):
            return False
        del self.records[(email, purpose)]
        return True

    def purge_expired(self, now: datetime) -> int:
        expired = [key for key, record in self.records.items() if not record.is_live(now)]
        for key in expired:
            del self.records[key]
        return len(expired)


class InMemoryAccountRepository:
    """Dict-backed AccountRepository keyed by email."""

    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}
        self.reset_tokens: dict[str, tuple[str, datetime]] = {}
        self.goals: dict[int, str] = {}
        self._next_id = 1

    def get_by_email(self, email: str) -> Account | None:
        return self.accounts.get(email)

    def get_by_id(self, account_id: int) -> Account | None:
        return next((a for a in self.accounts.values() if a.id == account_id), None)

    def exists(self, email: str) -> bool:
        return email in self.accounts

    def create(self, name: str, email: str, password_hash: str) -> Account | None:
        if email in self.accounts:
            return None
        account = Account(
            id=self._next_id,
            name=name,
            email=email,
            password_hash=password_hash,
            is_email_verified=True,
        )
        self._next_id += 1
        self.accounts[email] = account
        self.goals[account.id] = "My Learning Goal"
        return account

    def update_password(self, email: str, password_hash: str) -> bool:
        account = self.accounts.get(email)
        if account is None:
            return False
        self.accounts[email] = dataclasses.replace(account, password_hash=password_hash)
        self.reset_tokens.pop(email, None)
        return True

    def set_reset_token(self, email: str, token_hash: str, expires_at: datetime) -> bool:
        if email not in self.accounts:
            return False
        self.reset_tokens[email] = (token_hash, expires_at)
        return True

    def find_by_reset_token(self, token_hash: str, now: datetime) -> Account | None:
        for email, (stored_hash, expires_at) in self.reset_tokens.items():
            if stored_hash == token_hash and expires_at > now:
                return self.accounts[email]
        return None


class RecordingNotifier:
    """NotificationGateway that records every code it is asked to send."""

    def __init__(self, deliver: bool = True) -> None:
        self.deliver = deliver
        self.sent: list[tuple[str, str, OtpPurpose]] = []

    def send_code(self, email: str, code: str, purpose: OtpPurpose) -> bool:
        self.sent.append((email, code, purpose))
        return self.deliver

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def otp_repository() -> InMemoryOtpRepository:
    return InMemoryOtpRepository()


@pytest.fixture
def accounts() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def credentials() -> CredentialIssuer:
    """Credential issuer with the cheapest bcrypt cost to keep tests fast."""
    return CredentialIssuer(secret="test-secret", bcrypt_cost=4)


@pytest.fixture
def issuer(
    otp_repository: InMemoryOtpRepository, notifier: RecordingNotifier, clock: FakeClock
) -> OtpIssuer:
    return OtpIssuer(otp_repository=otp_repository, notifier=notifier, clock=clock)


@pytest.fixture
def registration_service(
    accounts: InMemoryAccountRepository,
    otp_repository: InMemoryOtpRepository,
    issuer: OtpIssuer,
    credentials: CredentialIssuer,
    clock: FakeClock,
) -> RegistrationService:
    return RegistrationService(
        accounts=accounts,
        otp_repository=otp_repository,
        issuer=issuer,
        credentials=credentials,
        clock=clock,
    )


@pytest.fixture
def reset_service(
    accounts: InMemoryAccountRepository,
    otp_repository: InMemoryOtpRepository,
    issuer: OtpIssuer,
    credentials: CredentialIssuer,
    clock: FakeClock,
) -> PasswordResetService:
    return PasswordResetService(
        accounts=accounts,
        otp_repository=otp_repository,
        issuer=issuer,
        credentials=credentials,
        clock=clock,
    )


@pytest.fixture
def link_service(
    accounts: InMemoryAccountRepository, credentials: CredentialIssuer, clock: FakeClock
) -> LinkResetService:
    return LinkResetService(
        accounts=accounts,
        credentials=credentials,
        frontend_url="http://frontend.test",
        clock=clock,
    )


@pytest.fixture
def auth_service(
    accounts: InMemoryAccountRepository, credentials: CredentialIssuer
) -> AuthenticationService:
    return AuthenticationService(accounts=accounts, credentials=credentials)


@pytest.fixture
def existing_account(
    accounts: InMemoryAccountRepository, credentials: CredentialIssuer
) -> Account:
    """An Account for b@x.com with password 'oldpass1'."""
    account = accounts.create("Bea", "b@x.com", credentials.hash_password("oldpass1"))
    assert account is not None
    return account
