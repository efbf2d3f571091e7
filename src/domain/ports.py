"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the records the domain works with and the interfaces
(ports) it requires from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol


class OtpPurpose(str, Enum):
    """
    Discriminator for OTP records.

    - REGISTER: proves control of an email before an Account exists.
      Verification persists a ``verified`` flag checked by the password step.
    - RESET: proves control of an existing Account's email.
      The final step re-checks the code; nothing is persisted on verify.
    """

    REGISTER = "register"
    RESET = "reset"


@dataclass(frozen=True)
class OtpRecord:
    """An in-flight one-time code, keyed by (email, purpose)."""

    email: str
    purpose: OtpPurpose
    code_hash: str
    created_at: datetime
    expires_at: datetime
    verified: bool = False
    pending_profile: dict[str, Any] | None = None

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class Account:
    """Durable account. ``password_hash`` never leaves the server."""

    id: int
    name: str
    email: str
    password_hash: str
    is_email_verified: bool = False

    def public_fields(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email}


class OtpRepository(Protocol):
    """Port interface for OTP record persistence."""

    def replace(self, record: OtpRecord) -> None:
        """
        Store ``record``, deleting any existing record for its (email, purpose).

        Must be atomic: concurrent callers leave exactly one record behind.
        """
        ...

    def find_live(self, email: str, purpose: OtpPurpose, now: datetime) -> OtpRecord | None:
        """
        Return the record for (email, purpose) unless absent or expired at ``now``.
        """
        ...

    def mark_verified(self, email: str, purpose: OtpPurpose, code_hash: str) -> bool:
        """
        Set ``verified`` on the record matching (email, purpose, code_hash).

        Returns:
            False if the record was superseded or consumed in the meantime
        """
        ...

    def delete(self, email: str, purpose: OtpPurpose, code_hash: str | None = None) -> bool:
        """
        Delete the record for (email, purpose).

        When ``code_hash`` is given, only a record bound to that code is deleted,
        so a consumer never removes a record issued after it read its own.

        Returns:
            True if a record was deleted
        """
        ...

    def purge_expired(self, now: datetime) -> int:
        """Delete all records expired at ``now``. Returns the number removed."""
        ...


class AccountRepository(Protocol):
    """Port interface for Account persistence."""

    def get_by_email(self, email: str) -> Account | None: ...

    def get_by_id(self, account_id: int) -> Account | None: ...

    def exists(self, email: str) -> bool: ...

    def create(self, name: str, email: str, password_hash: str) -> Account | None:
        """
        Create a verified Account together with its default learning goal.

        Returns:
            The new Account, or None if the email is already taken
        """
        ...

    def update_password(self, email: str, password_hash: str) -> bool:
        """
        Replace the password hash and clear any link-reset token.

        Returns:
            False if no Account exists for the email
        """
        ...

    def set_reset_token(self, email: str, token_hash: str, expires_at: datetime) -> bool: ...

    def find_by_reset_token(self, token_hash: str, now: datetime) -> Account | None:
        """Return the Account holding ``token_hash`` if it has not expired at ``now``."""
        ...


class NotificationGateway(Protocol):
    """Port interface for delivering codes out-of-band."""

    def send_code(self, email: str, code: str, purpose: OtpPurpose) -> bool:
        """
        Deliver ``code`` to ``email``.

        Returns:
            True on delivery, False on failure (including timeout)
        """
        ...
