"""
Registration domain service - OTP-gated account creation.

Registration State Machine
==========================

States (all held in the OTP store, keyed by (email, "register")):
- NoRecord:     no live registration record
- AwaitingOtp:  record issued, ``verified = False``
- OtpVerified:  record verified, still carrying the pending display name
- Terminal:     Account created, record deleted

Transitions:
    NoRecord    -> AwaitingOtp   start(name, email)
    AwaitingOtp -> AwaitingOtp   resend(name, email)       (supersedes, new code)
    AwaitingOtp -> OtpVerified   verify(email, code)
    OtpVerified -> Terminal      complete_with_password(email, password)
    any         -> NoRecord      record expiry (5 minutes after issue)

The Account must not exist at any point before the terminal step. The check is
repeated at every step because another request may have created it meanwhile;
the final guard is the store's unique constraint on the account email.
"""

import logging
from dataclasses import dataclass, field

from .credentials import CredentialIssuer, check_password_length
from .exceptions import (
    DuplicateAccount,
    InvalidOrExpiredCode,
    NoPendingRequest,
    OtpNotVerified,
)
from .otp import Clock, OtpIssuer, code_matches, utc_now
from .ports import Account, AccountRepository, OtpPurpose, OtpRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Bearer credential plus the account it was issued for."""

    token: str
    account: Account


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the three-step register -> verify -> set-password flow
    over the OTP store and the account store.
    """

    accounts: AccountRepository
    otp_repository: OtpRepository
    issuer: OtpIssuer
    credentials: CredentialIssuer
    min_password_length: int = 6
    clock: Clock = field(default=utc_now)

    def start(self, name: str, email: str) -> None:
        """
        Begin registration by emailing a code.

        Raises:
            DuplicateAccount: If an Account already exists for the email
            DeliveryFailed: If the code could not be sent (no record is kept)
        """
        email = self._normalize_email(email)
        if self.accounts.exists(email):
            raise DuplicateAccount()

        self.issuer.issue(email, OtpPurpose.REGISTER, pending_profile={"name": name.strip()})
        logger.info("Registration started for %s", email)

    def resend(self, name: str, email: str) -> None:
        """Issue a fresh registration code, superseding any prior one. No cooldown."""
        self.start(name, email)

    def verify(self, email: str, code: str) -> str:
        """
        Check the emailed code and mark the registration as verified.

        The record is kept: it carries the pending display name for the
        password step.

        Returns:
            The pending display name

        Raises:
            NoPendingRequest: If no live registration record exists
            InvalidOrExpiredCode: If the code does not match
            DuplicateAccount: If an Account was created meanwhile
        """
        email = self._normalize_email(email)
        record = self.otp_repository.find_live(email, OtpPurpose.REGISTER, self.clock())
        if record is None:
            raise NoPendingRequest()

        if not code_matches(record, code):
            logger.info("Registration code mismatch for %s", email)
            raise InvalidOrExpiredCode()

        if self.accounts.exists(email):
            raise DuplicateAccount()

        if not self.otp_repository.mark_verified(email, OtpPurpose.REGISTER, record.code_hash):
            # superseded by a resend between read and update
            raise InvalidOrExpiredCode()

        logger.info("Registration email verified for %s", email)
        return self._pending_name(record.pending_profile)

    def complete_with_password(self, email: str, password: str) -> AuthResult:
        """
        Create the Account for a verified registration.

        The Account is created before the OTP record is deleted, so a crash in
        between leaves a verified record that can be re-driven, never a second
        Account.

        Raises:
            OtpNotVerified: If no live, verified registration record exists
            WeakPassword: If the password is too short
            PasswordTooLong: If the password exceeds the bcrypt input limit
            DuplicateAccount: If an Account exists or wins the insert race
        """
        email = self._normalize_email(email)
        record = self.otp_repository.find_live(email, OtpPurpose.REGISTER, self.clock())
        if record is None or not record.verified:
            raise OtpNotVerified()

        check_password_length(password, self.min_password_length)

        if self.accounts.exists(email):
            raise DuplicateAccount()

        account = self.accounts.create(
            name=self._pending_name(record.pending_profile),
            email=email,
            password_hash=self.credentials.hash_password(password),
        )
        if account is None:
            raise DuplicateAccount()

        self.otp_repository.delete(email, OtpPurpose.REGISTER, record.code_hash)
        logger.info("Registration complete for %s (account %s)", email, account.id)

        return AuthResult(token=self.credentials.issue_token(account.id), account=account)

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for storage and lookup.

        Strips surrounding whitespace only; addresses are matched exactly.
        """
        return email.strip()

    @staticmethod
    def _pending_name(pending_profile: dict | None) -> str:
        return (pending_profile or {}).get("name", "")
