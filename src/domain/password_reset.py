"""
Password reset domain services.

Two independent paths end in the same effect, a new password hash on the Account:

OTP reset (``PasswordResetService``)
    NoRecord -> AwaitingOtp   send_otp(email)      (60-second cooldown)
    AwaitingOtp -> AwaitingOtp resend_otp(email)   (supersedes, no cooldown)
    AwaitingOtp -> Terminal   reset_password(email, code, new_password)

    verify_otp is a read-only pre-check; nothing is persisted on success and the
    final step validates the code again.

Link reset (``LinkResetService``)
    forgot_password(email) stores the SHA-256 of a random token with a one-hour
    expiry on the Account; reset_password(token, new_password) consumes it.
"""

import hashlib
import logging
import math
import secrets
from dataclasses import dataclass, field
from datetime import timedelta

from .credentials import CredentialIssuer, check_password_length
from .exceptions import (
    AccountNotFound,
    InvalidOrExpiredCode,
    InvalidResetToken,
    ResendCooldown,
)
from .otp import Clock, OtpIssuer, code_matches, utc_now
from .ports import AccountRepository, OtpPurpose, OtpRecord, OtpRepository

logger = logging.getLogger(__name__)


@dataclass
class PasswordResetService:
    """Domain service for the OTP-based password reset flow."""

    accounts: AccountRepository
    otp_repository: OtpRepository
    issuer: OtpIssuer
    credentials: CredentialIssuer
    min_password_length: int = 6
    cooldown_seconds: int = 60
    clock: Clock = field(default=utc_now)

    def send_otp(self, email: str) -> bool:
        """
        Email a reset code if an Account exists.

        For unknown emails nothing is issued and the caller reports success
        anyway, so the response does not reveal whether the account exists.

        Returns:
            Whether an Account exists for the email

        Raises:
            ResendCooldown: If a live code was issued less than ``cooldown_seconds`` ago
            DeliveryFailed: If the code could not be sent
        """
        email = email.strip()
        if not self.accounts.exists(email):
            logger.info("Reset OTP requested for unknown email")
            return False

        now = self.clock()
        existing = self.otp_repository.find_live(email, OtpPurpose.RESET, now)
        if existing is not None:
            elapsed = (now - existing.created_at).total_seconds()
            if elapsed < self.cooldown_seconds:
                remaining = math.ceil(self.cooldown_seconds - elapsed)
                raise ResendCooldown(remaining)

        self.issuer.issue(email, OtpPurpose.RESET)
        return True

    def resend_otp(self, email: str) -> None:
        """
        Replace any reset code with a new one. No cooldown.

        Raises:
            AccountNotFound: If no Account exists for the email
            DeliveryFailed: If the code could not be sent
        """
        email = email.strip()
        if not self.accounts.exists(email):
            raise AccountNotFound()

        self.otp_repository.delete(email, OtpPurpose.RESET)
        self.issuer.issue(email, OtpPurpose.RESET)

    def verify_otp(self, email: str, code: str) -> None:
        """
        Check a reset code without consuming it.

        Raises:
            InvalidOrExpiredCode: If no live record matches
        """
        self._matching_record(email.strip(), code)

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        """
        Set a new password using a live reset code, then consume the code.

        Raises:
            WeakPassword: If the new password is too short
            PasswordTooLong: If the new password exceeds the bcrypt input limit
            InvalidOrExpiredCode: If no live record matches
            AccountNotFound: If the Account no longer exists
        """
        check_password_length(new_password, self.min_password_length)

        email = email.strip()
        record = self._matching_record(email, code)

        updated = self.accounts.update_password(
            email, self.credentials.hash_password(new_password)
        )
        if not updated:
            raise AccountNotFound()

        self.otp_repository.delete(email, OtpPurpose.RESET, record.code_hash)
        logger.info("Password reset via OTP for %s", email)

    def _matching_record(self, email: str, code: str) -> OtpRecord:
        record = self.otp_repository.find_live(email, OtpPurpose.RESET, self.clock())
        if record is None or not code_matches(record, code):
            raise InvalidOrExpiredCode()
        return record


@dataclass(frozen=True)
class ResetLink:
    """Plaintext token and the frontend URL embedding it."""

    token: str
    url: str


@dataclass
class LinkResetService:
    """Domain service for the legacy link-based password reset."""

    accounts: AccountRepository
    credentials: CredentialIssuer
    frontend_url: str
    token_ttl_seconds: int = 3600
    min_password_length: int = 6
    clock: Clock = field(default=utc_now)

    def forgot_password(self, email: str) -> ResetLink | None:
        """
        Generate a reset token for the Account.

        Returns:
            The reset link, or None if no Account exists for the email
        """
        email = email.strip()
        token = secrets.token_hex(32)
        expires_at = self.clock() + timedelta(seconds=self.token_ttl_seconds)

        if not self.accounts.set_reset_token(email, self._hash_token(token), expires_at):
            logger.info("Reset link requested for unknown email")
            return None

        logger.info("Reset link generated for %s", email)
        return ResetLink(token=token, url=f"{self.frontend_url.rstrip('/')}/reset-password/{token}")

    def reset_password(self, token: str, new_password: str) -> None:
        """
        Set a new password for the Account holding ``token``.

        Raises:
            WeakPassword: If the new password is too short
            PasswordTooLong: If the new password exceeds the bcrypt input limit
            InvalidResetToken: If the token is unknown or expired
        """
        check_password_length(new_password, self.min_password_length)

        account = self.accounts.find_by_reset_token(self._hash_token(token), self.clock())
        if account is None:
            raise InvalidResetToken()

        # update_password clears the token fields
        if not self.accounts.update_password(
            account.email, self.credentials.hash_password(new_password)
        ):
            raise InvalidResetToken()
        logger.info("Password reset via link for %s", account.email)

    @staticmethod
    def _hash_token(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()
