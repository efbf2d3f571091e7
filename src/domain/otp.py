"""
OTP issuance primitive shared by the registration and reset flows.

Issuing a code:
1. Generate a uniformly random 6-digit code (100000-999999).
2. Persist only its SHA-256 digest, replacing any record for (email, purpose).
3. Hand the plaintext to the notification gateway.
4. If delivery fails, delete the record just written and raise DeliveryFailed.

The plaintext code is returned to the calling flow but never persisted or logged.
"""

import hashlib
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from .exceptions import DeliveryFailed
from .ports import NotificationGateway, OtpPurpose, OtpRecord, OtpRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_code() -> str:
    """Cryptographically random 6-digit code, never with a leading zero."""
    return str(100000 + secrets.randbelow(900000))


def hash_code(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()


def code_matches(record: OtpRecord, code: str) -> bool:
    """Constant-time comparison of ``code`` against the stored digest."""
    return secrets.compare_digest(record.code_hash, hash_code(code))


@dataclass
class OtpIssuer:
    """Creates OTP records and dispatches their codes."""

    otp_repository: OtpRepository
    notifier: NotificationGateway
    ttl_seconds: int = 300
    clock: Clock = field(default=utc_now)

    def issue(
        self,
        email: str,
        purpose: OtpPurpose,
        pending_profile: dict[str, Any] | None = None,
    ) -> str:
        """
        Issue a new code for (email, purpose), superseding any prior one.

        Returns:
            The plaintext code (for the flow's own use, never for clients)

        Raises:
            DeliveryFailed: If the gateway did not deliver; no record is left behind
        """
        code = generate_code()
        now = self.clock()
        record = OtpRecord(
            email=email,
            purpose=purpose,
            code_hash=hash_code(code),
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
            pending_profile=pending_profile,
        )
        self.otp_repository.replace(record)

        try:
            delivered = self.notifier.send_code(email, code, purpose)
        except Exception as exc:
            logger.error("OTP delivery raised for %s (%s): %s", email, purpose.value, exc)
            self.otp_repository.delete(email, purpose, record.code_hash)
            raise DeliveryFailed() from exc

        if not delivered:
            logger.error("OTP delivery failed for %s (%s)", email, purpose.value)
            self.otp_repository.delete(email, purpose, record.code_hash)
            raise DeliveryFailed()

        logger.info("OTP issued for %s (%s)", email, purpose.value)
        return code
