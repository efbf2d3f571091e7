"""
Domain exceptions - Semantic error types for the OTP authentication flows.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Each exception carries a client-safe ``message``; the API layer maps
the exception class to an HTTP status.
"""


class AuthFlowError(Exception):
    """Base class for authentication flow errors."""

    message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class DuplicateAccount(AuthFlowError):
    """An Account already exists for the email."""

    message = "User already exists"


class NoPendingRequest(AuthFlowError):
    """No live registration OTP exists for the email."""

    message = "No pending registration found. Please register again."


class InvalidOrExpiredCode(AuthFlowError):
    """Supplied code does not match a live OTP record."""

    message = "Invalid or expired OTP. Please request a new one."


class OtpNotVerified(AuthFlowError):
    """Password step attempted before the registration OTP was verified."""

    message = "Email not verified. Please verify your OTP first."


class WeakPassword(AuthFlowError):
    """Password shorter than the configured minimum."""

    def __init__(self, min_length: int) -> None:
        self.min_length = min_length
        super().__init__(f"Password must be at least {min_length} characters")


class PasswordTooLong(AuthFlowError):
    """Password longer than bcrypt can hash."""

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes
        super().__init__(f"Password must be at most {max_bytes} bytes")


class ResendCooldown(AuthFlowError):
    """A reset code was issued too recently."""

    def __init__(self, remaining_seconds: int) -> None:
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"Please wait {remaining_seconds} seconds before requesting a new OTP"
        )


class DeliveryFailed(AuthFlowError):
    """Notification gateway did not deliver the code."""

    message = "Failed to send OTP email. Please try again."


class AccountNotFound(AuthFlowError):
    """Expected Account is missing."""

    message = "User not found"


class UnexpectedStoreError(AuthFlowError):
    """Storage layer failed; details are never shown to clients."""

    message = "Server error"


class InvalidCredentials(AuthFlowError):
    """Email/password mismatch or unusable bearer token."""

    message = "Invalid credentials"


class InvalidResetToken(AuthFlowError):
    """Link-reset token is unknown or expired."""

    message = "Invalid or expired reset token"
