"""
Domain layer - Pure business logic with zero framework imports.

This package contains the OTP-gated registration and password reset flows.
It defines its own port interfaces for infrastructure abstraction, so storage
and email delivery stay behind adapters.
"""

from .authentication import AuthenticationService
from .credentials import CredentialIssuer
from .exceptions import (
    AccountNotFound,
    AuthFlowError,
    DeliveryFailed,
    DuplicateAccount,
    InvalidCredentials,
    InvalidOrExpiredCode,
    InvalidResetToken,
    NoPendingRequest,
    OtpNotVerified,
    PasswordTooLong,
    ResendCooldown,
    UnexpectedStoreError,
    WeakPassword,
)
from .otp import OtpIssuer
from .password_reset import LinkResetService, PasswordResetService, ResetLink
from .ports import (
    Account,
    AccountRepository,
    NotificationGateway,
    OtpPurpose,
    OtpRecord,
    OtpRepository,
)
from .registration import AuthResult, RegistrationService

__all__ = [
    "Account",
    "AccountNotFound",
    "AccountRepository",
    "AuthFlowError",
    "AuthResult",
    "AuthenticationService",
    "CredentialIssuer",
    "DeliveryFailed",
    "DuplicateAccount",
    "InvalidCredentials",
    "InvalidOrExpiredCode",
    "InvalidResetToken",
    "LinkResetService",
    "NoPendingRequest",
    "NotificationGateway",
    "OtpIssuer",
    "OtpNotVerified",
    "OtpPurpose",
    "OtpRecord",
    "OtpRepository",
    "PasswordResetService",
    "PasswordTooLong",
    "RegistrationService",
    "ResendCooldown",
    "ResetLink",
    "UnexpectedStoreError",
    "WeakPassword",
]
