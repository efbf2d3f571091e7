"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountRepository, PostgresOtpRepository
from src.adapters.smtp.console import ConsoleNotificationGateway
from src.adapters.smtp.mailer import SmtpNotificationGateway
from src.config.settings import Settings, get_settings
from src.domain.authentication import AuthenticationService
from src.domain.credentials import CredentialIssuer
from src.domain.exceptions import InvalidCredentials
from src.domain.otp import OtpIssuer
from src.domain.password_reset import LinkResetService, PasswordResetService
from src.domain.ports import NotificationGateway
from src.domain.registration import RegistrationService


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_otp_repository(pool: ConnectionPool = Depends(get_pool)) -> PostgresOtpRepository:
    return PostgresOtpRepository(pool)


def get_account_repository(
    pool: ConnectionPool = Depends(get_pool),
) -> PostgresAccountRepository:
    return PostgresAccountRepository(pool)


@lru_cache
def _notifier_for(backend: str) -> NotificationGateway:
    settings = get_settings()
    if backend == "smtp":
        return SmtpNotificationGateway(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            sender=settings.smtp_from,
            timeout=settings.smtp_timeout_seconds,
            ttl_minutes=settings.otp_ttl_seconds // 60,
        )
    return ConsoleNotificationGateway()


def get_notifier(settings: Settings = Depends(get_settings)) -> NotificationGateway:
    """Notification gateway selected by ``email_backend`` (singleton per backend)."""
    return _notifier_for(settings.email_backend)


def get_credential_issuer(settings: Settings = Depends(get_settings)) -> CredentialIssuer:
    return CredentialIssuer(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.jwt_expire_minutes,
        bcrypt_cost=settings.bcrypt_cost,
    )


def get_otp_issuer(
    otp_repository: PostgresOtpRepository = Depends(get_otp_repository),
    notifier: NotificationGateway = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> OtpIssuer:
    return OtpIssuer(
        otp_repository=otp_repository,
        notifier=notifier,
        ttl_seconds=settings.otp_ttl_seconds,
    )


def get_registration_service(
    accounts: PostgresAccountRepository = Depends(get_account_repository),
    otp_repository: PostgresOtpRepository = Depends(get_otp_repository),
    issuer: OtpIssuer = Depends(get_otp_issuer),
    credentials: CredentialIssuer = Depends(get_credential_issuer),
    settings: Settings = Depends(get_settings),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the stores, the OTP issuer and the credential issuer.
    """
    return RegistrationService(
        accounts=accounts,
        otp_repository=otp_repository,
        issuer=issuer,
        credentials=credentials,
        min_password_length=settings.min_password_length,
    )


def get_password_reset_service(
    accounts: PostgresAccountRepository = Depends(get_account_repository),
    otp_repository: PostgresOtpRepository = Depends(get_otp_repository),
    issuer: OtpIssuer = Depends(get_otp_issuer),
    credentials: CredentialIssuer = Depends(get_credential_issuer),
    settings: Settings = Depends(get_settings),
) -> PasswordResetService:
    return PasswordResetService(
        accounts=accounts,
        otp_repository=otp_repository,
        issuer=issuer,
        credentials=credentials,
        min_password_length=settings.min_password_length,
        cooldown_seconds=settings.otp_resend_cooldown_seconds,
    )


def get_link_reset_service(
    accounts: PostgresAccountRepository = Depends(get_account_repository),
    credentials: CredentialIssuer = Depends(get_credential_issuer),
    settings: Settings = Depends(get_settings),
) -> LinkResetService:
    return LinkResetService(
        accounts=accounts,
        credentials=credentials,
        frontend_url=settings.frontend_url,
        token_ttl_seconds=settings.reset_token_ttl_seconds,
        min_password_length=settings.min_password_length,
    )


def get_authentication_service(
    accounts: PostgresAccountRepository = Depends(get_account_repository),
    credentials: CredentialIssuer = Depends(get_credential_issuer),
) -> AuthenticationService:
    return AuthenticationService(accounts=accounts, credentials=credentials)


# Bearer security scheme for OpenAPI documentation
http_bearer = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
) -> str:
    """
    Extract the raw token from the Authorization header.

    Raises:
        InvalidCredentials: If the header is missing or not a Bearer credential
    """
    if credentials is None:
        raise InvalidCredentials("Not authenticated")
    return credentials.credentials
