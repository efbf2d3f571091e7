"""
Auth routes.

Registration (three steps: email -> OTP -> password):
- POST /auth/register
- POST /auth/verify-register
- POST /auth/set-password
- POST /auth/resend-register-otp

Password reset with OTP:
- POST /auth/send-otp
- POST /auth/verify-otp
- POST /auth/resend-otp
- POST /auth/reset-password-otp

Legacy link reset:
- POST /auth/forgot-password
- POST /auth/reset-password/{token}

Session:
- POST /auth/login
- GET  /auth/me

Domain errors propagate to the handlers in ``src.api.errors``.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_authentication_service,
    get_bearer_token,
    get_link_reset_service,
    get_password_reset_service,
    get_registration_service,
)
from src.api.models import (
    AuthResponse,
    EmailRequest,
    ErrorResponse,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    PasswordRequest,
    RegisterRequest,
    RegisterStepResponse,
    ResetPasswordOtpRequest,
    SendOtpResponse,
    SetPasswordRequest,
    UserOut,
    UserResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
    VerifyRegisterRequest,
)
from src.domain.authentication import AuthenticationService
from src.domain.password_reset import LinkResetService, PasswordResetService
from src.domain.registration import AuthResult, RegistrationService

router = APIRouter(prefix="/auth", tags=["auth"])

_bad_request = {400: {"model": ErrorResponse, "description": "Invalid request or state"}}
_delivery = {500: {"model": ErrorResponse, "description": "Code could not be sent"}}


def _auth_response(message: str, result: AuthResult) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=result.token,
        user=UserOut(**result.account.public_fields()),
    )


@router.post(
    "/register",
    response_model=RegisterStepResponse,
    responses={**_bad_request, **_delivery},
    summary="Start registration",
    description="Send a 6-digit verification code to the email address.",
)
def register(
    payload: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterStepResponse:
    service.start(payload.name, payload.email)
    return RegisterStepResponse(
        message="OTP sent to your email. Please verify to continue.",
        step=1,
        email=payload.email,
    )


@router.post(
    "/verify-register",
    response_model=RegisterStepResponse,
    responses=_bad_request,
    summary="Verify registration code",
)
def verify_register(
    payload: VerifyRegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterStepResponse:
    name = service.verify(payload.email, payload.otp)
    return RegisterStepResponse(
        message="Email verified successfully. Please set your password.",
        step=2,
        email=payload.email,
        name=name,
    )


@router.post(
    "/set-password",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_bad_request,
    summary="Complete registration",
    description="Create the account for a verified email and return a bearer token.",
)
def set_password(
    payload: SetPasswordRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> AuthResponse:
    result = service.complete_with_password(payload.email, payload.password)
    return _auth_response("Registration successful", result)


@router.post(
    "/resend-register-otp",
    response_model=MessageResponse,
    responses={**_bad_request, **_delivery},
    summary="Resend registration code",
)
def resend_register_otp(
    payload: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    service.resend(payload.name, payload.email)
    return MessageResponse(message="New OTP sent successfully")


@router.post(
    "/send-otp",
    response_model=SendOtpResponse,
    responses={
        429: {"model": ErrorResponse, "description": "Code requested too recently"},
        **_delivery,
    },
    summary="Send password reset code",
    description="Always succeeds for unknown emails so account existence is not revealed.",
)
def send_otp(
    payload: EmailRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
) -> SendOtpResponse:
    if not service.send_otp(payload.email):
        return SendOtpResponse(
            message="If an account exists, an OTP will be sent",
            email_exists=False,
        )
    return SendOtpResponse(
        message="OTP sent successfully to your email",
        email_exists=True,
        email=payload.email,
    )


@router.post(
    "/verify-otp",
    response_model=VerifyOtpResponse,
    responses=_bad_request,
    summary="Check password reset code",
    description="Read-only check; the code stays valid for the reset step.",
)
def verify_otp(
    payload: VerifyOtpRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
) -> VerifyOtpResponse:
    service.verify_otp(payload.email, payload.otp)
    return VerifyOtpResponse(
        message="OTP verified successfully",
        email=payload.email,
        verified=True,
    )


@router.post(
    "/resend-otp",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}, **_delivery},
    summary="Resend password reset code",
)
def resend_otp(
    payload: EmailRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    service.resend_otp(payload.email)
    return MessageResponse(message="New OTP sent successfully")


@router.post(
    "/reset-password-otp",
    response_model=MessageResponse,
    responses={**_bad_request, 404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Reset password with code",
)
def reset_password_otp(
    payload: ResetPasswordOtpRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    service.reset_password(payload.email, payload.otp, payload.password)
    return MessageResponse(
        message="Password reset successful! You can now login with your new password."
    )


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
    summary="Generate password reset link",
)
def forgot_password(
    payload: EmailRequest,
    service: LinkResetService = Depends(get_link_reset_service),
) -> ForgotPasswordResponse:
    link = service.forgot_password(payload.email)
    if link is None:
        return ForgotPasswordResponse(
            message="If an account exists, a password reset link will be sent"
        )
    return ForgotPasswordResponse(
        message="Password reset link generated",
        reset_token=link.token,
        reset_url=link.url,
    )


@router.post(
    "/reset-password/{token}",
    response_model=MessageResponse,
    responses=_bad_request,
    summary="Reset password with link token",
)
def reset_password_link(
    token: str,
    payload: PasswordRequest,
    service: LinkResetService = Depends(get_link_reset_service),
) -> MessageResponse:
    service.reset_password(token, payload.password)
    return MessageResponse(message="Password reset successful")


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
    summary="Log in",
)
def login(
    payload: LoginRequest,
    service: AuthenticationService = Depends(get_authentication_service),
) -> AuthResponse:
    result = service.login(payload.email, payload.password)
    return _auth_response("Login successful", result)


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid token"}},
    summary="Current account",
)
def me(
    token: str = Depends(get_bearer_token),
    service: AuthenticationService = Depends(get_authentication_service),
) -> UserResponse:
    account = service.current_account(token)
    return UserResponse(user=UserOut(**account.public_fields()))
