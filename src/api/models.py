"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Responses serialize in camelCase (``emailExists``, ``remainingTime``) for the
frontend; requests accept either spelling.
"""

from typing import Annotated

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

OTP_PATTERN = r"^\d{6}$"


def check_email(value: str) -> str:
    """Validate email syntax and return the address as submitted, minus surrounding whitespace."""
    value = value.strip()
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"value is not a valid email address: {e}") from e
    return value


Email = Annotated[str, AfterValidator(check_email), Field(json_schema_extra={"format": "email"})]


class ApiModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests


class RegisterRequest(ApiModel):
    """Request model for starting (or restarting) registration."""

    name: str = Field(..., min_length=1, description="Display name")
    email: Email


class VerifyRegisterRequest(ApiModel):
    email: Email
    otp: str = Field(..., pattern=OTP_PATTERN, description="6-digit code from the email")


class SetPasswordRequest(ApiModel):
    email: Email
    password: str


class EmailRequest(ApiModel):
    email: Email


class VerifyOtpRequest(ApiModel):
    email: Email
    otp: str = Field(..., pattern=OTP_PATTERN, description="6-digit code from the email")


class ResetPasswordOtpRequest(ApiModel):
    email: Email
    otp: str = Field(..., pattern=OTP_PATTERN, description="6-digit code from the email")
    password: str


class PasswordRequest(ApiModel):
    password: str


class LoginRequest(ApiModel):
    email: Email
    password: str = Field(..., min_length=1)


# Responses


class MessageResponse(ApiModel):
    success: bool = True
    message: str


class RegisterStepResponse(MessageResponse):
    """Progress through the registration steps."""

    step: int
    email: str
    name: str | None = None


class UserOut(ApiModel):
    id: int
    name: str
    email: str


class AuthResponse(MessageResponse):
    token: str
    user: UserOut


class UserResponse(ApiModel):
    success: bool = True
    user: UserOut


class SendOtpResponse(MessageResponse):
    email_exists: bool
    email: str | None = None


class VerifyOtpResponse(MessageResponse):
    email: str
    verified: bool


class ForgotPasswordResponse(MessageResponse):
    reset_token: str | None = None
    reset_url: str | None = None


class ErrorResponse(ApiModel):
    """Standard error response model."""

    success: bool = False
    message: str
    cooldown: bool | None = None
    remaining_time: int | None = None
