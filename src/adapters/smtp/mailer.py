"""
SMTP notification gateway - Implements NotificationGateway protocol.

Sends the code over SMTP (implicit TLS on port 465, STARTTLS otherwise).
Every failure, including a connection timeout, is reported as ``False`` so
the issuing flow can roll back the record it just wrote.
"""

import logging
import smtplib
from email.message import EmailMessage

from src.domain.ports import OtpPurpose

logger = logging.getLogger(__name__)

APP_NAME = "Student Learning Tracker"

_SUBJECTS = {
    OtpPurpose.REGISTER: f"Email Verification OTP - {APP_NAME}",
    OtpPurpose.RESET: f"Password Reset OTP - {APP_NAME}",
}

_INTROS = {
    OtpPurpose.REGISTER: (
        "Thank you for registering! Please use the code below to verify your email address."
    ),
    OtpPurpose.RESET: (
        "We received a request to reset your password. Please use the code below to proceed."
    ),
}


def build_message(
    sender: str, email: str, code: str, purpose: OtpPurpose, ttl_minutes: int
) -> EmailMessage:
    """Compose the plain-text and HTML bodies for a code email."""
    message = EmailMessage()
    message["Subject"] = _SUBJECTS[purpose]
    message["From"] = sender
    message["To"] = email

    intro = _INTROS[purpose]
    message.set_content(
        f"{intro}\n\n"
        f"Your code is: {code}\n\n"
        f"This code expires in {ttl_minutes} minutes.\n"
        f"If you did not request this, you can ignore this email.\n"
    )
    message.add_alternative(
        f"""<html>
  <body style="font-family: Arial, sans-serif; color: #333;">
    <p>{intro}</p>
    <p style="font-size: 32px; font-weight: bold; letter-spacing: 8px; color: #667eea;">{code}</p>
    <p>This code expires in {ttl_minutes} minutes.</p>
    <p style="color: #888;">If you did not request this, you can ignore this email.</p>
  </body>
</html>""",
        subtype="html",
    )
    return message


class SmtpNotificationGateway:
    """
    Implements NotificationGateway protocol via smtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        sender: str,
        timeout: float = 10.0,
        ttl_minutes: int = 5,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._sender = sender
        self._timeout = timeout
        self._ttl_minutes = ttl_minutes

    def send_code(self, email: str, code: str, purpose: OtpPurpose) -> bool:
        message = build_message(self._sender, email, code, purpose, self._ttl_minutes)
        try:
            if self._port == 465:
                with smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout) as server:
                    self._deliver(server, message)
            else:
                with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                    server.starttls()
                    self._deliver(server, message)
        except smtplib.SMTPAuthenticationError as e:
            logger.error("SMTP authentication failed for %s: %s", self._user, e)
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send %s code to %s: %s", purpose.value, email, e)
            return False

        logger.info("Sent %s code email to %s", purpose.value, email)
        return True

    def _deliver(self, server: smtplib.SMTP, message: EmailMessage) -> None:
        if self._user:
            server.login(self._user, self._password)
        server.send_message(message)
