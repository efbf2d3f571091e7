"""
Console notification gateway - Implements NotificationGateway protocol.

This module provides a console-based implementation of the domain's
notification port, printing codes to the process log for local development.
It is the delivery channel itself; nothing else in the service logs codes.
"""

import logging

from src.domain.ports import OtpPurpose

logger = logging.getLogger(__name__)


class ConsoleNotificationGateway:
    """
    Implements NotificationGateway protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes only; select the SMTP gateway in production.
    """

    def send_code(self, email: str, code: str, purpose: OtpPurpose) -> bool:
        """
        Log the code to the console (simulates email delivery).

        Args:
            email: Recipient email address
            code: 6-digit one-time code
            purpose: Which flow the code belongs to

        Returns:
            Always True
        """
        logger.info("[OTP] Email: %s Purpose: %s Code: %s", email, purpose.value, code)
        return True
