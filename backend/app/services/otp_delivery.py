"""Delivery of signup verification codes."""

from __future__ import annotations

import logging
from typing import Protocol

from app.config import settings

logger = logging.getLogger(__name__)


class OTPSender(Protocol):
    """Extension point for a real email/SMS channel."""

    def send(self, email: str, code: str) -> None: ...


class LogOTPSender:
    """Default sender: records that a code was issued. Sends nothing."""

    def send(self, email: str, code: str) -> None:
        if settings.ENVIRONMENT.lower() == "development":
            logger.info("OTP for %s: %s (development only, not delivered)", email, code)
        else:
            logger.info("OTP issued for %s; no delivery channel configured", email)


otp_sender: OTPSender = LogOTPSender()
