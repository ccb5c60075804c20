"""Signup, OTP verification, login and refresh orchestration"""

import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import (
    AccountNotVerifiedError,
    InvalidCredentialsError,
    InvalidOTPError,
    OTPExpiredError,
    OTPNotFoundError,
    ValidationError,
)
from app.core.metrics import AUTH_EVENTS
from app.core.security import burn_password_check, generate_otp, verify_password
from app.models.user import User
from app.services.otp_delivery import OTPSender, otp_sender
from app.services.otp_store import OTPStore, otp_store
from app.services.token_service import RotatedTokens, token_service
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8


class AuthService:
    """Auth protocol: unregistered -> unverified -> verified -> session."""

    def __init__(self, otp_store: OTPStore, otp_sender: OTPSender) -> None:
        self.otp_store = otp_store
        self.otp_sender = otp_sender

    @staticmethod
    def _require(message: str, *values: Optional[str]) -> None:
        if any(not value for value in values):
            raise ValidationError(message)
        for value in values:
            try:
                value.encode("utf-8")
            except UnicodeEncodeError:
                raise ValidationError("Input must be valid UTF-8 text")

    def signup(self, db: Session, email: Optional[str], password: Optional[str]) -> Optional[str]:
        """
        Register an unverified user and issue a verification code

        Args:
            db: Database session
            email: Email address
            password: Plain text password

        Returns:
            The code when EXPOSE_OTP_IN_RESPONSE is enabled, otherwise None
        """
        self._require("Email and password are required", email, password)
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        user = user_service.create_user(db, email, password, commit=False)

        code = generate_otp()
        try:
            self.otp_store.issue(email, code, settings.OTP_EXPIRE_MINUTES * 60)
            self.otp_sender.send(email, code)
            db.commit()
        except Exception:
            # No account may outlive a failed OTP issue.
            db.rollback()
            AUTH_EVENTS.labels("signup", "delivery_failed").inc()
            logger.error("Signup for %s rolled back: OTP could not be issued", email)
            raise
        logger.info("Created user: %s (role: %s)", user.email, user.role)
        AUTH_EVENTS.labels("signup", "success").inc()

        if settings.EXPOSE_OTP_IN_RESPONSE:
            logger.warning("Returning OTP in signup response for %s (development mode)", email)
            return code
        return None

    def verify_otp(self, db: Session, email: Optional[str], code: Optional[str]) -> None:
        """
        Consume a verification code and mark the account verified

        A wrong code leaves the entry in place so the user can retry until it
        expires; an expired entry is removed when detected.
        """
        self._require("Email and OTP are required", email, code)

        entry = self.otp_store.get(email)
        if entry is None:
            AUTH_EVENTS.labels("verify_otp", "not_found").inc()
            raise OTPNotFoundError()

        if entry.is_expired(self.otp_store.now()):
            self.otp_store.delete(email)
            AUTH_EVENTS.labels("verify_otp", "expired").inc()
            raise OTPExpiredError()

        if entry.code != code:
            AUTH_EVENTS.labels("verify_otp", "invalid").inc()
            raise InvalidOTPError()

        user_service.mark_verified(db, email)
        self.otp_store.delete(email)
        AUTH_EVENTS.labels("verify_otp", "success").inc()
        logger.info("Account verified: %s", email)

    def login(
        self, db: Session, email: Optional[str], password: Optional[str]
    ) -> tuple[User, str, str]:
        """
        Check credentials and open a new session

        Returns:
            Tuple of (user, access token, raw refresh secret)
        """
        self._require("Email and password are required", email, password)

        user = user_service.get_user_by_email(db, email)
        if not user:
            burn_password_check(password)
            AUTH_EVENTS.labels("login", "invalid_credentials").inc()
            raise InvalidCredentialsError()

        if not user.is_verified:
            AUTH_EVENTS.labels("login", "unverified").inc()
            raise AccountNotVerifiedError()

        if not verify_password(password, user.password_hash):
            AUTH_EVENTS.labels("login", "invalid_credentials").inc()
            logger.info("Failed login for %s", email)
            raise InvalidCredentialsError()

        access_token, refresh_secret = token_service.issue_token_pair(db, user)
        user_service.record_login(db, user)
        AUTH_EVENTS.labels("login", "success").inc()
        logger.info("User authenticated: %s", email)
        return user, access_token, refresh_secret

    def refresh(self, db: Session, refresh_secret: Optional[str]) -> RotatedTokens:
        self._require("Refresh token is required", refresh_secret)
        return token_service.rotate_refresh_token(db, refresh_secret)


auth_service = AuthService(otp_store=otp_store, otp_sender=otp_sender)
