"""Refresh token issue, rotation and cleanup."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import InvalidRefreshTokenError
from app.core.metrics import AUTH_EVENTS
from app.core.security import (
    create_access_token,
    generate_refresh_secret,
    get_password_hash,
    utc_now,
    verify_password,
)
from app.models.security import RefreshToken
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotatedTokens:
    user_id: int
    role: str
    access_token: str
    refresh_token: str


class TokenService:
    """Manage hashed refresh-token rows.

    Only the Argon2 hash of a refresh secret is stored, so a presented secret
    cannot be looked up directly: refresh scans every unexpired row and
    verifies against each hash. Cost grows with the number of live sessions;
    a leaked table yields no usable tokens.
    """

    @staticmethod
    def _refresh_expiry() -> datetime:
        return utc_now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    @staticmethod
    def create_access_token_for(user_id: int, role: str) -> str:
        return create_access_token({"sub": str(user_id), "role": role})

    @staticmethod
    def issue_token_pair(db: Session, user: User) -> tuple[str, str]:
        """Mint an access token and add a new refresh row (other sessions stay valid)."""
        access_token = TokenService.create_access_token_for(user.id, user.role)
        refresh_secret = generate_refresh_secret()
        record = RefreshToken(
            user_id=user.id,
            token_hash=get_password_hash(refresh_secret),
            expires_at=TokenService._refresh_expiry(),
        )
        db.add(record)
        db.commit()
        return access_token, refresh_secret

    @staticmethod
    def find_matching_token(db: Session, refresh_secret: str):
        """
        Return the (id, user_id, token_hash, role) row matching the secret, or None.

        Rows whose hash cannot be verified count as non-matching.
        """
        candidates = (
            db.query(RefreshToken.id, RefreshToken.user_id, RefreshToken.token_hash, User.role)
            .join(User, RefreshToken.user_id == User.id)
            .filter(RefreshToken.expires_at > utc_now())
            .all()
        )
        for candidate in candidates:
            if verify_password(refresh_secret, candidate.token_hash):
                return candidate
        return None

    @staticmethod
    def swap_token_hash(
        db: Session,
        token_id: int,
        expected_hash: str,
        new_hash: str,
        expires_at: datetime,
    ) -> bool:
        """
        Replace a row's hash only if it still holds ``expected_hash``.

        Returns:
            True if this call performed the rotation
        """
        result = db.execute(
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.token_hash == expected_hash)
            .values(token_hash=new_hash, expires_at=expires_at)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount == 1

    @staticmethod
    def rotate_refresh_token(db: Session, refresh_secret: str) -> RotatedTokens:
        match = TokenService.find_matching_token(db, refresh_secret)
        if match is None:
            AUTH_EVENTS.labels("refresh", "rejected").inc()
            raise InvalidRefreshTokenError()

        new_secret = generate_refresh_secret()
        rotated = TokenService.swap_token_hash(
            db,
            match.id,
            match.token_hash,
            get_password_hash(new_secret),
            TokenService._refresh_expiry(),
        )
        if not rotated:
            logger.warning(
                "Refresh token %s was rotated concurrently; rejecting replay", match.id
            )
            AUTH_EVENTS.labels("refresh", "race_lost").inc()
            raise InvalidRefreshTokenError()

        AUTH_EVENTS.labels("refresh", "success").inc()
        logger.info("Rotated refresh token %s for user %s", match.id, match.user_id)
        return RotatedTokens(
            user_id=match.user_id,
            role=match.role,
            access_token=TokenService.create_access_token_for(match.user_id, match.role),
            refresh_token=new_secret,
        )

    @staticmethod
    def purge_expired(db: Session) -> int:
        """Delete expired refresh rows. Meant for a scheduled sweep, not the request path."""
        result = db.execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= utc_now())
            .execution_options(synchronize_session=False)
        )
        db.commit()
        purged = result.rowcount or 0
        logger.info("Purged %d expired refresh tokens", purged)
        return purged


token_service = TokenService()
