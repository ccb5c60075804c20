"""Security utilities - JWT, Argon2 hashing, one-time secrets"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from app.config import settings
import secrets

password_hasher = PasswordHasher(
    time_cost=settings.ARGON2_TIME_COST,
    memory_cost=settings.ARGON2_MEMORY_COST,
    parallelism=settings.ARGON2_PARALLELISM,
)

# Verified against when the email is unknown so login timing does not
# reveal whether an account exists.
_DUMMY_HASH = password_hasher.hash("placement-portal-timing-equalizer")


def utc_now() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are compared."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_password_hash(password: str) -> str:
    """
    Hash a password (or any secret) using Argon2id

    Args:
        password: Plain text secret

    Returns:
        str: Encoded Argon2 hash
    """
    return password_hasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a secret against its Argon2 hash

    A mismatch, a corrupt hash, an unsupported hash format or a secret that
    cannot be encoded as UTF-8 all count as "no match"; this never raises.

    Args:
        plain_password: Plain text secret
        hashed_password: Stored Argon2 hash

    Returns:
        bool: True if the secret matches
    """
    try:
        return password_hasher.verify(hashed_password, plain_password)
    except (VerificationError, InvalidHashError, UnicodeError):
        return False


def burn_password_check(plain_password: str) -> None:
    """Spend one Argon2 verification without a real account."""
    verify_password(plain_password, _DUMMY_HASH)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token

    Args:
        data: Claims to encode (``sub`` must be a string)
        expires_delta: Token expiration time

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": now,
        "typ": "access",
        "jti": secrets.token_urlsafe(16)  # Unique token ID
    })

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify JWT access token

    Args:
        token: JWT token string

    Returns:
        Optional[Dict]: Decoded claims or None if invalid, expired or not an access token
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("typ") != "access":
        return None
    return payload


def generate_refresh_secret() -> str:
    """
    Generate an opaque refresh-token secret (256 bits, hex)

    Returns:
        str: Raw secret, shown to the client once and never stored
    """
    return secrets.token_hex(32)


def generate_otp() -> str:
    """
    Generate a 6-digit verification code

    Returns:
        str: Code drawn uniformly from 100000-999999
    """
    return str(100000 + secrets.randbelow(900000))
