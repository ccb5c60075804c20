from datetime import timedelta

from jose import jwt

from app.config import settings
from app.core.security import (
    create_access_token,
    decode_access_token,
    generate_otp,
    generate_refresh_secret,
    get_password_hash,
    verify_password,
)


def test_access_token_round_trip():
    token = create_access_token({"sub": "7", "role": "student"})
    payload = decode_access_token(token)
    assert payload is not None
    assert payload["sub"] == "7"
    assert payload["role"] == "student"
    assert payload["typ"] == "access"
    assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_expired_access_token_is_rejected():
    token = create_access_token({"sub": "7", "role": "student"}, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None


def test_token_signed_with_other_key_is_rejected():
    forged = jwt.encode({"sub": "1", "role": "admin", "typ": "access"}, "not-the-key", algorithm="HS256")
    assert decode_access_token(forged) is None


def test_non_access_token_is_rejected():
    other = jwt.encode({"sub": "1", "role": "admin", "typ": "refresh"}, settings.SECRET_KEY, algorithm="HS256")
    assert decode_access_token(other) is None
    assert decode_access_token("garbage") is None


def test_password_hash_is_argon2_and_verifies():
    hashed = get_password_hash("longenough1")
    assert hashed.startswith("$argon2")
    assert "longenough1" not in hashed
    assert verify_password("longenough1", hashed)
    assert not verify_password("longenough2", hashed)


def test_corrupt_hash_counts_as_mismatch():
    assert verify_password("anything", "not-a-hash") is False
    assert verify_password("anything", "") is False


def test_unencodable_secret_counts_as_mismatch():
    hashed = get_password_hash("longenough1")
    assert verify_password("longenough1\ud800", hashed) is False


def test_otp_is_six_digits():
    for _ in range(200):
        code = generate_otp()
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


def test_refresh_secrets_are_unique_hex():
    secrets_seen = {generate_refresh_secret() for _ in range(50)}
    assert len(secrets_seen) == 50
    assert all(len(s) == 64 and int(s, 16) >= 0 for s in secrets_seen)
