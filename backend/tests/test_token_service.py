import threading
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.core.database import Base
from app.core.exceptions import InvalidRefreshTokenError
from app.core.security import get_password_hash, utc_now
from app.models.security import RefreshToken
from app.models.user import User
from app.services.token_service import TokenService, token_service


def _verified_user(db, email="a@b.edu", role="student"):
    user = User(email=email, password_hash=get_password_hash("longenough1"), role=role, is_verified=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def test_rotation_returns_new_secret_and_invalidates_old(db):
    user = _verified_user(db)
    _, secret = token_service.issue_token_pair(db, user)

    rotated = token_service.rotate_refresh_token(db, secret)

    assert rotated.user_id == user.id
    assert rotated.role == "student"
    assert rotated.refresh_token != secret
    with pytest.raises(InvalidRefreshTokenError):
        token_service.rotate_refresh_token(db, secret)


def test_expired_rows_are_ignored(db):
    user = _verified_user(db)
    _, secret = token_service.issue_token_pair(db, user)
    row = db.query(RefreshToken).one()
    row.expires_at = utc_now() - timedelta(seconds=1)
    db.commit()

    with pytest.raises(InvalidRefreshTokenError):
        token_service.rotate_refresh_token(db, secret)
    assert db.query(RefreshToken).count() == 1


def test_unencodable_secret_is_rejected_as_unknown(db):
    user = _verified_user(db)
    token_service.issue_token_pair(db, user)

    with pytest.raises(InvalidRefreshTokenError):
        token_service.rotate_refresh_token(db, "\ud800abc")


def test_corrupt_hash_row_is_skipped(db):
    user = _verified_user(db)
    db.add(RefreshToken(user_id=user.id, token_hash="corrupt", expires_at=utc_now() + timedelta(days=1)))
    db.commit()
    _, secret = token_service.issue_token_pair(db, user)

    rotated = token_service.rotate_refresh_token(db, secret)

    assert rotated.user_id == user.id


def test_stale_swap_loses(db):
    user = _verified_user(db)
    _, secret = token_service.issue_token_pair(db, user)
    stale = token_service.find_matching_token(db, secret)

    token_service.rotate_refresh_token(db, secret)

    assert token_service.swap_token_hash(
        db, stale.id, stale.token_hash, get_password_hash("x"), utc_now() + timedelta(days=7)
    ) is False


def test_lost_race_is_rejected(db, monkeypatch):
    user = _verified_user(db)
    _, secret = token_service.issue_token_pair(db, user)
    monkeypatch.setattr(TokenService, "swap_token_hash", staticmethod(lambda *args, **kwargs: False))

    with pytest.raises(InvalidRefreshTokenError):
        token_service.rotate_refresh_token(db, secret)


def test_concurrent_refresh_has_single_winner(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    setup = SessionLocal()
    user = _verified_user(setup)
    _, secret = token_service.issue_token_pair(setup, user)
    setup.close()

    barrier = threading.Barrier(2)
    outcomes = []

    def attempt():
        session = SessionLocal()
        try:
            barrier.wait()
            token_service.rotate_refresh_token(session, secret)
            outcomes.append("ok")
        except InvalidRefreshTokenError:
            outcomes.append("rejected")
        except OperationalError:
            # SQLite may report lock contention instead of a zero-row update.
            outcomes.append("rejected")
        finally:
            session.close()

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    engine.dispose()

    assert len(outcomes) == 2
    assert outcomes.count("ok") == 1


def test_purge_expired_removes_only_expired(db):
    user = _verified_user(db)
    token_service.issue_token_pair(db, user)
    db.add(RefreshToken(user_id=user.id, token_hash="old", expires_at=utc_now() - timedelta(days=1)))
    db.commit()

    assert token_service.purge_expired(db) == 1
    assert db.query(RefreshToken).count() == 1


def test_purge_endpoint_requires_admin(client):
    from app.core.security import create_access_token

    headers = {"Authorization": f"Bearer {create_access_token({'sub': '1', 'role': 'admin'})}"}
    response = client.post("/api/v1/admin/refresh-tokens/purge", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "purged": 0}
