import os
import tempfile

# Settings are read once at import time; configure before importing app.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_INIT_MODE", "create_all")
os.environ.setdefault("EXPOSE_OTP_IN_RESPONSE", "true")
os.environ.setdefault("OTP_STORE_BACKEND", "memory")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "placement-auth-tests.log"))
# Cheap Argon2 parameters keep the suite fast; production uses the defaults.
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")
for _limit in (
    "OTP_RATE_LIMIT_PER_MINUTE",
    "OTP_RATE_LIMIT_PER_HOUR",
    "LOGIN_RATE_LIMIT_PER_MINUTE",
    "LOGIN_RATE_LIMIT_PER_HOUR",
):
    os.environ.setdefault(_limit, "1000")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app
from app.services.auth_service import auth_service
from app.services.otp_store import InMemoryOTPStore
from app.services.rate_limiter import rate_limiter


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSender:
    def __init__(self):
        self.sent = []

    def send(self, email: str, code: str) -> None:
        self.sent.append((email, code))


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def otp_clock():
    return FakeClock()


@pytest.fixture
def otp_sender():
    return RecordingSender()


@pytest.fixture(autouse=True)
def isolated_auth_state(monkeypatch, otp_clock, otp_sender):
    monkeypatch.setattr(auth_service, "otp_store", InMemoryOTPStore(clock=otp_clock))
    monkeypatch.setattr(auth_service, "otp_sender", otp_sender)
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def client(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


def signup_and_verify(client, email="a@b.edu", password="longenough1"):
    signup = client.post("/api/v1/auth/signup", json={"email": email, "password": password})
    assert signup.status_code == 200, signup.text
    verify = client.post("/api/v1/auth/verify-otp", json={"email": email, "otp": signup.json()["otp"]})
    assert verify.status_code == 200, verify.text


def login(client, email="a@b.edu", password="longenough1"):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()
