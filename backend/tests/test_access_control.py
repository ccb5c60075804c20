from datetime import timedelta

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from app.api.deps import AuthenticatedUser, authenticate_token, require_role
from app.core.exceptions import BaseAPIException
from app.core.security import create_access_token
from app.main import api_exception_handler
from app.models.audit import AuditEvent
from app.models.user import User

from conftest import login, signup_and_verify

ADMIN_USERS = "/api/v1/admin/users"


def _bearer(user_id, role, **kwargs):
    token = create_access_token({"sub": str(user_id), "role": role}, **kwargs)
    return {"Authorization": f"Bearer {token}"}


def _recruiter_app():
    """Stand-in for a business router consuming the two gates."""
    downstream = FastAPI()
    downstream.add_exception_handler(BaseAPIException, api_exception_handler)

    @downstream.post("/jobs")
    def create_job(request: Request, user: AuthenticatedUser = Depends(require_role(["recruiter", "admin"]))):
        return {"id": user.id, "role": user.role, "state_id": request.state.user.id}

    @downstream.get("/profile")
    def profile(user: AuthenticatedUser = Depends(authenticate_token)):
        return {"id": user.id}

    return TestClient(downstream)


def test_missing_token_is_401(client):
    response = client.get(ADMIN_USERS)
    assert response.status_code == 401
    assert response.json()["error"] == "Access token required"
    assert response.json()["code"] == "token_required"


def test_non_bearer_scheme_counts_as_missing(client):
    response = client.get(ADMIN_USERS, headers={"Authorization": "Basic dXNlcjpwYXNz"})
    assert response.status_code == 401


def test_garbage_token_is_403(client):
    response = client.get(ADMIN_USERS, headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 403
    assert response.json()["error"] == "Invalid token"
    assert response.json()["code"] == "invalid_token"


def test_expired_token_is_403(client):
    response = client.get(ADMIN_USERS, headers=_bearer(1, "admin", expires_delta=timedelta(seconds=-5)))
    assert response.status_code == 403
    assert response.json()["error"] == "Invalid token"


def test_token_without_numeric_subject_is_403(client):
    response = client.get(ADMIN_USERS, headers=_bearer("abc", "admin"))
    assert response.status_code == 403


def test_wrong_role_is_403(client):
    response = client.get(ADMIN_USERS, headers=_bearer(5, "student"))
    assert response.status_code == 403
    assert response.json()["error"] == "Insufficient permissions"
    assert response.json()["code"] == "insufficient_permissions"


def test_admin_can_list_users(client):
    signup_and_verify(client, "s@campus.edu")
    response = client.get(ADMIN_USERS, headers=_bearer(1, "admin"))
    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert response.json()["users"][0]["email"] == "s@campus.edu"


def test_downstream_router_sees_identity():
    downstream = _recruiter_app()

    ok = downstream.post("/jobs", headers=_bearer(12, "recruiter"))
    assert ok.status_code == 200
    assert ok.json() == {"id": 12, "role": "recruiter", "state_id": 12}

    assert downstream.post("/jobs", headers=_bearer(3, "student")).status_code == 403
    assert downstream.post("/jobs").status_code == 401
    assert downstream.get("/profile", headers=_bearer(3, "user")).json() == {"id": 3}


def test_me_returns_profile(client):
    signup_and_verify(client)
    tokens = login(client)

    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})

    assert response.status_code == 200
    assert response.json()["email"] == "a@b.edu"
    assert response.json()["is_verified"] is True
    assert response.json()["last_login"] is not None


def test_me_for_unknown_user_is_404(client):
    response = client.get("/api/v1/auth/me", headers=_bearer(999, "student"))
    assert response.status_code == 404


def test_admin_assigns_role_and_audits(client, db):
    signup_and_verify(client)
    user_id = db.query(User.id).filter(User.email == "a@b.edu").scalar()

    response = client.patch(
        f"{ADMIN_USERS}/{user_id}/role",
        json={"role": "student"},
        headers=_bearer(user_id, "admin"),
    )

    assert response.status_code == 200
    assert response.json()["role"] == "student"
    event = db.query(AuditEvent).filter(AuditEvent.action == "update_user_role").one()
    assert event.target_id == str(user_id)

    tokens = login(client)
    assert tokens["user"]["role"] == "student"

    audit = client.get("/api/v1/admin/audit-events", headers=_bearer(user_id, "admin"))
    assert audit.status_code == 200
    assert audit.json()[0]["metadata"] == {"role": "student"}
    assert audit.json()[0]["actor_email"] == "a@b.edu"


def test_role_assignment_rejects_unknown_role(client):
    response = client.patch(f"{ADMIN_USERS}/1/role", json={"role": "superuser"}, headers=_bearer(1, "admin"))
    assert response.status_code == 400


def test_role_assignment_for_missing_user(client):
    response = client.patch(f"{ADMIN_USERS}/42/role", json={"role": "student"}, headers=_bearer(1, "admin"))
    assert response.status_code == 404


def test_recruiter_cannot_assign_roles(client):
    response = client.patch(f"{ADMIN_USERS}/1/role", json={"role": "admin"}, headers=_bearer(1, "recruiter"))
    assert response.status_code == 403
