"""Admin routes - user role assignment and session housekeeping"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.database import get_db
from app.schemas.user import RoleUpdateRequest, UserListResponse, UserResponse
from app.schemas.audit import AuditEventResponse
from app.schemas.response import ErrorResponse
from app.services.user_service import user_service
from app.services.token_service import token_service
from app.services.audit_service import audit_service
from app.models.audit import ACTION_PURGE_REFRESH_TOKENS, ACTION_UPDATE_USER_ROLE
from app.api.deps import AuthenticatedUser, require_role

router = APIRouter(
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
)

require_admin = require_role(["admin"])


@router.get("/users", response_model=UserListResponse)
def list_users(
    role: Optional[str] = None,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Get all users (admin only)

    Args:
        role: Optional role filter
        current_user: Current admin user
        db: Database session

    Returns:
        Users and count
    """
    users = user_service.get_all_users(db, role)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        count=len(users)
    )


@router.patch("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    body: RoleUpdateRequest,
    request: Request,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Assign a role to a user (admin only)

    Tokens already issued keep the old role until they expire; refreshed
    tokens pick up the new one.
    """
    user = user_service.update_role(db, user_id, body.role)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action=ACTION_UPDATE_USER_ROLE,
        target_type="user",
        target_id=str(user.id),
        ip_address=request.client.host if request.client else None,
        metadata={"role": user.role},
    )
    return UserResponse.model_validate(user)


@router.post("/refresh-tokens/purge")
def purge_refresh_tokens(
    request: Request,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete expired refresh-token rows (admin only)
    """
    purged = token_service.purge_expired(db)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action=ACTION_PURGE_REFRESH_TOKENS,
        target_type="refresh_token",
        ip_address=request.client.host if request.client else None,
        metadata={"purged": purged},
    )
    return {"success": True, "purged": purged}


@router.get("/audit-events", response_model=List[AuditEventResponse])
def list_audit_events(
    action: Optional[str] = None,
    limit: int = 100,
    current_user: AuthenticatedUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Recent audit trail entries (admin only)
    """
    limit = max(1, min(limit, 500))
    events = audit_service.list_events(db, action=action, limit=limit)
    return [audit_service.to_response(event) for event in events]
