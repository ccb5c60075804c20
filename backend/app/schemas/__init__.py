"""Pydantic schemas for API validation"""

from app.schemas.user import (
    UserRole,
    SignupRequest,
    SignupResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
    LoginRequest,
    RefreshTokenRequest,
    RefreshResponse,
    RoleUpdateRequest,
    TokenResponse,
    UserListResponse,
    UserResponse,
    UserSummary,
)
from app.schemas.response import ErrorResponse
from app.schemas.audit import AuditEventResponse

__all__ = [
    "UserRole", "SignupRequest", "SignupResponse", "VerifyOTPRequest", "VerifyOTPResponse",
    "LoginRequest", "RefreshTokenRequest", "RefreshResponse", "RoleUpdateRequest",
    "TokenResponse", "UserListResponse", "UserResponse", "UserSummary",
    "AuditEventResponse",
    "ErrorResponse"
]
