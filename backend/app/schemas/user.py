"""User and authentication schemas"""

from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """User role enumeration"""
    USER = "user"
    STUDENT = "student"
    RECRUITER = "recruiter"
    ADMIN = "admin"


# Request bodies keep fields optional so presence and format checks produce
# the auth-specific 400 messages in the service layer.
class SignupRequest(BaseModel):
    """Signup request schema"""
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyOTPRequest(BaseModel):
    """OTP verification request schema"""
    email: Optional[str] = None
    otp: Optional[str] = None


class LoginRequest(BaseModel):
    """Login request schema"""
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    """Refresh request schema"""
    refresh_token: Optional[str] = None


class RoleUpdateRequest(BaseModel):
    """Admin role assignment schema"""
    role: UserRole


class SignupResponse(BaseModel):
    """Signup acknowledgement; ``otp`` only present in development mode"""
    message: str = "User created successfully"
    otp_sent: bool = True
    otp: Optional[str] = None


class VerifyOTPResponse(BaseModel):
    verified: bool = True
    message: str = "Account verified successfully"


class UserSummary(BaseModel):
    """Minimal user projection returned at login"""
    id: int
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """User response schema"""
    id: int
    email: str
    role: str
    is_verified: bool
    created_at: Optional[datetime]
    last_login: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class RefreshResponse(BaseModel):
    """Rotated token pair"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenResponse(RefreshResponse):
    """Login response"""
    user: UserSummary


class UserListResponse(BaseModel):
    users: List[UserResponse]
    count: int
