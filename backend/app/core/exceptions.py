"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        code: str = "internal_error"
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.code = code
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Base authentication error"""
    def __init__(self, message: str = "Authentication failed", code: str = "authentication_failed"):
        super().__init__(message, status_code=401, code=code)


class InvalidCredentialsError(AuthenticationError):
    """Unknown email or wrong password (deliberately indistinguishable)"""
    def __init__(self):
        super().__init__("Invalid credentials", code="invalid_credentials")


class AccessTokenRequiredError(AuthenticationError):
    """No bearer token on a protected route"""
    def __init__(self):
        super().__init__("Access token required", code="token_required")


class InvalidRefreshTokenError(AuthenticationError):
    """Refresh secret matched no live row, or lost a rotation race"""
    def __init__(self):
        super().__init__("Invalid or expired refresh token", code="invalid_refresh_token")


class TokenInvalidError(BaseAPIException):
    """Bearer token failed signature/expiry/claims checks (403 by convention)"""
    def __init__(self):
        super().__init__("Invalid token", status_code=403, code="invalid_token")


class AccountNotVerifiedError(BaseAPIException):
    """Login attempted before OTP verification"""
    def __init__(self):
        super().__init__(
            "Please verify your account first",
            status_code=403,
            code="verify_account"
        )


# Authorization Errors
class AuthorizationError(BaseAPIException):
    """Insufficient permissions"""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403, code="insufficient_permissions")


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status_code=404, code="not_found")


class UserAlreadyExistsError(BaseAPIException):
    """Email already registered"""
    def __init__(self):
        super().__init__("User already exists", status_code=409, code="user_exists")


# Validation Errors
class ValidationError(BaseAPIException):
    """Validation error"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details, code="validation_error")


# OTP verification errors
class OTPNotFoundError(BaseAPIException):
    def __init__(self):
        super().__init__("OTP not found or expired", status_code=400, code="otp_not_found")


class OTPExpiredError(BaseAPIException):
    def __init__(self):
        super().__init__("OTP expired", status_code=400, code="otp_expired")


class InvalidOTPError(BaseAPIException):
    def __init__(self):
        super().__init__("Invalid OTP", status_code=400, code="invalid_otp")


# System Errors
class DatabaseError(BaseAPIException):
    """Database operation failed"""
    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, status_code=500, code="database_error")


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""
    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message, status_code=429, code="rate_limited")
