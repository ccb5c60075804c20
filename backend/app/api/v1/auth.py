"""Authentication routes"""

from fastapi import APIRouter, Depends, status, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.config import settings
from app.schemas.user import (
    SignupRequest,
    SignupResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
    LoginRequest,
    TokenResponse,
    RefreshTokenRequest,
    RefreshResponse,
    UserResponse,
    UserSummary,
)
from app.services.auth_service import auth_service
from app.services.user_service import user_service
from app.services.rate_limiter import rate_limiter
from app.api.deps import AuthenticatedUser, authenticate_token
from app.schemas.response import ErrorResponse
from app.core.exceptions import ResourceNotFoundError

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    }
)


@router.get("/")
def auth_index():
    """List the authentication endpoints"""
    return {
        "message": "Auth routes are working",
        "endpoints": [
            "POST /signup",
            "POST /verify-otp",
            "POST /login",
            "POST /refresh",
        ],
    }


@router.post(
    "/signup",
    response_model=SignupResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
def signup(
    body: SignupRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Signup endpoint - create an unverified account and issue an OTP

    Args:
        body: Email and password
        db: Database session

    Returns:
        Acknowledgement; includes the OTP only in development mode
    """
    rate_limiter.enforce(
        request, "signup", settings.OTP_RATE_LIMIT_PER_MINUTE, settings.OTP_RATE_LIMIT_PER_HOUR
    )
    otp = auth_service.signup(db, body.email, body.password)
    return SignupResponse(otp=otp)


@router.post("/verify-otp", response_model=VerifyOTPResponse)
def verify_otp(
    body: VerifyOTPRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Verify the signup OTP and unlock login
    """
    rate_limiter.enforce(
        request,
        "verification",
        settings.OTP_RATE_LIMIT_PER_MINUTE,
        settings.OTP_RATE_LIMIT_PER_HOUR,
        identity=body.email,
    )
    auth_service.verify_otp(db, body.email, body.otp)
    return VerifyOTPResponse()


@router.post("/login", response_model=TokenResponse)
def login(
    credentials: LoginRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Login endpoint - authenticate user and return an access/refresh pair

    Args:
        credentials: Email and password
        db: Database session

    Returns:
        Tokens and a minimal user projection
    """
    rate_limiter.enforce(
        request,
        "login",
        settings.LOGIN_RATE_LIMIT_PER_MINUTE,
        settings.LOGIN_RATE_LIMIT_PER_HOUR,
        identity=credentials.email,
    )
    user, access_token, refresh_token = auth_service.login(
        db, credentials.email, credentials.password
    )

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserSummary.model_validate(user)
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh_token(
    req: RefreshTokenRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Exchange a refresh token for a new pair; the presented token stops working
    """
    rate_limiter.enforce(
        request, "refresh", settings.RATE_LIMIT_PER_MINUTE, settings.RATE_LIMIT_PER_HOUR
    )
    rotated = auth_service.refresh(db, req.refresh_token)

    return RefreshResponse(
        access_token=rotated.access_token,
        refresh_token=rotated.refresh_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    current_user: AuthenticatedUser = Depends(authenticate_token),
    db: Session = Depends(get_db)
):
    """
    Get the caller's stored profile
    """
    user = user_service.get_user_by_id(db, current_user.id)
    if not user:
        raise ResourceNotFoundError("User")
    return UserResponse.model_validate(user)
