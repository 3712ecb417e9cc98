"""
Authentication routes for the medical records system.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import AppException
from .dependencies import verify_token
from .schemas import (
    AccessTokenClaims,
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RefreshResponse,
    RegisterRequest,
    TokenRequest,
)
from .service import login_user, refresh_session, register_user, revoke_session

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED, summary="Register User")
async def register_route(
    registration: RegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Register a patient, doctor, lab technician or admin.

    Doctors must send specialization and licenseNumber; patients must send
    gender and dateOfBirth.

    Returns:
        AuthResponse with the new user and a token pair
    """
    try:
        return await register_user(db, registration)
    except AppException:
        raise
    except Exception as e:
        logger.exception(
            f"Critical error during user registration for email: {registration.email or 'N/A'}. Error: {str(e)}"
        )
        raise AppException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error.")

@router.post("/login", response_model=AuthResponse, summary="User Login")
async def login_route(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    User login endpoint.

    Returns:
        AuthResponse with the user and a token pair

    Raises:
        401 with the same message for unknown email and wrong password
    """
    try:
        return await login_user(db, login_data.email, login_data.password)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Critical error during login for email: {login_data.email or 'N/A'}. Error: {str(e)}")
        raise AppException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error.")

@router.post("/refresh", response_model=RefreshResponse, summary="Refresh Token Pair")
async def refresh_route(
    body: TokenRequest,
    db: Session = Depends(get_db)
):
    """
    Exchange a refresh token (JSON body field `token`) for a new pair.

    The presented refresh token is consumed and cannot be used again.
    """
    try:
        return await refresh_session(db, body.token)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Refresh token error: {str(e)}")
        raise AppException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error.")

@router.post("/revoke", response_model=MessageResponse, summary="Revoke Refresh Token")
async def revoke_route(
    body: TokenRequest,
    claims: AccessTokenClaims = Depends(verify_token),
    db: Session = Depends(get_db)
):
    """
    Revoke one of the caller's refresh tokens.

    Requires a valid access token in the Authorization header; the refresh
    token to revoke goes in the JSON body.
    """
    try:
        return await revoke_session(db, claims, body.token)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Revoke token error for user {claims.user_id}: {str(e)}")
        raise AppException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to revoke token")
