"""
FastAPI dependencies for authentication and authorization.

verify_token authenticates the bearer access token, require_roles restricts a
route to some roles, and hydrate_user loads the full user row behind a token.
"""
import logging
from typing import Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.security import get_subject_id, verify_access_token
from ..database import get_db
from .exceptions import (
    InvalidTokenException,
    NotAuthenticatedException,
    PersistenceException,
    RoleDeniedException,
    UserNotFoundException,
)
from .models import User, UserRole
from .schemas import AccessTokenClaims

# Set up logging
logger = logging.getLogger(__name__)

# Missing or non-bearer headers yield None so the gate can answer with its own message
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

def decode_access_claims(token: Optional[str]) -> AccessTokenClaims:
    """
    Verify an access token and turn its payload into request identity.

    Raises:
        NotAuthenticatedException: If no token was presented
        TokenExpiredException: If the token has expired
        InvalidTokenException: For any other verification failure
    """
    if not token:
        raise NotAuthenticatedException()
    payload = verify_access_token(token)
    try:
        return AccessTokenClaims(
            user_id=get_subject_id(payload),
            role=payload.get("role"),
            name=payload.get("name"),
            assigned_doctor=payload.get("assignedDoctor"),
        )
    except ValidationError:
        raise InvalidTokenException()

def verify_token(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> AccessTokenClaims:
    """
    Authenticate the request from its bearer access token.

    The decoded claims and the raw token are also kept on request.state.

    Args:
        request: Incoming request
        token: Bearer token from the Authorization header

    Returns:
        AccessTokenClaims: Identity of the caller
    """
    claims = decode_access_claims(token)
    request.state.auth = claims
    request.state.token = token
    return claims

def ensure_role(claims: AccessTokenClaims, allowed_roles: Iterable[UserRole]) -> AccessTokenClaims:
    """
    Check the caller's role against a set of allowed roles.

    Shared by the HTTP role dependency and the realtime channel.

    Raises:
        RoleDeniedException: If the role is not allowed
    """
    if claims.role not in allowed_roles:
        logger.warning(f"User {claims.user_id} with role {claims.role.value} denied access")
        raise RoleDeniedException()
    return claims

def require_roles(*allowed_roles: UserRole):
    """
    Dependency factory to require specific roles.

    Args:
        allowed_roles: Roles that are allowed access

    Returns:
        Function that checks the authenticated role
    """
    def role_checker(claims: AccessTokenClaims = Depends(verify_token)) -> AccessTokenClaims:
        return ensure_role(claims, allowed_roles)
    return role_checker

def hydrate_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Load the full user record for the authenticated subject.

    Reads the identity verify_token left on request.state, so the route (or
    its router) must declare verify_token as a dependency.

    Returns:
        User: Current user

    Raises:
        NotAuthenticatedException: If the request carries no identity
        UserNotFoundException: If the user was deleted after the token was issued
    """
    claims: Optional[AccessTokenClaims] = getattr(request.state, "auth", None)
    if claims is None:
        logger.warning(f"No verified identity on {request.url.path} before loading the user")
        raise NotAuthenticatedException("Not authenticated")
    try:
        user = db.query(User).filter(User.id == claims.user_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load user {claims.user_id}: {str(e)}")
        raise PersistenceException()
    if not user:
        logger.warning(f"Token subject {claims.user_id} no longer exists")
        raise UserNotFoundException()
    request.state.user = user
    return user
