"""
Authentication service layer: registration, login, and the refresh token lifecycle.

A refresh token moves through ISSUED -> ROTATED | REVOKED | EXPIRED. Each user
holds at most one ledger row at a time; issuing a new pair clears the old one.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..core.security import (
    DUMMY_PASSWORD_HASH,
    as_utc,
    get_subject_id,
    hash_password,
    sign_access_token,
    sign_refresh_token,
    utcnow,
    verify_password,
    verify_refresh_token,
    verify_token_hash,
)
from .exceptions import (
    AuthException,
    EmailAlreadyExistsException,
    InvalidCredentialsException,
    InvalidTokenException,
    PersistenceException,
    RefreshTokenException,
    TokenExpiredException,
    UserNotFoundException,
    ValidationException,
)
from .ledger import RefreshTokenLedger
from .models import User
from .schemas import AccessTokenClaims, RegisterRequest, UserResponse, parse_role, parse_role_profile

# Set up logging
logger = logging.getLogger(__name__)

def normalize_email(email: Optional[str]) -> str:
    """Emails are compared and stored lower-cased."""
    return (email or "").strip().lower()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()

async def issue_tokens(db: Session, user: User) -> Dict[str, str]:
    """
    Issue a fresh access/refresh pair and record the refresh token hash.

    Any earlier ledger rows for the user are cleared first, so only the
    newest refresh token can be exchanged.

    Args:
        db: Database session
        user: User the pair is issued for

    Returns:
        Dict with accessToken and refreshToken
    """
    ledger = RefreshTokenLedger(db)
    raw_token, hashed_token = await asyncio.to_thread(sign_refresh_token, user)
    expires_at = utcnow() + timedelta(days=settings.refresh_token_expire_days)

    ledger.delete_for_user(user.id)
    ledger.store(user.id, hashed_token, expires_at)
    access_token = sign_access_token(user)

    logger.info(f"Issued token pair for user {user.id}")
    return {"accessToken": access_token, "refreshToken": raw_token}

async def register_user(db: Session, data: RegisterRequest) -> Dict[str, Any]:
    """
    Register a new user and issue their first token pair.

    All validation runs before anything is written.

    Args:
        db: Database session
        data: Registration payload

    Returns:
        Dict with message, user and both tokens

    Raises:
        ValidationException: If required or role-specific fields are missing
        EmailAlreadyExistsException: If email already exists
    """
    email = normalize_email(data.email)
    logger.info(f"Registration attempt for email: {email or 'N/A'}")

    if not all([data.first_name, data.last_name, email, data.password, data.c_password]):
        logger.warning(f"Registration failed: Missing required base fields for email: {email or 'N/A'}")
        raise ValidationException(
            "First name, last name, email, password, and confirm password are required."
        )

    if data.password != data.c_password:
        logger.warning(f"Registration failed: Passwords do not match for email: {email}")
        raise ValidationException("Password and Confirm Password must match.")

    role = parse_role(data.role)
    try:
        profile = parse_role_profile(role, data)
    except ValidationException:
        logger.warning(f"Registration failed: Missing {role.value} fields for email: {email}")
        raise

    if get_user_by_email(db, email):
        logger.warning(f"Registration failed: Email already in use: {email}")
        raise EmailAlreadyExistsException()

    password_hash = await asyncio.to_thread(hash_password, data.password)
    user_obj = User(
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        email=email,
        password_hash=password_hash,
        phone=data.phone,
        address=[addr.model_dump() for addr in data.address or []],
        **profile.model_dump(),
    )

    try:
        db.add(user_obj)
        db.commit()
        db.refresh(user_obj)
    except IntegrityError:
        # Lost a race against a concurrent registration for the same email
        db.rollback()
        logger.warning(f"Registration failed: Email already in use: {email}")
        raise EmailAlreadyExistsException()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Registration failed to persist user {email}: {str(e)}")
        raise PersistenceException()

    logger.info(f"Registered new user {user_obj.id} ({user_obj.email}, {user_obj.role.value})")
    tokens = await issue_tokens(db, user_obj)

    return {
        "message": "User registered successfully.",
        "user": UserResponse.model_validate(user_obj),
        **tokens,
    }

async def login_user(db: Session, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    """
    Authenticate a user and issue a token pair.

    Unknown emails and wrong passwords produce the same error.

    Args:
        db: Database session
        email: User's email address
        password: User's password

    Returns:
        Dict with message, user and both tokens

    Raises:
        ValidationException: If email or password is missing
        InvalidCredentialsException: If credentials are invalid
    """
    email = normalize_email(email)
    logger.info(f"Login attempt for email: {email or 'N/A'}")
    if not email or not password:
        logger.warning("Login failed: Missing email or password.")
        raise ValidationException("Please provide email and password.")

    user = get_user_by_email(db, email)
    stored_hash = user.password_hash if user else DUMMY_PASSWORD_HASH
    password_ok = await asyncio.to_thread(verify_password, password, stored_hash)
    if user is None or not password_ok:
        logger.warning(f"Login failed: Invalid credentials for email: {email}")
        raise InvalidCredentialsException()

    user.last_login = utcnow()
    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Login failed to record last login for user {user.id}: {str(e)}")
        raise PersistenceException()

    tokens = await issue_tokens(db, user)
    logger.info(f"Login successful: User {user.id} ({user.email}, {user.role.value})")

    return {
        "message": "Login successful.",
        "user": UserResponse.model_validate(user),
        **tokens,
    }

async def refresh_session(db: Session, token: Optional[str]) -> Dict[str, Any]:
    """
    Exchange a refresh token for a new pair, consuming the old one.

    Args:
        db: Database session
        token: Raw refresh token from the request body

    Returns:
        Dict with both new tokens and the user

    Raises:
        ValidationException: If no token was sent
        RefreshTokenException: If the token is expired, invalid, revoked or reused
        UserNotFoundException: If the token's user no longer exists
    """
    if not token:
        raise ValidationException("Refresh token is required")

    try:
        payload = verify_refresh_token(token)
        user_id = get_subject_id(payload)
    except TokenExpiredException:
        logger.warning("Refresh rejected: token expired")
        raise RefreshTokenException("Refresh token has expired")
    except InvalidTokenException:
        logger.warning("Refresh rejected: bad signature or format")
        raise RefreshTokenException("Invalid refresh token signature or format")

    ledger = RefreshTokenLedger(db)
    stored = ledger.find_by_user(user_id)
    if not stored:
        logger.warning(f"Refresh rejected for user {user_id}: no outstanding token")
        raise RefreshTokenException("Invalid or revoked refresh token")

    if not await asyncio.to_thread(verify_token_hash, token, stored.token_hash):
        # Not the outstanding token: possible reuse, rotate the stored one out
        ledger.delete_one(stored)
        logger.warning(f"Refresh rejected for user {user_id}: token does not match ledger")
        raise RefreshTokenException("Invalid refresh token")

    if as_utc(stored.expires_at) < utcnow():
        ledger.delete_one(stored)
        logger.warning(f"Refresh rejected for user {user_id}: ledger row expired")
        raise RefreshTokenException("Refresh token has expired")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        ledger.delete_one(stored)
        logger.warning(f"Refresh rejected: user {user_id} not found")
        raise UserNotFoundException()

    ledger.delete_one(stored)
    tokens = await issue_tokens(db, user)
    ledger.delete_expired()

    logger.info(f"Refresh token rotated for user {user.id}")
    return {**tokens, "user": UserResponse.model_validate(user)}

async def revoke_session(db: Session, claims: AccessTokenClaims, token: Optional[str]) -> Dict[str, str]:
    """
    Revoke the refresh token presented by an authenticated user.

    Only the signature is checked so expired tokens can still be revoked.
    Revoking a token that is no longer in the ledger succeeds.

    Args:
        db: Database session
        claims: Identity from the verified access token
        token: Raw refresh token to revoke

    Returns:
        Dict with confirmation message

    Raises:
        ValidationException: If no token was sent
        RefreshTokenException: If the token is invalid or belongs to someone else
        PersistenceException: If the ledger could not be updated
    """
    if not token:
        raise ValidationException("Refresh token is required")

    try:
        user_id = get_subject_id(verify_refresh_token(token, verify_exp=False))
    except AuthException:
        logger.warning(f"Revoke rejected for user {claims.user_id}: bad refresh token")
        raise RefreshTokenException("Invalid refresh token signature or format")

    if user_id != claims.user_id:
        logger.warning(f"Revoke rejected: user {claims.user_id} presented a token for user {user_id}")
        raise RefreshTokenException("Token does not belong to the authenticated user")

    ledger = RefreshTokenLedger(db)
    try:
        for record in ledger.find_all_by_user(user_id):
            if await asyncio.to_thread(verify_token_hash, token, record.token_hash):
                ledger.delete_one(record)
                logger.info(f"Refresh token revoked for user {user_id}")
                break
        else:
            logger.info(f"Revoke for user {user_id}: token already absent from ledger")
    except PersistenceException:
        raise PersistenceException("Failed to revoke token")

    return {"message": "Token revoked successfully"}
