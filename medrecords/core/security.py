"""
Core security utilities: password hashing and the access/refresh token codec.

Access and refresh tokens are signed with two independent secrets and
lifetimes. Nothing in this module performs I/O.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
import logging
import uuid

from ..config import settings
from ..auth.exceptions import ConfigurationException, InvalidTokenException, TokenExpiredException

# Set up logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)

# Checked against when the login email is unknown, so both failures cost one bcrypt verify
DUMMY_PASSWORD_HASH = pwd_context.hash(uuid.uuid4().hex)

# Refresh token hashing context. bcrypt alone only binds the first 72 bytes,
# which for a JWT is mostly the shared header, so the token is pre-hashed.
token_context = CryptContext(
    schemes=["bcrypt_sha256"], deprecated="auto", bcrypt_sha256__rounds=settings.bcrypt_rounds
)

def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    """
    Normalize a stored timestamp to aware UTC.

    SQLite hands back naive datetimes even for timezone-aware columns.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash
    """
    if not plain_password or not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)

def hash_token(token: str) -> str:
    """
    Hash a refresh token for storage. The result is salted and not invertible.

    Args:
        token: Raw token

    Returns:
        str: Hashed token
    """
    return token_context.hash(token)

def verify_token_hash(token: str, hashed_token: str) -> bool:
    """
    Verify a raw token against a stored hash in constant time.

    Args:
        token: Raw token as presented by the client
        hashed_token: Hash from the refresh token ledger

    Returns:
        bool: True if token matches hash
    """
    try:
        return token_context.verify(token, hashed_token)
    except ValueError:
        logger.warning("Stored refresh token hash is not in a recognised format")
        return False

def _require_secret(secret: Optional[str], name: str) -> str:
    if not secret:
        logger.error(f"Cannot sign token: {name} is not configured")
        raise ConfigurationException(f"{name} is not configured")
    return secret

def build_access_claims(user) -> Dict[str, Any]:
    """
    Claims embedded in an access token for the given user.

    Optional claims are left out rather than sent as nulls.
    """
    claims = {"sub": str(user.id), "role": _role_value(user.role)}
    name = user.full_name
    if name:
        claims["name"] = name
    if getattr(user, "assigned_doctor_id", None):
        claims["assignedDoctor"] = str(user.assigned_doctor_id)
    return claims

def _role_value(role) -> str:
    return role.value if hasattr(role, "value") else str(role)

def sign_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a short-lived access token.

    Args:
        user: User the token is issued for
        expires_delta: Token lifetime (default: settings.access_token_expire_minutes)

    Returns:
        str: Encoded JWT token

    Raises:
        ConfigurationException: If the access token secret is unset
    """
    secret = _require_secret(settings.jwt_secret, "JWT_SECRET")
    to_encode = build_access_claims(user)
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "iat": utcnow(), "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, secret, algorithm=settings.algorithm)

def sign_refresh_token(user, expires_delta: Optional[timedelta] = None) -> Tuple[str, str]:
    """
    Create a refresh token and the hash that gets stored for it.

    Args:
        user: User the token is issued for
        expires_delta: Token lifetime (default: settings.refresh_token_expire_days)

    Returns:
        Tuple of (raw token, hashed token)

    Raises:
        ConfigurationException: If the refresh token secret is unset
    """
    secret = _require_secret(settings.refresh_token_secret, "REFRESH_TOKEN_SECRET")
    expire = utcnow() + (expires_delta or timedelta(days=settings.refresh_token_expire_days))
    # jti keeps two tokens signed within the same second distinct
    to_encode = {
        "sub": str(user.id),
        "role": _role_value(user.role),
        "exp": expire,
        "iat": utcnow(),
        "jti": uuid.uuid4().hex,
    }
    token = jwt.encode(to_encode, secret, algorithm=settings.algorithm)
    return token, hash_token(token)

def _decode(token: str, secret: str, verify_exp: bool = True) -> Dict[str, Any]:
    if not token:
        raise InvalidTokenException()
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.algorithm],
            options={"verify_exp": verify_exp},
        )
    except ExpiredSignatureError:
        raise TokenExpiredException()
    except JWTError:
        raise InvalidTokenException()

    if not payload.get("sub"):
        raise InvalidTokenException()
    return payload

def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        TokenExpiredException: If the token is past its expiry
        InvalidTokenException: If the token is malformed, tampered or signed with another secret
    """
    secret = _require_secret(settings.jwt_secret, "JWT_SECRET")
    return _decode(token, secret)

def verify_refresh_token(token: str, verify_exp: bool = True) -> Dict[str, Any]:
    """
    Verify and decode a refresh token.

    Args:
        token: Raw refresh token
        verify_exp: Whether an expired token should be rejected. Revocation
            only needs the signature to recover the subject.

    Raises:
        TokenExpiredException: If the token is past its expiry
        InvalidTokenException: If the token is malformed, tampered or signed with another secret
    """
    secret = _require_secret(settings.refresh_token_secret, "REFRESH_TOKEN_SECRET")
    return _decode(token, secret, verify_exp=verify_exp)

def get_subject_id(payload: Dict[str, Any]) -> int:
    """
    User id carried in a verified token's subject.

    Raises:
        InvalidTokenException: If the subject is not a user id
    """
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenException()
