"""
User profile service: reading and editing the authenticated user's profile.
"""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth.exceptions import EmailAlreadyExistsException, PersistenceException, ValidationException
from ..auth.models import User
from ..auth.schemas import Address, UserResponse
from ..auth.service import get_user_by_email, issue_tokens, normalize_email
from ..config import settings
from ..core.cloudinary import delete_profile_image, upload_profile_image

# Set up logging
logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)
_address_adapter = TypeAdapter(List[Address])

def get_profile(user: User) -> Dict[str, Any]:
    logger.info(f"Fetched profile for user {user.id}")
    return {"message": "Profile fetched successfully.", "user": UserResponse.model_validate(user)}

def parse_address(raw: Optional[str]) -> Optional[List[Dict[str, Any]]]:
    """
    Decode the JSON-encoded address list sent in the multipart form.

    Returns None when no address was sent, leaving the stored one untouched.
    """
    if raw is None or raw == "":
        return None
    try:
        addresses = _address_adapter.validate_python(json.loads(raw))
    except (ValueError, ValidationError):
        raise ValidationException("Address must be a list of address objects.")
    return [addr.model_dump() for addr in addresses]

async def read_image(image: Optional[UploadFile]) -> Optional[bytes]:
    """
    Validate and read an uploaded profile image.

    Returns None when no file (or an empty one) was sent.
    """
    if image is None or not image.filename:
        return None
    if not (image.content_type or "").startswith("image/"):
        raise ValidationException("Only image files are allowed.")

    data = await image.read()
    if len(data) > settings.max_upload_size_mb * 1024 * 1024:
        raise ValidationException(f"Image must be smaller than {settings.max_upload_size_mb}MB.")
    return data or None

async def _store_image(user: User, data: bytes) -> None:
    uploaded = await asyncio.to_thread(upload_profile_image, data)
    previous_public_id = user.profile_image_public_id
    user.profile_image_url = uploaded["url"]
    user.profile_image_public_id = uploaded["public_id"]
    if previous_public_id:
        await asyncio.to_thread(delete_profile_image, previous_public_id)

async def update_profile(
    db: Session,
    user: User,
    current_token: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    address: Optional[str] = None,
    image: Optional[UploadFile] = None
) -> Dict[str, Any]:
    """
    Update the authenticated user's profile.

    A new token pair is issued when the email or name changes, since those
    values are embedded in the access token. Otherwise the presented access
    token is returned unchanged and no refresh token is sent.

    Args:
        db: Database session
        user: Hydrated current user
        current_token: Access token the request was authenticated with
        first_name / last_name / email / phone: Required profile fields
        address: JSON-encoded list of address objects (optional)
        image: Uploaded profile image (optional)

    Returns:
        Dict with message, user and tokens

    Raises:
        ValidationException: If required fields are missing or malformed
        EmailAlreadyExistsException: If the new email belongs to another user
    """
    logger.info(f"Profile edit attempt for user {user.id}")
    if not all([first_name, last_name, email, phone]):
        logger.warning(f"Profile edit failed for user {user.id}: Missing required fields.")
        raise ValidationException("First name, last name, email, and phone are required.")

    try:
        _email_adapter.validate_python(email)
    except ValidationError:
        logger.warning(f"Profile edit failed for user {user.id}: Invalid email format.")
        raise ValidationException("Invalid email format.")
    new_email = normalize_email(email)

    if new_email != user.email:
        existing = get_user_by_email(db, new_email)
        if existing and existing.id != user.id:
            logger.warning(f"Profile edit failed for user {user.id}: Email {new_email} already in use.")
            raise EmailAlreadyExistsException()

    addresses = parse_address(address)
    image_data = await read_image(image)
    identity_changed = (
        new_email != user.email
        or first_name.strip() != user.first_name
        or last_name.strip() != user.last_name
    )

    user.first_name = first_name.strip()
    user.last_name = last_name.strip()
    user.email = new_email
    user.phone = phone.strip()
    if addresses is not None:
        user.address = addresses

    try:
        if image_data:
            await _store_image(user, image_data)
    except Exception:
        db.rollback()
        raise

    try:
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        logger.warning(f"Profile edit failed for user {user.id}: Email {new_email} already in use.")
        raise EmailAlreadyExistsException()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Profile edit failed to persist user {user.id}: {str(e)}")
        raise PersistenceException()

    if identity_changed:
        tokens = await issue_tokens(db, user)
    else:
        tokens = {"accessToken": current_token, "refreshToken": None}

    logger.info(f"Successfully updated profile for user {user.id}")
    return {
        "message": "Profile updated successfully.",
        "user": UserResponse.model_validate(user),
        **tokens,
    }
