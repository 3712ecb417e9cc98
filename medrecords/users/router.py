"""
User profile routes.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

from ..auth.dependencies import hydrate_user, verify_token
from ..auth.models import User
from ..database import get_db
from ..exceptions import AppException
from .schemas import ProfileResponse, ProfileUpdateResponse
from .service import get_profile, update_profile

# Set up logging
logger = logging.getLogger(__name__)

# Every profile route needs a verified access token before the user is hydrated
router = APIRouter(prefix="/api/v1/users", tags=["Users"], dependencies=[Depends(verify_token)])

@router.get("/profile", response_model=ProfileResponse, summary="Get Current User Profile")
async def get_profile_route(current_user: User = Depends(hydrate_user)):
    """
    Get the authenticated user's profile.
    """
    return get_profile(current_user)

@router.put("/editProfile", response_model=ProfileUpdateResponse, summary="Edit Current User Profile")
async def edit_profile_route(
    request: Request,
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    address: Optional[str] = Form(None, description="JSON-encoded list of address objects"),
    user_image: Optional[UploadFile] = File(None, alias="userImage"),
    current_user: User = Depends(hydrate_user),
    db: Session = Depends(get_db)
):
    """
    Edit the authenticated user's profile (multipart form).

    Sends back a fresh token pair when the email or name changed.
    """
    try:
        return await update_profile(
            db=db,
            user=current_user,
            current_token=getattr(request.state, "token", None),
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            address=address,
            image=user_image,
        )
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Critical error during profile edit for user {current_user.id}. Error: {str(e)}")
        raise AppException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error during profile edit.")
