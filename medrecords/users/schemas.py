"""
User profile schemas.
"""
from typing import Optional
from pydantic import BaseModel, Field

from ..auth.schemas import UserResponse

class ProfileResponse(BaseModel):
    """
    Profile Response Schema - Returned by GET /users/profile
    """
    message: str
    user: UserResponse

class ProfileUpdateResponse(BaseModel):
    """
    Profile Update Response Schema - Returned by PUT /users/editProfile

    refreshToken is only present when a new pair was issued because the
    email or name changed.
    """
    message: str
    user: UserResponse
    access_token: Optional[str] = Field(None, alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")

    class Config:
        populate_by_name = True
