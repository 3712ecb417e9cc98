"""
Auth Schemas - Pydantic models for request validation and response serialization.

Wire format is camelCase; attribute names follow the ORM models so responses
can be built straight from User rows.
"""
from datetime import date, datetime
from typing import Dict, List, Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, EmailStr, Field

from .exceptions import ValidationException
from .models import Gender, UserRole

class Address(BaseModel):
    """
    Address Schema - One entry of a user's address list
    """
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None

class RegisterRequest(BaseModel):
    """
    Registration Schema - Used when registering a new user

    Required fields are checked by the session manager so that each missing
    field produces the documented message instead of a generic schema error.
    Role-conditional fields are validated through the role profiles below.
    """
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    c_password: Optional[str] = Field(None, alias="cPassword")
    phone: Optional[str] = None
    address: Optional[List[Address]] = None
    role: Optional[str] = None

    # Doctor fields
    specialization: Optional[str] = None
    license_number: Optional[str] = Field(None, alias="licenseNumber")
    hospital_affiliation: Optional[str] = Field(None, alias="hospitalAffiliation")

    # Patient fields
    date_of_birth: Optional[date] = Field(None, alias="dateOfBirth")
    gender: Optional[Gender] = None

    class Config:
        """Configuration for Pydantic model"""
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "firstName": "Amina",
                "lastName": "Haddad",
                "email": "amina@example.com",
                "password": "s3cret-pass",
                "cPassword": "s3cret-pass",
                "role": "patient",
                "gender": "female",
                "dateOfBirth": "1990-04-12"
            }
        }

class LoginRequest(BaseModel):
    """
    User Login Schema - Used for authentication
    """
    email: Optional[str] = None
    password: Optional[str] = None

class TokenRequest(BaseModel):
    """
    Refresh token carrier used by /auth/refresh and /auth/revoke.
    """
    token: Optional[str] = None

# ============================================================================
# ROLE PROFILES
# ============================================================================

class PatientProfile(BaseModel):
    role: Literal[UserRole.PATIENT] = UserRole.PATIENT
    gender: Gender
    date_of_birth: date

class DoctorProfile(BaseModel):
    role: Literal[UserRole.DOCTOR] = UserRole.DOCTOR
    specialization: str
    license_number: str
    hospital_affiliation: Optional[str] = None

class LabTechnicianProfile(BaseModel):
    role: Literal[UserRole.LAB_TECHNICIAN] = UserRole.LAB_TECHNICIAN

class AdminProfile(BaseModel):
    role: Literal[UserRole.ADMIN] = UserRole.ADMIN

RoleProfile = Union[PatientProfile, DoctorProfile, LabTechnicianProfile, AdminProfile]

# Every role maps to its profile and the message used when required fields are absent
ROLE_PROFILES: Dict[UserRole, Tuple[Type[BaseModel], str]] = {
    UserRole.PATIENT: (PatientProfile, "Patients must provide gender and date of birth."),
    UserRole.DOCTOR: (DoctorProfile, "Doctors must provide specialization and license number."),
    UserRole.LAB_TECHNICIAN: (LabTechnicianProfile, ""),
    UserRole.ADMIN: (AdminProfile, ""),
}

def parse_role(value: Optional[str]) -> UserRole:
    """
    Resolve the requested role.

    Omitting the role means registering as a patient, so the patient fields
    (gender and dateOfBirth) become required.

    Raises:
        ValidationException: If the role is not one of the known roles
    """
    if value is None or value == "":
        return UserRole.PATIENT
    try:
        return UserRole(value)
    except ValueError:
        raise ValidationException("Invalid role.")

def parse_role_profile(role: UserRole, data: RegisterRequest) -> RoleProfile:
    """
    Build the role-specific profile for a registration.

    Raises:
        ValidationException: If a field the role requires is missing
    """
    profile_cls, message = ROLE_PROFILES[role]
    fields = {name: getattr(data, name) for name in profile_cls.model_fields if name != "role"}
    missing = [
        name for name, info in profile_cls.model_fields.items()
        if info.is_required() and fields.get(name) in (None, "")
    ]
    if missing:
        raise ValidationException(message)
    return profile_cls(**fields)

# ============================================================================
# RESPONSES
# ============================================================================

class UserResponse(BaseModel):
    """
    User Response Schema - Used when returning user data

    The password hash is never part of this schema.
    """
    id: int
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    role: UserRole
    phone: Optional[str] = None
    address: Optional[List[Address]] = None
    profile_image_url: Optional[str] = Field(None, alias="userImage")
    specialization: Optional[str] = None
    license_number: Optional[str] = Field(None, alias="licenseNumber")
    hospital_affiliation: Optional[str] = Field(None, alias="hospitalAffiliation")
    date_of_birth: Optional[date] = Field(None, alias="dateOfBirth")
    gender: Optional[Gender] = None
    assigned_doctor_id: Optional[int] = Field(None, alias="assignedDoctor")
    last_login: Optional[datetime] = Field(None, alias="lastLogin")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True
        populate_by_name = True

class AuthResponse(BaseModel):
    """
    Returned after registration and login.
    """
    message: str
    user: UserResponse
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")

    class Config:
        populate_by_name = True

class RefreshResponse(BaseModel):
    """
    Returned after a successful refresh token rotation.
    """
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")
    user: UserResponse

    class Config:
        populate_by_name = True

class MessageResponse(BaseModel):
    message: str

class AccessTokenClaims(BaseModel):
    """
    Identity attached to a request once its access token has been verified.
    """
    user_id: int
    role: UserRole
    name: Optional[str] = None
    assigned_doctor: Optional[str] = None
