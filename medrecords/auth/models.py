"""
User and RefreshToken models - credential storage for the medical records system.

Passwords and refresh tokens are only ever stored as one-way hashes.
"""
from sqlalchemy import Column, Integer, String, DateTime, Date, Enum, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from ..database import Base

class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the medical records system.

    Roles:
    - PATIENT: Patients who receive analyses and notifications
    - DOCTOR: Medical practitioners who request and review analyses
    - LAB_TECHNICIAN: Technicians who process lab analyses
    - ADMIN: System administrators with full access
    """
    PATIENT = "patient"
    DOCTOR = "doctor"
    LAB_TECHNICIAN = "lab_technician"
    ADMIN = "admin"

class Gender(str, enum.Enum):
    """Gender values accepted on patient records."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"

class User(Base):
    """
    User Model - Stores all user information in the system

    Fields:
    - id: Primary key for user identification
    - first_name / last_name: User's name
    - email: Unique, lower-cased email address used for login
    - password_hash: bcrypt hash of the password (never serialized)
    - phone: Contact number (optional)
    - address: List of address objects (street, city, state, zip, country)
    - profile_image_url / profile_image_public_id: Cloudinary image reference
    - role: patient, doctor, lab_technician or admin
    - specialization / license_number / hospital_affiliation: Doctor fields
    - date_of_birth / gender: Patient fields
    - assigned_doctor_id: Doctor responsible for a patient (optional)
    - last_login: Timestamp of the last successful login
    - created_at / updated_at: Row timestamps
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    address = Column(JSON, nullable=True, default=list)
    profile_image_url = Column(String, nullable=True)
    profile_image_public_id = Column(String, nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.PATIENT)

    # Doctor-specific
    specialization = Column(String, nullable=True)
    license_number = Column(String, nullable=True)
    hospital_affiliation = Column(String, nullable=True)

    # Patient-specific
    date_of_birth = Column(Date, nullable=True)
    gender = Column(Enum(Gender), nullable=True)
    assigned_doctor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    refresh_tokens = relationship(
        "RefreshToken", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def full_name(self) -> str:
        """Display name used in access token claims."""
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

class RefreshToken(Base):
    """
    RefreshToken Model - One outstanding refresh credential

    Fields:
    - id: Primary key
    - token_hash: Salted one-way hash of the raw refresh token
    - user_id: Owning user
    - expires_at: When the refresh token stops being accepted
    - created_at / updated_at: Row timestamps
    """
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token_hash = Column(String, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="refresh_tokens")

    def __repr__(self):
        return f"<RefreshToken(id={self.id}, user_id={self.user_id}, expires_at='{self.expires_at}')>"
