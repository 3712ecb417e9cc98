"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string
        jwt_secret: Secret used to sign access tokens
        refresh_token_secret: Secret used to sign refresh tokens
        algorithm: Algorithm used for JWT encoding (typically HS256)
        access_token_expire_minutes: Access token lifetime in minutes
        refresh_token_expire_days: Refresh token lifetime in days
        bcrypt_rounds: Cost factor for password and refresh token hashing

        # Cloudinary settings
        cloudinary_cloud_name: Cloudinary cloud name
        cloudinary_api_key: Cloudinary API key
        cloudinary_api_secret: Cloudinary API secret

        # HTTP settings
        cors_origins: Origins allowed by the CORS middleware
        max_upload_size_mb: Largest accepted profile image upload
        log_level: Root logging level
    """
    # Database settings
    database_url: str = "sqlite:///./medrecords.db"

    # JWT settings (signing fails with a configuration error while unset)
    jwt_secret: Optional[str] = None
    refresh_token_secret: Optional[str] = None
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    # Hashing settings
    bcrypt_rounds: int = 10

    # Cloudinary settings
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None

    # HTTP settings
    cors_origins: List[str] = ["*"]
    max_upload_size_mb: int = 20
    log_level: str = "INFO"

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

# Create settings instance
settings = Settings()
