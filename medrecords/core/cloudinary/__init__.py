import cloudinary
import cloudinary.uploader
import cloudinary.exceptions
import logging
from typing import BinaryIO, Dict, Union
from fastapi import status
from medrecords.config import settings
from medrecords.exceptions import AppException

# Set up logger for this module
logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=settings.cloudinary_cloud_name,
    api_key=settings.cloudinary_api_key,
    api_secret=settings.cloudinary_api_secret,
    secure=True
)

class StorageUploadException(AppException):
    """Raised when the object storage service rejects an upload."""
    def __init__(self, detail: str = "Error uploading image"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)

def upload_profile_image(file: Union[bytes, BinaryIO], folder: str = "profile-images") -> Dict[str, str]:
    """
    Uploads a profile image to Cloudinary.
    Returns the secure URL and the public id needed to delete it later.
    """
    try:
        result = cloudinary.uploader.upload(
            file,
            folder=folder,
            resource_type="image"
        )
    except cloudinary.exceptions.Error as e:
        logger.error(f"Cloudinary API error during profile image upload: {str(e)}")
        raise StorageUploadException()
    except Exception as e:
        logger.error(f"Unexpected error during profile image upload to Cloudinary: {str(e)}")
        raise StorageUploadException()

    secure_url = result.get("secure_url")
    if not secure_url:
        logger.error("Cloudinary upload result did not contain a secure_url.")
        raise StorageUploadException()
    logger.info(f"Successfully uploaded image to Cloudinary. URL: {secure_url}")
    return {"url": secure_url, "public_id": result.get("public_id")}

def delete_profile_image(public_id: str) -> bool:
    """
    Removes a previously uploaded image. Failures are logged and reported
    through the return value, never raised.
    """
    try:
        result = cloudinary.uploader.destroy(public_id, resource_type="image")
    except Exception as e:
        logger.warning(f"Failed to delete Cloudinary image {public_id}: {str(e)}")
        return False
    deleted = result.get("result") == "ok"
    if not deleted:
        logger.warning(f"Cloudinary did not delete image {public_id}: {result}")
    return deleted
