import logging

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from config.env import (
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
    CLOUDINARY_FOLDER,
)

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    secure=True,
)


def upload_image(file, folder: str = CLOUDINARY_FOLDER) -> dict:
    """
    Store a card photo and return its public location.
    Nothing is persisted locally; callers attach the URL to a card themselves.
    """
    result = cloudinary.uploader.upload(
        file,
        folder=folder,
        resource_type="image",
        tags=["trading_card"],
    )

    image_url = result.get("secure_url")
    if not image_url:
        raise CloudinaryError("Upload response did not include a URL")

    logger.info("CARD_IMAGE_UPLOADED public_id=%s", result.get("public_id"))
    return {"image_url": image_url, "public_id": result.get("public_id")}
