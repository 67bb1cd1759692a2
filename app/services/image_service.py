"""
Client for the external image upload service.

Uploads use the ImageKit upload API: a multipart POST authenticated with
the private key, answered with JSON containing the public file URL.
"""
import logging

import httpx

from app.config import get_settings
from app.exceptions import ImageUploadError

logger = logging.getLogger(__name__)

settings = get_settings()


class ImageUploader:
    """Sends image bytes to the upload service and returns the stored URL."""

    def __init__(
        self,
        upload_url: str = None,
        private_key: str = None,
        folder: str = None,
        timeout: float = None
    ):
        self.upload_url = upload_url or settings.IMAGE_UPLOAD_URL
        self.private_key = private_key or settings.IMAGE_UPLOAD_PRIVATE_KEY
        self.folder = folder or settings.IMAGE_UPLOAD_FOLDER
        self.timeout = timeout or settings.IMAGE_UPLOAD_TIMEOUT

    def upload(self, content: bytes, filename: str) -> str:
        """
        Upload an image.

        Args:
            content: Raw image bytes
            filename: Original file name

        Returns:
            Public URL of the uploaded image

        Raises:
            ImageUploadError: If uploads aren't configured or the service fails
        """
        if not self.upload_url or not self.private_key:
            raise ImageUploadError("Image upload service is not configured")

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    self.upload_url,
                    auth=(self.private_key, ""),
                    data={"fileName": filename, "folder": self.folder},
                    files={"file": (filename, content)},
                )
                response.raise_for_status()
                url = response.json().get("url")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Image upload failed for '{filename}': {e}")
            raise ImageUploadError(f"Image upload failed: {e}") from e

        if not url:
            raise ImageUploadError("Image upload service returned no URL")

        logger.info(f"Uploaded image '{filename}' to {url}")
        return url


def get_image_uploader() -> ImageUploader:
    """Dependency providing the configured image uploader."""
    return ImageUploader()
