import base64
import binascii
import os
import re
import uuid
from typing import Optional, Tuple

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from core.config import settings
from core.logging import get_logger

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "svg"}

_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")
_WHITESPACE = re.compile(r"\s")


def sniff_image_extension(data: bytes) -> str:
    """Guess the image extension from the leading signature bytes."""
    if data.startswith(b"\x89PNG"):
        return "png"
    if data.startswith(b"GIF8"):
        return "gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"
    return "jpg"


def sniff_base64_extension(payload: str) -> str:
    """Same as sniff_image_extension, on the base64 text of the signature."""
    if payload.startswith("iVBOR"):
        return "png"
    if payload.startswith("R0lGO"):
        return "gif"
    if payload.startswith("UklGR"):
        return "webp"
    return "jpg"


def clean_base64(payload: str) -> str:
    return _WHITESPACE.sub("", _DATA_URL_PREFIX.sub("", payload.strip()))


def decode_base64_image(payload: str) -> Tuple[bytes, str]:
    """Decode a (data URL or bare) base64 image into bytes and an extension.

    Raises:
        ValueError: the payload is not valid base64
    """
    clean = clean_base64(payload)
    try:
        data = base64.b64decode(clean, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Invalid base64 image data") from exc
    return data, sniff_base64_extension(clean)


def extension_from_filename(filename: Optional[str]) -> Optional[str]:
    if not filename or "." not in filename:
        return None
    return filename.rsplit(".", 1)[-1].lower()


def _storage_name(filename: Optional[str], extension: str) -> str:
    """Unique stored name that keeps the base name of the caller's file, if any."""
    if not filename:
        return f"{uuid.uuid4()}.{extension}"
    stem = os.path.basename(filename).rsplit(".", 1)[0] or "image"
    return f"{stem}-{uuid.uuid4().hex[:8]}.{extension}"


class ImageStorageService:
    """Stores uploaded product images on Cloudinary or on local disk."""

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        public_base_url: Optional[str] = None,
        use_cloudinary: Optional[bool] = None,
    ):
        self.upload_dir = upload_dir or settings.UPLOAD_DIR
        self.public_base_url = (public_base_url or settings.API_BASE_URL).rstrip("/")
        self.use_cloudinary = bool(settings.CLOUDINARY_CLOUD_NAME) if use_cloudinary is None else use_cloudinary

        if self.use_cloudinary:
            # Configure Cloudinary with environment variables
            cloudinary.config(
                cloud_name=settings.CLOUDINARY_CLOUD_NAME,
                api_key=settings.CLOUDINARY_API_KEY,
                api_secret=settings.CLOUDINARY_API_SECRET,
                secure=True,
            )

    def save(self, data: bytes, filename: Optional[str] = None) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Store an image and return where it can be fetched from.

        Args:
            data: Binary image data
            filename: Optional name hint; the stored name always gets a random suffix

        Returns:
            Tuple of (success: bool, url: Optional[str], error: Optional[str])
        """
        extension = extension_from_filename(filename) or sniff_image_extension(data)
        if extension not in ALLOWED_EXTENSIONS:
            return False, None, f"File type not allowed: .{extension}"

        name = _storage_name(filename, extension)

        if self.use_cloudinary:
            return self._save_to_cloudinary(data, name)
        return self._save_to_disk(data, name)

    def _save_to_cloudinary(self, data: bytes, name: str) -> Tuple[bool, Optional[str], Optional[str]]:
        try:
            result = cloudinary.uploader.upload(
                data,
                public_id=name.rsplit(".", 1)[0],
                folder="product-images",
                overwrite=True,
                resource_type="image",
            )
            return True, result.get("secure_url"), None
        except CloudinaryError as e:
            logger.warning("Cloudinary upload failed for %s: %s", name, e)
            return False, None, str(e)

    def _save_to_disk(self, data: bytes, name: str) -> Tuple[bool, Optional[str], Optional[str]]:
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            with open(os.path.join(self.upload_dir, name), "wb") as fh:
                fh.write(data)
        except OSError as e:
            logger.warning("Could not write upload %s: %s", name, e)
            return False, None, str(e)
        return True, f"{self.public_base_url}/uploads/{name}", None


# Global instance
image_storage = ImageStorageService()


def get_image_storage() -> ImageStorageService:
    return image_storage
