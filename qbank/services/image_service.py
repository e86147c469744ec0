"""Image helpers: display URLs, license table, upload probing and review."""
import io
import logging
import math
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from fastapi import HTTPException, status
from PIL import Image, UnidentifiedImageError

from qbank.config import UPLOAD_ALLOWED_EXTENSIONS, UPLOAD_MAX_SIZE_BYTES
from qbank.models.questions import ImageType, LicenseType

logger = logging.getLogger(__name__)

SPACES_HOST = "digitaloceanspaces.com"

LICENSES: dict[LicenseType, dict[str, object]] = {
    LicenseType.MIT: {"name": "MIT License", "url": "https://opensource.org/licenses/MIT", "requires_attribution": True, "label": "MIT License", "category": "Open Source"},
    LicenseType.APACHE_2: {"name": "Apache License 2.0", "url": "https://opensource.org/licenses/Apache-2.0", "requires_attribution": True, "label": "Apache License 2.0", "category": "Open Source"},
    LicenseType.GPL_3: {"name": "GNU General Public License v3.0", "url": "https://opensource.org/licenses/GPL-3.0", "requires_attribution": True, "label": "GNU GPL v3.0", "category": "Open Source"},
    LicenseType.BSD_3_CLAUSE: {"name": "BSD 3-Clause License", "url": "https://opensource.org/licenses/BSD-3-Clause", "requires_attribution": True, "label": "BSD 3-Clause", "category": "Open Source"},
    LicenseType.CC0: {"name": "Creative Commons Zero v1.0", "url": "https://creativecommons.org/publicdomain/zero/1.0/", "requires_attribution": False, "label": "CC0 1.0 (Public Domain)", "category": "Creative Commons"},
    LicenseType.CC_BY_4: {"name": "Creative Commons Attribution 4.0", "url": "https://creativecommons.org/licenses/by/4.0/", "requires_attribution": True, "label": "CC BY 4.0", "category": "Creative Commons"},
    LicenseType.CC_BY_SA_3: {"name": "Creative Commons Attribution-Share Alike 3.0 Unported", "url": "https://creativecommons.org/licenses/by-sa/3.0/", "requires_attribution": True, "label": "CC BY-SA 3.0 Unported", "category": "Creative Commons"},
    LicenseType.CC_BY_SA_4: {"name": "Creative Commons Attribution-ShareAlike 4.0", "url": "https://creativecommons.org/licenses/by-sa/4.0/", "requires_attribution": True, "label": "CC BY-SA 4.0", "category": "Creative Commons"},
    LicenseType.CC_BY_NC_4: {"name": "Creative Commons Attribution-NonCommercial 4.0", "url": "https://creativecommons.org/licenses/by-nc/4.0/", "requires_attribution": True, "label": "CC BY-NC 4.0", "category": "Creative Commons"},
    LicenseType.CC_BY_NC_SA_4: {"name": "Creative Commons Attribution-NonCommercial-ShareAlike 4.0", "url": "https://creativecommons.org/licenses/by-nc-sa/4.0/", "requires_attribution": True, "label": "CC BY-NC-SA 4.0", "category": "Creative Commons"},
    LicenseType.COPYRIGHT_BORROWED: {"name": "Copyright Borrowed", "url": None, "requires_attribution": True, "label": "Copyright Borrowed", "category": "Special"},
    LicenseType.USER_CONTRIBUTED: {"name": "User Contributed", "url": None, "requires_attribution": False, "label": "User Contributed", "category": "Special"},
}


def image_url(source: str, base_url: str) -> str:
    """
    Get the URL a browser should load an image from.

    Args:
        source: Stored filename or full URL
        base_url: Backend API base URL

    Returns:
        Spaces URLs unchanged, other external URLs through the backend
        proxy, local files through the serve endpoint
    """
    if source.startswith(("http://", "https://")):
        if SPACES_HOST in source:
            return source
        return f"{base_url}/images/proxy?url={quote(source, safe='')}"
    return f"{base_url}/images/serve/{source}"


def license_info(license: LicenseType) -> dict[str, object]:
    """Name, URL and attribution requirement of a license."""
    info = LICENSES[license]
    return {
        "name": info["name"],
        "url": info["url"],
        "requires_attribution": info["requires_attribution"],
    }


def license_options() -> list[dict[str, str]]:
    """All licenses grouped for a select box."""
    return [
        {"value": code.value, "label": str(info["label"]), "category": str(info["category"])}
        for code, info in LICENSES.items()
    ]


def format_file_size(size: int) -> str:
    """Human readable file size, e.g. ``1.5 KB``."""
    units = ["Bytes", "KB", "MB", "GB"]
    if size <= 0:
        return "0 Bytes"
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / math.pow(1024, index), 2)
    if value == int(value):
        value = int(value)
    return f"{value} {units[index]}"


def review_status_for_rating(rating: int) -> str:
    """
    Map a 0-10 review rating to a review status.

    Raises:
        HTTPException: If the rating is out of range
    """
    if not 0 <= rating <= 10:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Rating must be between 0 and 10",
        )
    if rating >= 8:
        return "approved"
    if rating <= 5:
        return "rejected"
    return "needs_revision"


@dataclass
class UploadInfo:
    """What could be learned about an upload before sending it."""

    mime_type: str
    image_type: ImageType
    width: int | None = None
    height: int | None = None


def validate_upload(filename: str | None, size: int) -> None:
    """
    Validate an image or cine upload.

    Raises:
        HTTPException: If the name, extension or size is not acceptable
    """
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No filename provided",
        )

    ext = Path(filename).suffix.lower()
    if ext not in UPLOAD_ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed: {', '.join(sorted(UPLOAD_ALLOWED_EXTENSIONS))}",
        )

    if size > UPLOAD_MAX_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size: {UPLOAD_MAX_SIZE_BYTES // (1024 * 1024)}MB",
        )


def inspect_upload(filename: str, content: bytes) -> UploadInfo:
    """
    Detect mime type, dimensions and still/cine type of an upload.

    Animated images and videos are cine; anything Pillow cannot open falls
    back to the extension's mime type.
    """
    guessed = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    if guessed.startswith("video/"):
        return UploadInfo(mime_type=guessed, image_type=ImageType.CINE)

    try:
        with Image.open(io.BytesIO(content)) as img:
            mime_type = Image.MIME.get(img.format or "", guessed)
            animated = bool(getattr(img, "is_animated", False))
            width, height = img.size
    except (UnidentifiedImageError, OSError) as exc:
        logger.warning("Could not identify upload %s: %s", filename, exc)
        return UploadInfo(mime_type=guessed, image_type=ImageType.STILL)

    return UploadInfo(
        mime_type=mime_type,
        image_type=ImageType.CINE if animated else ImageType.STILL,
        width=width,
        height=height,
    )
