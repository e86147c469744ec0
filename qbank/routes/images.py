"""Image library, image view and image review routes."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from qbank.client import images as images_api
from qbank.client.base import ApiClient
from qbank.dependencies.auth import get_api_client, require_reviewer, require_user
from qbank.models.auth import MessageResponse, User
from qbank.models.questions import Image, ImageType, LicenseType
from qbank.routes.errors import translate_errors
from qbank.services.image_service import (
    format_file_size,
    image_url,
    license_info,
    license_options,
    review_status_for_rating,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["images"])

Client = Annotated[ApiClient, Depends(get_api_client)]


class ReviewRequest(BaseModel):
    rating: int = Field(..., ge=0, le=10)


class ImageUpdateRequest(BaseModel):
    """Library edits; only the fields sent are changed."""

    description: str | None = None
    tags: list[str] | None = None
    image_type: ImageType | None = None
    license: LicenseType | None = None
    license_details: str | None = None


def _image_view(client: ApiClient, image: Image) -> dict[str, object]:
    return {
        "image": image.model_dump(mode="json"),
        "url": image_url(image.file_path or image.filename, client.base_url),
        "is_video": image.is_video,
        "file_size": format_file_size(image.file_size),
        "license": license_info(image.license),
    }


@router.get("")
def list_images(
    client: Client,
    _: Annotated[User, Depends(require_user)],
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    image_type: ImageType | None = Query(None, alias="type"),
    license: LicenseType | None = None,
    tags: str | None = None,
) -> dict[str, object]:
    """Browse the image library, optionally filtered by type, license and tag."""
    with translate_errors():
        page = images_api.list_images(
            client, limit=limit, offset=offset, image_type=image_type, license=license, tags=tags
        )
    return {
        "images": [_image_view(client, image) for image in page.images],
        "pagination": {
            "total": page.total,
            "limit": page.limit,
            "offset": page.offset,
            "has_more": page.has_more,
        },
    }


@router.get("/licenses")
def get_licenses() -> list[dict[str, str]]:
    """License choices for the upload form."""
    return license_options()


@router.get("/review/next")
def next_for_review(
    client: Client,
    _: Annotated[User, Depends(require_reviewer)],
) -> dict[str, object]:
    """Next image waiting for review; ``image`` is null when the queue is empty."""
    with translate_errors():
        item = images_api.next_for_review(client)
    if item is None:
        return {"image": None, "stats": None}
    return {**_image_view(client, item.image), "stats": item.stats.model_dump()}


@router.post("/{image_id}/review")
def submit_review(
    image_id: int,
    data: ReviewRequest,
    client: Client,
    _: Annotated[User, Depends(require_reviewer)],
) -> dict[str, object]:
    """Rate an image; the review status follows from the rating."""
    review_status = review_status_for_rating(data.rating)
    with translate_errors():
        result = images_api.submit_review(client, image_id, data.rating, review_status)
    return {"status": review_status, "result": result}


@router.get("/{image_id}")
def view_image(
    image_id: int,
    client: Client,
    _: Annotated[User, Depends(require_user)],
) -> dict[str, object]:
    """Image details with the questions that use it."""
    with translate_errors():
        image = images_api.get_image(client, image_id)
        questions = images_api.get_questions_for_image(client, image_id)
    return {
        **_image_view(client, image),
        "questions": [question.model_dump(mode="json") for question in questions],
    }


@router.put("/{image_id}")
def update_image(
    image_id: int,
    data: ImageUpdateRequest,
    client: Client,
    _: Annotated[User, Depends(require_user)],
) -> dict[str, object]:
    """Edit description, tags, type or license of a library image."""
    changes = data.model_dump(mode="json", exclude_unset=True)
    if changes.get("tags"):
        changes["tags"] = [tag.strip() for tag in changes["tags"] if tag.strip()]
    with translate_errors():
        image = images_api.update_image(client, image_id, changes)
    logger.info("Updated image %s: %s", image_id, ", ".join(sorted(changes)))
    return _image_view(client, image)


@router.delete("/{image_id}", response_model=MessageResponse)
def delete_image(
    image_id: int,
    client: Client,
    _: Annotated[User, Depends(require_user)],
) -> MessageResponse:
    with translate_errors():
        images_api.delete_image(client, image_id)
    logger.info("Deleted image %s", image_id)
    return MessageResponse(message="Image deleted")
