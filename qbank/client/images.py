"""Image endpoints."""
from qbank.client.base import ApiClient, ApiError
from qbank.models.questions import (
    Image,
    ImagesPage,
    ImageType,
    ImageUpload,
    LicenseType,
    Question,
    ReviewQueueItem,
    UsageType,
)


def list_images(
    client: ApiClient,
    limit: int = 50,
    offset: int = 0,
    image_type: ImageType | None = None,
    license: LicenseType | None = None,
    tags: str | None = None,
) -> ImagesPage:
    """Get images with pagination and filtering."""
    params: dict[str, object] = {"limit": limit, "offset": offset}
    if image_type is not None:
        params["type"] = image_type.value
    if license is not None:
        params["license"] = license.value
    if tags:
        params["tags"] = tags
    data = client.get("/images", params=params)
    pagination = data.get("pagination", {})
    return ImagesPage(
        images=[Image.model_validate(item) for item in data.get("images", [])],
        total=pagination.get("total", 0),
        limit=pagination.get("limit", limit),
        offset=pagination.get("offset", offset),
        has_more=pagination.get("hasMore", False),
    )


def get_image(client: ApiClient, image_id: int) -> Image:
    """Get image by ID."""
    return Image.model_validate(client.get(f"/images/{image_id}"))


def upload_image(
    client: ApiClient,
    metadata: ImageUpload,
    filename: str | None = None,
    content: bytes | None = None,
    mime_type: str | None = None,
) -> Image:
    """Upload an image file, or register one by URL when ``source_url`` is set."""
    if metadata.source_url:
        payload = metadata.model_dump(mode="json", exclude_none=True)
        payload["url"] = metadata.source_url
        return Image.model_validate(client.post("/images/upload-url", json=payload))

    if content is None:
        raise ValueError("Either file or source_url must be provided")

    form: dict[str, str] = {}
    for key, value in metadata.model_dump(mode="json", exclude_none=True).items():
        if key == "tags":
            if value:
                form["tags"] = ",".join(value)
            continue
        if value:
            form[key] = str(value)
    files = {"image": (filename or "upload", content, mime_type or "application/octet-stream")}
    return Image.model_validate(client.post("/images/upload", data=form, files=files))


def update_image(client: ApiClient, image_id: int, changes: dict[str, object]) -> Image:
    """Update description, tags, type or license of an image."""
    return Image.model_validate(client.put(f"/images/{image_id}", json=changes))


def delete_image(client: ApiClient, image_id: int) -> None:
    """Delete an image."""
    client.delete(f"/images/{image_id}")


def associate_with_question(
    client: ApiClient,
    image_id: int,
    question_id: int,
    display_order: int = 1,
    usage_type: UsageType = UsageType.QUESTION,
) -> None:
    """Associate image with question at a display position."""
    client.post(
        f"/images/{image_id}/associate/{question_id}",
        json={"display_order": display_order, "usage_type": usage_type.value},
    )


def update_image_usage(
    client: ApiClient, image_id: int, question_id: int, usage_type: UsageType
) -> None:
    """Move an associated image between question stem and explanation."""
    client.put(
        f"/images/{image_id}/usage/{question_id}",
        json={"usage_type": usage_type.value},
    )


def remove_from_question(client: ApiClient, image_id: int, question_id: int) -> None:
    """Remove image from question."""
    client.delete(f"/images/{image_id}/associate/{question_id}")


def get_questions_for_image(client: ApiClient, image_id: int) -> list[Question]:
    """Get questions that use an image."""
    data = client.get(f"/images/{image_id}/questions")
    return [Question.model_validate(item) for item in data or []]


def next_for_review(client: ApiClient) -> ReviewQueueItem | None:
    """Get the next unreviewed image, or None when the queue is empty."""
    try:
        data = client.get("/images/next-for-review")
    except ApiError as exc:
        if exc.is_not_found:
            return None
        raise
    return ReviewQueueItem.model_validate(data)


def submit_review(client: ApiClient, image_id: int, rating: int, status: str) -> dict:
    """Submit a review rating for an image."""
    return client.post(
        f"/images/{image_id}/review", json={"rating": rating, "status": status}
    )
