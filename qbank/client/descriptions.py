"""Image-description endpoints."""
from qbank.client.base import ApiClient
from qbank.models.descriptions import ImageDescription
from qbank.models.questions import UsageType


def list_for_question(
    client: ApiClient, question_id: int, usage_type: UsageType | None = None
) -> list[ImageDescription]:
    """Get all image descriptions for a question."""
    params = {"usage_type": usage_type.value} if usage_type is not None else None
    data = client.get(f"/image-descriptions/question/{question_id}", params=params)
    return [ImageDescription.model_validate(item) for item in data or []]


def get_description(client: ApiClient, description_id: int) -> ImageDescription:
    """Get a single image description."""
    return ImageDescription.model_validate(client.get(f"/image-descriptions/{description_id}"))


def create_description(client: ApiClient, record: ImageDescription) -> ImageDescription:
    """Create an image description; ``record.question_id`` must be a saved question."""
    if record.question_id is None:
        raise ValueError("question_id is required to save an image description")
    payload = record.model_dump(
        mode="json",
        exclude={"id", "created_at", "updated_at"},
        exclude_none=True,
    )
    return ImageDescription.model_validate(client.post("/image-descriptions", json=payload))


def update_description(
    client: ApiClient, description_id: int, description: str, usage_type: UsageType
) -> ImageDescription:
    """Update text and placement of an image description."""
    data = client.put(
        f"/image-descriptions/{description_id}",
        json={"description": description, "usage_type": usage_type.value},
    )
    return ImageDescription.model_validate(data)


def delete_description(client: ApiClient, description_id: int) -> None:
    """Delete an image description."""
    client.delete(f"/image-descriptions/{description_id}")


def delete_for_question(client: ApiClient, question_id: int) -> int:
    """Delete all image descriptions of a question; returns the deleted count."""
    data = client.delete(f"/image-descriptions/question/{question_id}")
    return int((data or {}).get("deletedCount", 0))
