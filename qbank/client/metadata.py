"""Metadata endpoints, including AI generation."""
from qbank.client.base import ApiClient
from qbank.config import GENERATION_TIMEOUT_SECONDS
from qbank.models.metadata import Metadata
from qbank.models.questions import QuestionFields


def generation_request(fields: QuestionFields, image_count: int = 0) -> dict[str, object]:
    """Body sent to the metadata and exam generators."""
    return {
        "question": fields.question,
        "choice_a": fields.choice_a,
        "choice_b": fields.choice_b,
        "choice_c": fields.choice_c,
        "choice_d": fields.choice_d,
        "choice_e": fields.choice_e,
        "correct_answer": fields.correct_answer,
        "explanation": fields.explanation,
        "imageCount": image_count,
    }


def generate_metadata(client: ApiClient, fields: QuestionFields, image_count: int = 0) -> Metadata:
    """Ask the backend's LLM service for metadata tags."""
    data = client.post(
        "/metadata/generate",
        json=generation_request(fields, image_count),
        timeout=GENERATION_TIMEOUT_SECONDS,
    )
    return Metadata.model_validate(data)


def get_metadata(client: ApiClient, question_id: int) -> Metadata | None:
    """Get stored metadata, or None when the question has none yet."""
    data = client.get(f"/questions/{question_id}/metadata")
    metadata = (data or {}).get("metadata")
    if metadata is None:
        return None
    return Metadata.model_validate(metadata)


def upsert_metadata(client: ApiClient, question_id: int, metadata: Metadata) -> None:
    """Create or replace the metadata record of a question."""
    client.post(f"/questions/{question_id}/metadata", json=metadata.to_payload())


def delete_metadata(client: ApiClient, question_id: int) -> None:
    """Delete the metadata record of a question."""
    client.delete(f"/question-metadata/question/{question_id}")
