"""Applicable-exam endpoints."""
from pydantic import TypeAdapter

from qbank.client.base import ApiClient
from qbank.client.metadata import generation_request
from qbank.config import GENERATION_TIMEOUT_SECONDS
from qbank.models.metadata import ApplicableExam
from qbank.models.questions import QuestionFields

_exam_list = TypeAdapter(list[ApplicableExam])


def assign_exams(
    client: ApiClient, fields: QuestionFields, image_count: int = 0
) -> list[ApplicableExam]:
    """Ask the backend's LLM service which exams a question fits."""
    data = client.post(
        "/exams/assign",
        json=generation_request(fields, image_count),
        timeout=GENERATION_TIMEOUT_SECONDS,
    )
    return _exam_list.validate_python(data or [])


def get_exam_assignments(client: ApiClient, question_id: int) -> list[ApplicableExam]:
    """Get saved exam assignments for a question."""
    data = client.get(f"/questions/{question_id}/exams")
    return [ApplicableExam.model_validate(item) for item in (data or {}).get("exams", [])]


def save_exam_assignments(
    client: ApiClient, question_id: int, exams: list[ApplicableExam]
) -> None:
    """Replace the exam assignments of a question."""
    client.post(
        f"/questions/{question_id}/exams",
        json={"exams": [exam.to_payload() for exam in exams]},
    )
