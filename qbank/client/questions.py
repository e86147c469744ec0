"""Question endpoints."""
from qbank.client.base import ApiClient
from qbank.models.questions import Image, Question, QuestionFields, QuestionsPage


def list_questions(client: ApiClient, limit: int = 50, offset: int = 0) -> QuestionsPage:
    """Get one page of questions."""
    data = client.get("/questions", params={"limit": limit, "offset": offset})
    pagination = data.get("pagination", {})
    return QuestionsPage(
        questions=[Question.model_validate(item) for item in data.get("questions", [])],
        total=pagination.get("total", 0),
        limit=pagination.get("limit", limit),
        offset=pagination.get("offset", offset),
        has_more=pagination.get("hasMore", False),
    )


def get_question(client: ApiClient, question_id: int) -> Question:
    """Get question by ID, including its images."""
    return Question.model_validate(client.get(f"/questions/{question_id}"))


def create_question(client: ApiClient, fields: QuestionFields) -> Question:
    """Create a new question; the backend assigns the question number."""
    payload = fields.model_dump(exclude={"question_number"})
    return Question.model_validate(client.post("/questions", json=payload))


def update_question(client: ApiClient, question_id: int, fields: QuestionFields) -> Question:
    """Update an existing question."""
    payload = fields.model_dump()
    return Question.model_validate(client.put(f"/questions/{question_id}", json=payload))


def delete_question(client: ApiClient, question_id: int) -> None:
    """Delete a question."""
    client.delete(f"/questions/{question_id}")


def get_question_images(client: ApiClient, question_id: int) -> list[Image]:
    """Get images associated with a question."""
    data = client.get(f"/questions/{question_id}/images")
    return [Image.model_validate(item) for item in data or []]
