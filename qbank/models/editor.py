"""Request bodies of the editor routes."""
from typing import Any

from pydantic import BaseModel

from qbank.models.descriptions import ExamType
from qbank.models.questions import UsageType


class OpenEditorRequest(BaseModel):
    """Open a blank editor, or one for an existing question."""

    question_id: int | None = None


class SelectImageRequest(BaseModel):
    image_id: int
    usage_type: UsageType = UsageType.QUESTION


class UsageRequest(BaseModel):
    usage_type: UsageType


class DescriptionRequest(BaseModel):
    """Values entered in the image-description modal."""

    description: str = ""
    usage_type: UsageType = UsageType.QUESTION
    exam_type: ExamType = ExamType.TEE
    view_type: str = ""


class DescriptionUpdate(BaseModel):
    description: str | None = None
    usage_type: UsageType | None = None


class FieldValue(BaseModel):
    field: str
    value: Any = None


class TagRequest(BaseModel):
    field: str
    value: str


class ModalOpenRequest(BaseModel):
    """Open a modal on an existing entry, or empty to add a new one."""

    key: str | None = None


class SubtopicToggle(BaseModel):
    exam_name: str
    name: str
    section: str


class SubtopicRequest(BaseModel):
    name: str
    section: str = ""


class ResetRequest(BaseModel):
    confirm: bool = False
