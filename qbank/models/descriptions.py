"""Pydantic models for image-description placeholders."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from qbank.models.entries import EntryId, TemporaryId
from qbank.models.questions import ImageType, UsageType


class Modality(str, Enum):
    """Imaging modality stored with a description."""

    TRANSTHORACIC = "transthoracic"
    TRANSESOPHAGEAL = "transesophageal"
    NON_ECHO = "non-echo"


class ExamType(str, Enum):
    """Echo exam type chosen in the description modal."""

    TTE = "TTE"
    TEE = "TEE/TOE"

    @property
    def modality(self) -> Modality:
        if self is ExamType.TTE:
            return Modality.TRANSTHORACIC
        return Modality.TRANSESOPHAGEAL


class ImageDescription(BaseModel):
    """Description of an image that has not been uploaded yet."""

    id: int | None = None
    question_id: int | None = None
    description: str
    usage_type: UsageType = UsageType.QUESTION
    modality: Modality | None = None
    echo_view: str | None = None
    image_type: ImageType | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DescriptionDraft(BaseModel):
    """Value emitted by the image-description modal."""

    description: str = Field(..., min_length=1)
    usage_type: UsageType = UsageType.QUESTION
    exam_type: ExamType = ExamType.TEE
    view_type: str | None = None

    def to_record(self, question_id: int | None = None) -> ImageDescription:
        return ImageDescription(
            question_id=question_id,
            description=self.description,
            usage_type=self.usage_type,
            modality=self.exam_type.modality,
            echo_view=self.view_type or None,
        )


@dataclass
class DescriptionEntry:
    """A description held by the form, keyed by its local or server id."""

    entry_id: EntryId
    record: ImageDescription

    @property
    def key(self) -> str:
        return self.entry_id.key

    @property
    def is_temporary(self) -> bool:
        return isinstance(self.entry_id, TemporaryId)
