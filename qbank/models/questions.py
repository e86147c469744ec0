"""Pydantic models for questions and images."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

CHOICE_LETTERS = ("A", "B", "C", "D", "E", "F", "G")


class UsageType(str, Enum):
    """Whether an image supports the question stem or its explanation."""

    QUESTION = "question"
    EXPLANATION = "explanation"

    def toggled(self) -> "UsageType":
        if self is UsageType.QUESTION:
            return UsageType.EXPLANATION
        return UsageType.QUESTION


class ImageType(str, Enum):
    """Still frame or cine loop."""

    STILL = "still"
    CINE = "cine"


class LicenseType(str, Enum):
    """License codes accepted by the backend."""

    MIT = "mit"
    APACHE_2 = "apache-2.0"
    GPL_3 = "gpl-3.0"
    BSD_3_CLAUSE = "bsd-3-clause"
    CC0 = "cc0-1.0"
    CC_BY_4 = "cc-by-4.0"
    CC_BY_SA_3 = "cc-by-sa-3.0"
    CC_BY_SA_4 = "cc-by-sa-4.0"
    CC_BY_NC_4 = "cc-by-nc-4.0"
    CC_BY_NC_SA_4 = "cc-by-nc-sa-4.0"
    COPYRIGHT_BORROWED = "copyright-borrowed"
    USER_CONTRIBUTED = "user-contributed"


class ReviewStatus(str, Enum):
    """Question review workflow status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"


class Image(BaseModel):
    """Uploaded image or cine clip."""

    id: int | None = None
    filename: str
    original_name: str = ""
    file_path: str = ""
    file_size: int = 0
    mime_type: str = "image/jpeg"
    image_type: ImageType = ImageType.STILL
    width: int | None = None
    height: int | None = None
    duration_seconds: float | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    license: LicenseType = LicenseType.USER_CONTRIBUTED
    license_details: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    display_order: int | None = None
    usage_type: UsageType | None = None

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")


class QuestionFields(BaseModel):
    """Editable fields of a question draft."""

    question_number: str = ""
    question: str = ""
    choice_a: str = ""
    choice_b: str = ""
    choice_c: str = ""
    choice_d: str = ""
    choice_e: str = ""
    choice_f: str = ""
    choice_g: str = ""
    correct_answer: str = ""
    explanation: str = ""
    source_folder: str = ""

    def choice(self, letter: str) -> str:
        """Return the text of the choice for an answer letter."""
        return getattr(self, f"choice_{letter.lower()}")


class Question(BaseModel):
    """Question as stored by the backend."""

    id: int | None = None
    question_number: str | None = None
    question: str
    choice_a: str | None = None
    choice_b: str | None = None
    choice_c: str | None = None
    choice_d: str | None = None
    choice_e: str | None = None
    choice_f: str | None = None
    choice_g: str | None = None
    correct_answer: str = ""
    explanation: str | None = None
    source_folder: str | None = None
    review_status: ReviewStatus | None = None
    review_notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    images: list[Image] = Field(default_factory=list)

    @field_validator("question_number", mode="before")
    @classmethod
    def _number_as_text(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    def to_fields(self) -> QuestionFields:
        """Seed form fields, mapping missing values to empty strings."""
        values = {
            name: getattr(self, name) or ""
            for name in QuestionFields.model_fields
        }
        return QuestionFields(**values)


class ImageSelection(BaseModel):
    """An image selected on the form together with its placement."""

    image: Image
    usage_type: UsageType = UsageType.QUESTION


class QuestionsPage(BaseModel):
    """Paginated question listing."""

    questions: list[Question]
    total: int = 0
    limit: int = 50
    offset: int = 0
    has_more: bool = False


class ImageUpload(BaseModel):
    """Metadata sent along with an image upload."""

    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    image_type: ImageType | None = None
    license: LicenseType | None = None
    license_details: str | None = None
    source_url: str | None = None
    modality: str | None = None
    echo_view: str | None = None
    usage_type: UsageType | None = None


class ImagesPage(BaseModel):
    """Paginated image listing."""

    images: list[Image]
    total: int = 0
    limit: int = 50
    offset: int = 0
    has_more: bool = False


class ReviewStats(BaseModel):
    """Image review progress."""

    total: int = 0
    reviewed: int = 0
    remaining: int = 0


class ReviewQueueItem(BaseModel):
    """Next image waiting for review."""

    image: Image
    stats: ReviewStats = Field(default_factory=ReviewStats)
