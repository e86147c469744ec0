"""Pydantic models."""
from qbank.models.auth import (
    AuthResponse,
    MessageResponse,
    ProfileUpdateRequest,
    SessionResponse,
    User,
    UserLogin,
    UserRegister,
)
from qbank.models.descriptions import (
    DescriptionDraft,
    DescriptionEntry,
    ExamType,
    ImageDescription,
    Modality,
)
from qbank.models.entries import EntryId, PersistedId, TemporaryId
from qbank.models.metadata import ApplicableExam, Metadata, Subtopic
from qbank.models.questions import (
    CHOICE_LETTERS,
    Image,
    ImagesPage,
    ImageSelection,
    ImageUpload,
    ImageType,
    LicenseType,
    Question,
    QuestionFields,
    QuestionsPage,
    ReviewQueueItem,
    ReviewStats,
    UsageType,
)
from qbank.models.results import StepKind, StepResult, SubmitReport

__all__ = [
    "ApplicableExam",
    "AuthResponse",
    "CHOICE_LETTERS",
    "DescriptionDraft",
    "DescriptionEntry",
    "EntryId",
    "ExamType",
    "Image",
    "ImageDescription",
    "ImageSelection",
    "ImageUpload",
    "ImagesPage",
    "ImageType",
    "LicenseType",
    "MessageResponse",
    "Metadata",
    "Modality",
    "PersistedId",
    "ProfileUpdateRequest",
    "Question",
    "QuestionFields",
    "QuestionsPage",
    "ReviewQueueItem",
    "ReviewStats",
    "SessionResponse",
    "StepKind",
    "StepResult",
    "SubmitReport",
    "Subtopic",
    "TemporaryId",
    "UsageType",
    "User",
    "UserLogin",
    "UserRegister",
]
