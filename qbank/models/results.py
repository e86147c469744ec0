"""Per-step outcome of a multi-step form submission."""
from enum import Enum

from pydantic import BaseModel, Field

from qbank.models.questions import Question


class StepKind(str, Enum):
    """Backend call made while submitting a question."""

    QUESTION = "question"
    DESCRIPTION = "description"
    IMAGE = "image"
    REFRESH = "refresh"
    METADATA = "metadata"
    EXAMS = "exams"


# A failure in these aborts the submission; the rest are warnings
BLOCKING_STEPS = frozenset({StepKind.QUESTION, StepKind.IMAGE, StepKind.REFRESH})


class StepResult(BaseModel):
    """Outcome of one backend call."""

    kind: StepKind
    target: str = ""
    ok: bool = True
    error: str | None = None


class SubmitReport(BaseModel):
    """Aggregate outcome of ``QuestionForm.submit``."""

    mode: str
    question: Question | None = None
    steps: list[StepResult] = Field(default_factory=list)
    validation_error: str | None = None

    @property
    def succeeded(self) -> bool:
        if self.validation_error is not None or self.question is None:
            return False
        return not any(
            not step.ok and step.kind in BLOCKING_STEPS for step in self.steps
        )

    @property
    def warnings(self) -> list[str]:
        messages = []
        for step in self.steps:
            if step.ok or step.kind in BLOCKING_STEPS:
                continue
            label = f"{step.kind.value} {step.target}".strip()
            messages.append(f"Warning: Failed to save {label} - {step.error}")
        return messages

    def failed(self, kind: StepKind) -> list[StepResult]:
        return [step for step in self.steps if step.kind is kind and not step.ok]
