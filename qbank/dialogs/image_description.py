"""Placeholder description for an image that still has to be found."""
from collections.abc import Callable

from qbank.dialogs.base import DialogError
from qbank.models.descriptions import DescriptionDraft, ExamType
from qbank.models.questions import UsageType
from qbank.services.catalog import views_for_exam_type


class ImageDescriptionModal:
    def __init__(self) -> None:
        self.is_open = False
        self.reset()

    def reset(self) -> None:
        self.description = ""
        self.usage_type = UsageType.QUESTION
        self.exam_type = ExamType.TEE
        self.view_type = ""

    def open(self) -> None:
        self.is_open = True

    def available_views(self) -> list[dict[str, str]]:
        return views_for_exam_type(self.exam_type)

    def set_exam_type(self, exam_type: ExamType) -> None:
        # A view from the other exam type no longer applies
        if exam_type is not self.exam_type:
            self.view_type = ""
        self.exam_type = exam_type

    def submit(self, on_add: Callable[[DescriptionDraft], None]) -> DescriptionDraft:
        """
        Emit the entered description and reset the modal.

        Raises:
            DialogError: If the description is empty
        """
        description = self.description.strip()
        if not description:
            raise DialogError("Please enter an image description")
        if self.view_type and self.view_type not in {
            view["name"] for view in self.available_views()
        }:
            raise DialogError(f"Unknown view for {self.exam_type.value}: {self.view_type}")

        draft = DescriptionDraft(
            description=description,
            usage_type=self.usage_type,
            exam_type=self.exam_type,
            view_type=self.view_type or None,
        )
        on_add(draft)
        self.reset()
        self.is_open = False
        return draft

    def cancel(self) -> None:
        self.reset()
        self.is_open = False
