"""AI applicable-exam assignment dialog."""
from qbank.client import exams as exams_api
from qbank.client.base import ApiClient
from qbank.dialogs.base import DialogError, GenerationDialog, remove_at
from qbank.models.metadata import ApplicableExam, Subtopic
from qbank.models.questions import QuestionFields


class ExamGenerationDialog(GenerationDialog[list[ApplicableExam]]):
    """Generates exam assignments; subtopics and whole exams can be dropped."""

    error_message = "Error generating exam assignments. Please try again."
    complete_message = "Exam assignment complete!"

    def remove_subtopic(self, exam_name: str, index: int) -> None:
        remove_at(self._exam(exam_name).subtopics, index)

    def add_subtopic(self, exam_name: str, name: str, section: str = "") -> None:
        name = name.strip()
        if not name:
            raise DialogError("Subtopic name is required")
        exam = self._exam(exam_name)
        if not exam.has_subtopic(name):
            exam.subtopics.append(Subtopic(name=name, section=section.strip()))

    def remove_exam(self, exam_name: str) -> None:
        self._exam(exam_name)
        self.editable = [exam for exam in self.editable if exam.exam_name != exam_name]

    def _exam(self, exam_name: str) -> ApplicableExam:
        if self.editable is None:
            raise DialogError("No generated exams to edit")
        for exam in self.editable:
            if exam.exam_name == exam_name:
                return exam
        raise DialogError(f"Exam not found: {exam_name}")

    def _lead_steps(self, image_count: int) -> list[tuple[int, str]]:
        return [
            (30, "Processing question with AI..."),
            (50, "Matching against exam syllabi..."),
            (70, "Assigning exam topics..."),
        ]

    def _call(
        self, client: ApiClient, fields: QuestionFields, image_count: int
    ) -> list[ApplicableExam]:
        return exams_api.assign_exams(client, fields, image_count)

    def _copy(self, value: list[ApplicableExam]) -> list[ApplicableExam]:
        return [exam.model_copy(deep=True) for exam in value]
