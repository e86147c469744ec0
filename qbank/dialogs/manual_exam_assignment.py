"""Manual exam/subtopic picker over the syllabus catalogue."""
from collections.abc import Callable

from qbank.dialogs.base import DialogError
from qbank.models.metadata import ApplicableExam, Subtopic
from qbank.services.catalog import EXAM_TOPICS, find_subtopic

MANUAL_REASONING = "Manually assigned"


class ManualExamAssignmentModal:
    """
    Toggle syllabus subtopics on and off per exam.

    An exam disappears once its last subtopic is removed; an exam added here
    is marked as manually assigned.
    """

    def __init__(self) -> None:
        self.is_open = False
        self.selected: list[ApplicableExam] = []

    @staticmethod
    def available_topics() -> dict[str, dict[str, dict[str, str]]]:
        return EXAM_TOPICS

    def open(self, initial: list[ApplicableExam] | None = None) -> None:
        self.selected = [exam.model_copy(deep=True) for exam in initial or []]
        self.is_open = True

    def toggle_subtopic(self, exam_name: str, name: str, section: str) -> bool:
        """Select or deselect a subtopic. Returns whether it is now selected."""
        if find_subtopic(exam_name, section) != name:
            raise DialogError(f"Unknown subtopic {section} {name!r} for {exam_name}")

        for index, exam in enumerate(self.selected):
            if exam.exam_name != exam_name:
                continue
            if exam.has_subtopic(name):
                exam.subtopics = [st for st in exam.subtopics if st.name != name]
                if not exam.subtopics:
                    del self.selected[index]
                return False
            exam.subtopics.append(Subtopic(name=name, section=section))
            return True

        self.selected.append(
            ApplicableExam(
                exam_name=exam_name,
                subtopics=[Subtopic(name=name, section=section)],
                reasoning=MANUAL_REASONING,
            )
        )
        return True

    def is_subtopic_selected(self, exam_name: str, name: str) -> bool:
        return any(
            exam.exam_name == exam_name and exam.has_subtopic(name)
            for exam in self.selected
        )

    def save(self, on_save: Callable[[list[ApplicableExam]], None]) -> list[ApplicableExam]:
        saved = [exam.model_copy(deep=True) for exam in self.selected]
        on_save(saved)
        self.close()
        return saved

    def close(self) -> None:
        self.is_open = False
