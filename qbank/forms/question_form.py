"""Question create/edit form.

The form holds one question draft together with its selected images,
placeholder image descriptions and candidate metadata/exam entries, and runs
the multi-step save against the backend.

A form without a backend id is in *create* mode. Once an id is known every
description operation goes straight to the backend; until then descriptions
live in memory under a ``TemporaryId``.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from qbank.client import descriptions as descriptions_api
from qbank.client import exams as exams_api
from qbank.client import images as images_api
from qbank.client import metadata as metadata_api
from qbank.client import questions as questions_api
from qbank.client.base import ApiClient, ApiError
from qbank.models.descriptions import DescriptionDraft, DescriptionEntry
from qbank.models.entries import LocalIdSequence, PersistedId
from qbank.models.metadata import SCALAR_FIELDS, TAG_FIELDS, ApplicableExam, Metadata
from qbank.models.questions import (
    CHOICE_LETTERS,
    Image,
    ImageSelection,
    Question,
    QuestionFields,
    UsageType,
)
from qbank.models.results import StepKind, StepResult, SubmitReport

logger = logging.getLogger(__name__)

IMAGE_USAGE_ERROR = (
    "Failed to update image placement. "
    "Changes will be saved when you submit the question."
)
EXAM_FIELDS = ("exam_name", "subtopics", "reasoning")


class FormError(ValueError):
    """Operation rejected by the form."""


class UnknownEntryError(FormError, LookupError):
    """No image, description or entry under the given key."""


class QuestionForm:
    def __init__(
        self,
        initial: Question | None = None,
        on_success: Callable[[Question], None] | None = None,
    ) -> None:
        self.initial = initial
        self.on_success = on_success
        self.mode = "edit" if initial is not None and initial.id is not None else "create"
        self.question_id: int | None = initial.id if initial is not None else None
        self.ids = LocalIdSequence()

        self.fields = self._initial_fields()
        self.selected_images = self._initial_images()
        self.descriptions: list[DescriptionEntry] = []
        self.metadata_entries: dict[str, Metadata] = {}
        self.exam_entries: dict[str, list[ApplicableExam]] = {}
        self.editing_metadata: dict[str, bool] = {}
        self.editing_exams: dict[str, bool] = {}

        self.error: str | None = None
        self.success: str | None = None
        self.is_submitting = False

    def _initial_fields(self) -> QuestionFields:
        if self.initial is None:
            return QuestionFields()
        return self.initial.to_fields()

    def _initial_images(self) -> list[ImageSelection]:
        if self.initial is None:
            return []
        return [
            ImageSelection(image=image, usage_type=image.usage_type or UsageType.QUESTION)
            for image in self.initial.images
        ]

    def load_existing(self, client: ApiClient) -> None:
        """Fetch saved descriptions, metadata and exams of an edited question.

        A question without metadata or exams is normal; only other
        failures are logged.
        """
        if self.question_id is None:
            return

        try:
            records = descriptions_api.list_for_question(client, self.question_id)
        except ApiError as exc:
            logger.error("Failed to load image descriptions for %s: %s", self.question_id, exc.detail)
        else:
            self.descriptions = [
                DescriptionEntry(entry_id=PersistedId(record.id), record=record)
                for record in records
                if record.id is not None
            ]

        try:
            metadata = metadata_api.get_metadata(client, self.question_id)
        except ApiError as exc:
            metadata = None
            if not exc.is_not_found:
                logger.error("Failed to load metadata for %s: %s", self.question_id, exc.detail)
        if metadata is not None:
            self.metadata_entries = {self.ids.entry_key("metadata"): metadata}

        try:
            exams = exams_api.get_exam_assignments(client, self.question_id)
        except ApiError as exc:
            exams = []
            if not exc.is_not_found:
                logger.error("Failed to load exams for %s: %s", self.question_id, exc.detail)
        if exams:
            self.exam_entries = {self.ids.entry_key("exams"): exams}

    # Draft fields

    def set_field(self, name: str, value: str) -> None:
        self.set_fields({name: value})

    def set_fields(self, values: dict[str, str]) -> None:
        """Apply several field edits, or none if any name is unknown."""
        unknown = [name for name in values if name not in QuestionFields.model_fields]
        if unknown:
            raise FormError(f"Unknown question field: {', '.join(unknown)}")
        for name, value in values.items():
            setattr(self.fields, name, value)
        self.error = None

    # Images

    def _selection(self, image_id: int) -> ImageSelection:
        for selection in self.selected_images:
            if selection.image.id == image_id:
                return selection
        raise UnknownEntryError(f"Image {image_id} is not selected")

    def add_image(self, image: Image, usage_type: UsageType = UsageType.QUESTION) -> bool:
        if any(selection.image.id == image.id for selection in self.selected_images):
            return False
        self.selected_images.append(ImageSelection(image=image, usage_type=usage_type))
        return True

    def remove_image(self, image_id: int) -> None:
        self._selection(image_id)
        self.selected_images = [
            selection for selection in self.selected_images if selection.image.id != image_id
        ]

    def move_image(self, client: ApiClient, image_id: int, usage_type: UsageType) -> bool:
        """Change where an image is shown.

        Local state changes first. For a saved question the change is then
        persisted; a failure sets the error banner and keeps the local
        change, which the next submit writes again.

        Returns:
            False if persisting failed
        """
        selection = self._selection(image_id)
        selection.usage_type = usage_type

        if self.question_id is None:
            return True
        try:
            images_api.update_image_usage(client, image_id, self.question_id, usage_type)
        except ApiError as exc:
            logger.error("Failed to update usage of image %s: %s", image_id, exc.detail)
            self.error = IMAGE_USAGE_ERROR
            return False
        return True

    def toggle_image_usage(self, client: ApiClient, image_id: int) -> bool:
        selection = self._selection(image_id)
        return self.move_image(client, image_id, selection.usage_type.toggled())

    # Image descriptions

    def _description(self, key: str) -> DescriptionEntry:
        for entry in self.descriptions:
            if entry.key == key:
                return entry
        raise UnknownEntryError(f"Image description {key} not found")

    def add_description(self, client: ApiClient, draft: DescriptionDraft) -> DescriptionEntry | None:
        if self.question_id is None:
            entry = DescriptionEntry(entry_id=self.ids.temporary(), record=draft.to_record())
            self.descriptions.append(entry)
            return entry

        try:
            saved = descriptions_api.create_description(client, draft.to_record(self.question_id))
        except ApiError as exc:
            logger.error("Failed to save image description: %s", exc.detail)
            self.error = "Failed to save image description"
            return None
        entry = DescriptionEntry(entry_id=PersistedId(saved.id), record=saved)
        self.descriptions.append(entry)
        return entry

    def change_description(self, client: ApiClient, key: str, description: str) -> None:
        entry = self._description(key)
        self._update_description(client, entry, description, entry.record.usage_type,
                                 "Failed to update image description")

    def change_description_usage(self, client: ApiClient, key: str, usage_type: UsageType) -> None:
        entry = self._description(key)
        self._update_description(client, entry, entry.record.description, usage_type,
                                 "Failed to update image description usage type")

    def _update_description(
        self,
        client: ApiClient,
        entry: DescriptionEntry,
        description: str,
        usage_type: UsageType,
        failure: str,
    ) -> None:
        if entry.is_temporary:
            entry.record = entry.record.model_copy(
                update={"description": description, "usage_type": usage_type}
            )
            return
        try:
            entry.record = descriptions_api.update_description(
                client, entry.entry_id.server_id, description, usage_type
            )
        except ApiError as exc:
            logger.error("%s %s: %s", failure, entry.key, exc.detail)
            self.error = failure

    def remove_description(self, client: ApiClient, key: str) -> None:
        entry = self._description(key)
        if not entry.is_temporary:
            try:
                descriptions_api.delete_description(client, entry.entry_id.server_id)
            except ApiError as exc:
                logger.error("Failed to remove image description %s: %s", key, exc.detail)
                self.error = "Failed to remove image description"
                return
        self.descriptions = [item for item in self.descriptions if item.key != key]

    # Metadata entries

    def get_metadata_entry(self, key: str) -> Metadata:
        if key not in self.metadata_entries:
            raise UnknownEntryError(f"Metadata entry {key} not found")
        return self.metadata_entries[key]

    def add_metadata_entry(self, metadata: Metadata | None = None, editing: bool = True) -> str:
        key = self.ids.entry_key("metadata")
        self.metadata_entries[key] = metadata if metadata is not None else Metadata()
        self.editing_metadata[key] = editing
        return key

    def accept_generated_metadata(self, metadata: Metadata) -> str:
        return self.add_metadata_entry(metadata, editing=False)

    def remove_metadata_entry(self, key: str) -> None:
        self.get_metadata_entry(key)
        del self.metadata_entries[key]
        self.editing_metadata.pop(key, None)

    def replace_metadata_entry(self, key: str, metadata: Metadata) -> None:
        self.get_metadata_entry(key)
        self.metadata_entries[key] = metadata

    def update_metadata_field(self, key: str, field: str, value: object) -> None:
        current = self.get_metadata_entry(key)
        if field not in SCALAR_FIELDS and field not in TAG_FIELDS:
            raise FormError(f"Unknown metadata field: {field}")
        if field == "view":
            value = value or None
        self.metadata_entries[key] = Metadata.model_validate(
            {**current.model_dump(), field: value}
        )

    def toggle_metadata_edit(self, key: str) -> bool:
        self.get_metadata_entry(key)
        self.editing_metadata[key] = not self.editing_metadata.get(key, False)
        return self.editing_metadata[key]

    # Exam entries

    def get_exam_entry(self, key: str) -> list[ApplicableExam]:
        if key not in self.exam_entries:
            raise UnknownEntryError(f"Exam entry {key} not found")
        return self.exam_entries[key]

    def add_exam_entry(self, exams: list[ApplicableExam] | None = None, editing: bool = True) -> str:
        key = self.ids.entry_key("exams")
        self.exam_entries[key] = exams if exams is not None else [ApplicableExam()]
        self.editing_exams[key] = editing
        return key

    def accept_generated_exams(self, exams: list[ApplicableExam]) -> str:
        return self.add_exam_entry(exams, editing=False)

    def remove_exam_entry(self, key: str) -> None:
        self.get_exam_entry(key)
        del self.exam_entries[key]
        self.editing_exams.pop(key, None)

    def replace_exam_entry(self, key: str, exams: list[ApplicableExam]) -> None:
        self.get_exam_entry(key)
        self.exam_entries[key] = exams

    def add_exam_to_entry(self, key: str) -> None:
        self.get_exam_entry(key).append(ApplicableExam())

    def remove_exam_from_entry(self, key: str, index: int) -> None:
        exams = self.get_exam_entry(key)
        if not 0 <= index < len(exams):
            raise UnknownEntryError(f"Exam entry {key} has no exam {index}")
        del exams[index]

    def update_exam_field(self, key: str, index: int, field: str, value: object) -> None:
        exams = self.get_exam_entry(key)
        if not 0 <= index < len(exams):
            raise UnknownEntryError(f"Exam entry {key} has no exam {index}")
        if field not in EXAM_FIELDS:
            raise FormError(f"Unknown exam field: {field}")
        exams[index] = ApplicableExam.model_validate(
            {**exams[index].model_dump(), field: value}
        )

    def toggle_exam_edit(self, key: str) -> bool:
        self.get_exam_entry(key)
        self.editing_exams[key] = not self.editing_exams.get(key, False)
        return self.editing_exams[key]

    # Submit

    def validate(self) -> str | None:
        """Return the first validation message, or None when the draft is valid."""
        if not self.fields.question.strip():
            return "Question text is required"
        answer = self.fields.correct_answer
        if not answer:
            return "Please select which answer choice is correct by clicking a radio button"
        if answer not in CHOICE_LETTERS:
            return "Correct answer must be A, B, C, D, E, F, or G"
        if not self.fields.choice(answer).strip():
            return f"Answer choice {answer} is empty but is marked as correct"
        return None

    def submit(self, client: ApiClient) -> SubmitReport:
        """
        Save the question and everything attached to it.

        Question, image and refresh failures abort with an error banner;
        description, metadata and exam failures are reported as warnings and
        the remaining saves still run. Nothing already saved is rolled back.
        """
        report = SubmitReport(mode=self.mode)
        self.success = None

        message = self.validate()
        if message is not None:
            self.error = message
            report.validation_error = message
            return report

        self.is_submitting = True
        self.error = None
        try:
            question = self._save_question(client, report)
            if question is None:
                return self._abort(report)
            report.question = question

            self._persist_temporary_descriptions(client, report)

            associated = self._associate_images(client, report)
            if associated is None:
                return self._abort(report)
            if associated:
                try:
                    report.question = questions_api.get_question(client, self.question_id)
                except ApiError as exc:
                    report.steps.append(StepResult(kind=StepKind.REFRESH, ok=False, error=exc.detail))
                    return self._abort(report)
                report.steps.append(StepResult(kind=StepKind.REFRESH))

            self._save_metadata(client, report)
            self._save_exams(client, report)
        finally:
            self.is_submitting = False

        self.success = f"Question {'updated' if self.mode == 'edit' else 'created'} successfully!"
        warnings = report.warnings
        self.error = "\n".join(warnings) if warnings else None
        if self.mode == "create":
            self._clear()
        if self.on_success is not None:
            self.on_success(report.question)
        return report

    def _abort(self, report: SubmitReport) -> SubmitReport:
        self.error = f"Failed to {self.mode} question. Please try again."
        return report

    def _save_question(self, client: ApiClient, report: SubmitReport) -> Question | None:
        try:
            if self.question_id is None:
                question = questions_api.create_question(client, self.fields)
                # A retry after a later failure must update, not create again
                self.question_id = question.id
                logger.info("Created question %s", question.id)
            else:
                question = questions_api.update_question(client, self.question_id, self.fields)
                logger.info("Updated question %s", self.question_id)
        except ApiError as exc:
            logger.error("Failed to %s question: %s", self.mode, exc.detail)
            report.steps.append(StepResult(kind=StepKind.QUESTION, ok=False, error=exc.detail))
            return None
        report.steps.append(StepResult(kind=StepKind.QUESTION, target=str(question.id or "")))
        return question

    def _persist_temporary_descriptions(self, client: ApiClient, report: SubmitReport) -> None:
        for index, entry in enumerate(self.descriptions):
            if not entry.is_temporary:
                continue
            record = entry.record.model_copy(update={"question_id": self.question_id})
            try:
                saved = descriptions_api.create_description(client, record)
            except ApiError as exc:
                logger.error("Failed to save image description %s: %s", entry.key, exc.detail)
                report.steps.append(
                    StepResult(kind=StepKind.DESCRIPTION, target=entry.key, ok=False, error=exc.detail)
                )
                continue
            self.descriptions[index] = DescriptionEntry(entry_id=PersistedId(saved.id), record=saved)
            report.steps.append(StepResult(kind=StepKind.DESCRIPTION, target=str(saved.id)))

    def _associate_images(self, client: ApiClient, report: SubmitReport) -> bool | None:
        """Associate images in display order. None on failure, else whether any were sent."""
        associated = False
        for position, selection in enumerate(self.selected_images, start=1):
            image_id = selection.image.id
            if image_id is None:
                continue
            try:
                images_api.associate_with_question(
                    client, image_id, self.question_id, position, selection.usage_type
                )
            except ApiError as exc:
                logger.error("Failed to associate image %s: %s", image_id, exc.detail)
                report.steps.append(
                    StepResult(kind=StepKind.IMAGE, target=str(image_id), ok=False, error=exc.detail)
                )
                return None
            report.steps.append(StepResult(kind=StepKind.IMAGE, target=str(image_id)))
            associated = True
        return associated

    def _save_metadata(self, client: ApiClient, report: SubmitReport) -> None:
        for key, metadata in self.metadata_entries.items():
            try:
                metadata_api.upsert_metadata(client, self.question_id, metadata)
            except ApiError as exc:
                logger.error("Failed to save metadata %s: %s", key, exc.detail)
                report.steps.append(
                    StepResult(kind=StepKind.METADATA, target=key, ok=False, error=exc.detail)
                )
                continue
            report.steps.append(StepResult(kind=StepKind.METADATA, target=key))

    def _save_exams(self, client: ApiClient, report: SubmitReport) -> None:
        for key, exams in self.exam_entries.items():
            try:
                exams_api.save_exam_assignments(client, self.question_id, exams)
            except ApiError as exc:
                logger.error("Failed to save exam assignments %s: %s", key, exc.detail)
                report.steps.append(
                    StepResult(kind=StepKind.EXAMS, target=key, ok=False, error=exc.detail)
                )
                continue
            report.steps.append(StepResult(kind=StepKind.EXAMS, target=key))

    # Reset

    def reset(self, confirm: Callable[[], bool]) -> bool:
        """Restore the initial fields and image selection once confirmed."""
        if not confirm():
            return False
        self.fields = self._initial_fields()
        self.selected_images = self._initial_images()
        self.error = None
        self.success = None
        return True

    def _clear(self) -> None:
        self.question_id = None
        self.fields = QuestionFields()
        self.selected_images = []
        self.descriptions = []
        self.metadata_entries = {}
        self.exam_entries = {}
        self.editing_metadata = {}
        self.editing_exams = {}

    def state(self) -> dict[str, object]:
        """JSON-ready view of the form."""
        return {
            "mode": self.mode,
            "question_id": self.question_id,
            "fields": self.fields.model_dump(),
            "selected_images": [
                selection.model_dump(mode="json") for selection in list(self.selected_images)
            ],
            "descriptions": [
                {
                    "key": entry.key,
                    "temporary": entry.is_temporary,
                    **entry.record.model_dump(mode="json", exclude={"id"}),
                }
                for entry in list(self.descriptions)
            ],
            "metadata_entries": [
                {
                    "key": key,
                    "editing": self.editing_metadata.get(key, False),
                    "metadata": metadata.to_payload(),
                }
                for key, metadata in list(self.metadata_entries.items())
            ],
            "exam_entries": [
                {
                    "key": key,
                    "editing": self.editing_exams.get(key, False),
                    "exams": [exam.to_payload() for exam in exams],
                }
                for key, exams in list(self.exam_entries.items())
            ],
            "error": self.error,
            "success": self.success,
            "is_submitting": self.is_submitting,
        }
