"""Question editor page: form, dialogs and the save sequence."""
import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile, status

from qbank.client import images as images_api
from qbank.client import questions as questions_api
from qbank.client.base import ApiClient
from qbank.dependencies.auth import get_api_client, get_editor, get_editors, require_user
from qbank.dialogs.base import GenerationDialog
from qbank.forms.question_form import QuestionForm
from qbank.models.auth import MessageResponse
from qbank.models.descriptions import ExamType
from qbank.models.editor import (
    DescriptionRequest,
    DescriptionUpdate,
    FieldValue,
    ModalOpenRequest,
    OpenEditorRequest,
    ResetRequest,
    SelectImageRequest,
    SubtopicRequest,
    SubtopicToggle,
    TagRequest,
    UsageRequest,
)
from qbank.models.questions import ImageUpload, LicenseType, Question, UsageType
from qbank.routes.errors import translate_errors
from qbank.services.editor_sessions import EditorRegistry, EditorSession
from qbank.services.image_service import inspect_upload, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/editors",
    tags=["editor"],
    dependencies=[Depends(require_user)],
)

Editor = Annotated[EditorSession, Depends(get_editor)]
Client = Annotated[ApiClient, Depends(get_api_client)]


def _generation_state(dialog: GenerationDialog, result: object) -> dict[str, object]:
    return {
        "is_open": dialog.is_open,
        "is_generating": dialog.is_generating,
        "progress": dialog.progress,
        "status_text": dialog.status_text,
        "history": [
            {"progress": progress, "status_text": text}
            for progress, text in list(dialog.history)
        ],
        "error": dialog.error,
        "result": result,
    }


def _editor_state(session: EditorSession) -> dict[str, object]:
    metadata_dialog = session.metadata_dialog
    exam_dialog = session.exam_dialog
    description_modal = session.description_modal
    return {
        "session_id": session.id,
        **session.form.state(),
        "redirect": session.redirect,
        "dialogs": {
            "metadata_generation": _generation_state(
                metadata_dialog,
                metadata_dialog.editable.to_payload() if metadata_dialog.editable else None,
            ),
            "exam_generation": _generation_state(
                exam_dialog,
                [exam.to_payload() for exam in exam_dialog.editable]
                if exam_dialog.editable is not None
                else None,
            ),
            "edit_metadata": {
                "is_open": session.edit_metadata_modal.is_open,
                "key": session.editing_metadata_key,
                "draft": session.edit_metadata_modal.draft.to_payload(),
            },
            "manual_exams": {
                "is_open": session.manual_exam_modal.is_open,
                "key": session.editing_exams_key,
                "selected": [
                    exam.to_payload() for exam in list(session.manual_exam_modal.selected)
                ],
            },
            "image_description": {
                "is_open": description_modal.is_open,
                "description": description_modal.description,
                "usage_type": description_modal.usage_type.value,
                "exam_type": description_modal.exam_type.value,
                "view_type": description_modal.view_type,
            },
        },
    }


def _redirect_after_save(mode: str, question: Question) -> str:
    if mode == "create":
        return "/create-question"
    if question.id is not None:
        return f"/question/{question.id}"
    return "/"


# Editor lifecycle


@router.post("", status_code=status.HTTP_201_CREATED)
def open_editor(
    client: Client,
    editors: Annotated[EditorRegistry, Depends(get_editors)],
    data: OpenEditorRequest | None = None,
) -> dict[str, object]:
    """Open a blank editor, or load an existing question into one."""
    question = None
    with translate_errors():
        if data is not None and data.question_id is not None:
            question = questions_api.get_question(client, data.question_id)

    form = QuestionForm(question)
    if question is not None:
        form.load_existing(client)

    session = editors.open(form)

    def remember_redirect(saved: Question) -> None:
        session.redirect = _redirect_after_save(form.mode, saved)

    form.on_success = remember_redirect
    return _editor_state(session)


@router.get("/{session_id}")
def get_editor_state(session: Editor) -> dict[str, object]:
    """Current editor state.

    Does not wait for a running save or generation, so progress and
    ``is_submitting`` can be polled while the backend call is in flight.
    """
    return _editor_state(session)


@router.delete("/{session_id}", response_model=MessageResponse)
def close_editor(
    session_id: str,
    editors: Annotated[EditorRegistry, Depends(get_editors)],
) -> MessageResponse:
    if not editors.close(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Editor session not found")
    return MessageResponse(message="Editor closed")


@router.patch("/{session_id}/fields")
def update_fields(session: Editor, fields: dict[str, str] = Body(...)) -> dict[str, object]:
    """Change draft fields; nothing is sent to the backend.

    Unknown field names reject the whole change with 422.
    """
    with session.lock, translate_errors():
        session.form.set_fields(fields)
        return _editor_state(session)


@router.post("/{session_id}/submit")
def submit(session: Editor, client: Client) -> dict[str, object]:
    """Run the save sequence.

    Validation failures give 422. A failed question, image or refresh step
    gives 502 with the per-step report; partial failures are warnings.
    """
    with session.lock:
        session.redirect = None
        report = session.form.submit(client)
        if report.validation_error is not None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=report.validation_error,
            )
        if not report.succeeded:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={
                    "error": session.form.error,
                    "steps": [step.model_dump(mode="json") for step in report.steps],
                },
            )
        return {
            "report": report.model_dump(mode="json"),
            "succeeded": report.succeeded,
            "warnings": report.warnings,
            "editor": _editor_state(session),
        }


@router.post("/{session_id}/reset")
def reset(session: Editor, data: ResetRequest) -> dict[str, object]:
    """Restore the initial draft; needs ``confirm`` to be true."""
    with session.lock:
        session.form.reset(lambda: data.confirm)
        return _editor_state(session)


# Images


@router.post("/{session_id}/images")
def select_image(session: Editor, client: Client, data: SelectImageRequest) -> dict[str, object]:
    """Add an image from the library to the question."""
    with session.lock, translate_errors():
        image = images_api.get_image(client, data.image_id)
        session.form.add_image(image, data.usage_type)
        return _editor_state(session)


@router.post("/{session_id}/images/upload")
def upload_image(
    session: Editor,
    client: Client,
    file: UploadFile = File(...),
    description: str | None = Form(None),
    tags: str | None = Form(None),
    license: LicenseType = Form(LicenseType.USER_CONTRIBUTED),
    license_details: str | None = Form(None),
    usage_type: UsageType = Form(UsageType.QUESTION),
) -> dict[str, object]:
    """Upload a new image or cine clip and select it."""
    content = file.file.read()
    validate_upload(file.filename, len(content))
    info = inspect_upload(file.filename, content)

    metadata = ImageUpload(
        description=description,
        tags=[tag.strip() for tag in (tags or "").split(",") if tag.strip()],
        image_type=info.image_type,
        license=license,
        license_details=license_details,
        usage_type=usage_type,
    )
    with session.lock, translate_errors():
        image = images_api.upload_image(
            client, metadata, filename=file.filename, content=content, mime_type=info.mime_type
        )
        logger.info("Uploaded %s as image %s", file.filename, image.id)
        session.form.add_image(image, usage_type)
        return _editor_state(session)


@router.delete("/{session_id}/images/{image_id}")
def remove_image(session: Editor, image_id: int) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.remove_image(image_id)
        return _editor_state(session)


@router.put("/{session_id}/images/{image_id}/usage")
def move_image(session: Editor, client: Client, image_id: int, data: UsageRequest) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.move_image(client, image_id, data.usage_type)
        return _editor_state(session)


@router.post("/{session_id}/images/{image_id}/toggle-usage")
def toggle_image_usage(session: Editor, client: Client, image_id: int) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.toggle_image_usage(client, image_id)
        return _editor_state(session)


# Image descriptions


@router.get("/{session_id}/descriptions/views")
def description_views(session: Editor, exam_type: ExamType = ExamType.TEE) -> list[dict[str, str]]:
    """Echo views offered by the description modal for an exam type."""
    with session.lock:
        session.description_modal.set_exam_type(exam_type)
        return session.description_modal.available_views()


@router.post("/{session_id}/descriptions")
def add_description(session: Editor, client: Client, data: DescriptionRequest) -> dict[str, object]:
    """Submit the image-description modal."""
    modal = session.description_modal
    with session.lock, translate_errors():
        modal.open()
        modal.set_exam_type(data.exam_type)
        modal.description = data.description
        modal.usage_type = data.usage_type
        modal.view_type = data.view_type
        modal.submit(lambda draft: session.form.add_description(client, draft))
        return _editor_state(session)


@router.post("/{session_id}/descriptions/cancel")
def cancel_description(session: Editor) -> dict[str, object]:
    """Discard what was entered in the image-description modal."""
    with session.lock:
        session.description_modal.cancel()
        return _editor_state(session)


@router.patch("/{session_id}/descriptions/{key}")
def update_description(
    session: Editor, client: Client, key: str, data: DescriptionUpdate
) -> dict[str, object]:
    with session.lock, translate_errors():
        if data.description is not None:
            session.form.change_description(client, key, data.description)
        if data.usage_type is not None:
            session.form.change_description_usage(client, key, data.usage_type)
        return _editor_state(session)


@router.delete("/{session_id}/descriptions/{key}")
def remove_description(session: Editor, client: Client, key: str) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.remove_description(client, key)
        return _editor_state(session)


# Metadata entries


@router.post("/{session_id}/metadata")
def add_metadata_entry(session: Editor) -> dict[str, object]:
    """Add an empty metadata entry in edit mode."""
    with session.lock:
        session.form.add_metadata_entry()
        return _editor_state(session)


@router.patch("/{session_id}/metadata/{key}")
def update_metadata_field(session: Editor, key: str, data: FieldValue) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.update_metadata_field(key, data.field, data.value)
        return _editor_state(session)


@router.post("/{session_id}/metadata/{key}/toggle-edit")
def toggle_metadata_edit(session: Editor, key: str) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.toggle_metadata_edit(key)
        return _editor_state(session)


@router.delete("/{session_id}/metadata/{key}")
def remove_metadata_entry(session: Editor, key: str) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.remove_metadata_entry(key)
        return _editor_state(session)


# Exam entries


@router.post("/{session_id}/exams")
def add_exam_entry(session: Editor) -> dict[str, object]:
    """Add an exam entry holding one blank exam, in edit mode."""
    with session.lock:
        session.form.add_exam_entry()
        return _editor_state(session)


@router.post("/{session_id}/exams/{key}/items")
def add_exam_to_entry(session: Editor, key: str) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.add_exam_to_entry(key)
        return _editor_state(session)


@router.patch("/{session_id}/exams/{key}/items/{index}")
def update_exam_field(session: Editor, key: str, index: int, data: FieldValue) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.update_exam_field(key, index, data.field, data.value)
        return _editor_state(session)


@router.delete("/{session_id}/exams/{key}/items/{index}")
def remove_exam_from_entry(session: Editor, key: str, index: int) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.remove_exam_from_entry(key, index)
        return _editor_state(session)


@router.post("/{session_id}/exams/{key}/toggle-edit")
def toggle_exam_edit(session: Editor, key: str) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.toggle_exam_edit(key)
        return _editor_state(session)


@router.delete("/{session_id}/exams/{key}")
def remove_exam_entry(session: Editor, key: str) -> dict[str, object]:
    with session.lock, translate_errors():
        session.form.remove_exam_entry(key)
        return _editor_state(session)


# Edit-metadata modal


@router.post("/{session_id}/metadata-modal")
def open_metadata_modal(
    session: Editor,
    data: ModalOpenRequest | None = None,
) -> dict[str, object]:
    """Open the metadata editor on an entry, or empty to add one."""
    data = data or ModalOpenRequest()
    with session.lock, translate_errors():
        metadata = session.form.get_metadata_entry(data.key) if data.key else None
        session.editing_metadata_key = data.key
        session.edit_metadata_modal.open(metadata)
        return _editor_state(session)


@router.patch("/{session_id}/metadata-modal")
def set_metadata_modal_field(session: Editor, data: FieldValue) -> dict[str, object]:
    with session.lock, translate_errors():
        session.edit_metadata_modal.set_field(data.field, data.value)
        return _editor_state(session)


@router.post("/{session_id}/metadata-modal/tags")
def add_metadata_modal_tag(session: Editor, data: TagRequest) -> dict[str, object]:
    with session.lock, translate_errors():
        session.edit_metadata_modal.add_tag(data.field, data.value)
        return _editor_state(session)


@router.delete("/{session_id}/metadata-modal/tags/{field}/{index}")
def remove_metadata_modal_tag(session: Editor, field: str, index: int) -> dict[str, object]:
    with session.lock, translate_errors():
        session.edit_metadata_modal.remove_tag(field, index)
        return _editor_state(session)


@router.post("/{session_id}/metadata-modal/save")
def save_metadata_modal(session: Editor) -> dict[str, object]:
    with session.lock, translate_errors():
        key = session.editing_metadata_key
        if key is None:
            session.edit_metadata_modal.save(
                lambda metadata: session.form.add_metadata_entry(metadata, editing=False)
            )
        else:
            session.edit_metadata_modal.save(
                lambda metadata: session.form.replace_metadata_entry(key, metadata)
            )
        session.editing_metadata_key = None
        return _editor_state(session)


@router.post("/{session_id}/metadata-modal/close")
def close_metadata_modal(session: Editor) -> dict[str, object]:
    with session.lock:
        session.edit_metadata_modal.close()
        session.editing_metadata_key = None
        return _editor_state(session)


# Manual exam assignment modal


@router.post("/{session_id}/exam-modal")
def open_exam_modal(
    session: Editor,
    data: ModalOpenRequest | None = None,
) -> dict[str, object]:
    """Open the exam picker on an entry, or empty to add one."""
    data = data or ModalOpenRequest()
    with session.lock, translate_errors():
        exams = session.form.get_exam_entry(data.key) if data.key else None
        session.editing_exams_key = data.key
        session.manual_exam_modal.open(exams)
        return _editor_state(session)


@router.get("/{session_id}/exam-modal/topics")
def exam_modal_topics(session: Editor) -> list[dict[str, object]]:
    """Syllabus catalogue with the subtopics picked so far marked as selected."""
    modal = session.manual_exam_modal
    return [
        {
            "exam_name": exam_name,
            "sections": [
                {
                    "heading": heading,
                    "subtopics": [
                        {
                            "section": section,
                            "name": name,
                            "selected": modal.is_subtopic_selected(exam_name, name),
                        }
                        for section, name in subtopics.items()
                    ],
                }
                for heading, subtopics in sections.items()
            ],
        }
        for exam_name, sections in modal.available_topics().items()
    ]


@router.post("/{session_id}/exam-modal/toggle")
def toggle_exam_modal_subtopic(session: Editor, data: SubtopicToggle) -> dict[str, object]:
    with session.lock, translate_errors():
        session.manual_exam_modal.toggle_subtopic(data.exam_name, data.name, data.section)
        return _editor_state(session)


@router.post("/{session_id}/exam-modal/save")
def save_exam_modal(session: Editor) -> dict[str, object]:
    with session.lock, translate_errors():
        key = session.editing_exams_key
        if key is None:
            session.manual_exam_modal.save(
                lambda exams: session.form.add_exam_entry(exams, editing=False)
            )
        else:
            session.manual_exam_modal.save(
                lambda exams: session.form.replace_exam_entry(key, exams)
            )
        session.editing_exams_key = None
        return _editor_state(session)


@router.post("/{session_id}/exam-modal/close")
def close_exam_modal(session: Editor) -> dict[str, object]:
    with session.lock:
        session.manual_exam_modal.close()
        session.editing_exams_key = None
        return _editor_state(session)


# Metadata generation dialog


@router.post("/{session_id}/generate/metadata")
def open_metadata_generation(session: Editor, client: Client) -> dict[str, object]:
    """Open the dialog; generates once unless a result is already held."""
    with session.lock, translate_errors():
        form = session.form
        session.metadata_dialog.open(client, form.fields, len(form.selected_images))
        return _editor_state(session)


@router.post("/{session_id}/generate/metadata/tags")
def add_generated_metadata_tag(session: Editor, data: TagRequest) -> dict[str, object]:
    with session.lock, translate_errors():
        session.metadata_dialog.add_tag(data.field, data.value)
        return _editor_state(session)


@router.delete("/{session_id}/generate/metadata/tags/{field}/{index}")
def remove_generated_metadata_tag(session: Editor, field: str, index: int) -> dict[str, object]:
    with session.lock, translate_errors():
        session.metadata_dialog.remove_tag(field, index)
        return _editor_state(session)


@router.post("/{session_id}/generate/metadata/accept")
def accept_generated_metadata(session: Editor) -> dict[str, object]:
    with session.lock:
        session.metadata_dialog.accept(session.form.accept_generated_metadata)
        return _editor_state(session)


@router.post("/{session_id}/generate/metadata/close")
def close_metadata_generation(session: Editor) -> dict[str, object]:
    with session.lock:
        session.metadata_dialog.close()
        return _editor_state(session)


# Exam generation dialog


@router.post("/{session_id}/generate/exams")
def open_exam_generation(session: Editor, client: Client) -> dict[str, object]:
    """Open the dialog; generates once unless a result is already held."""
    with session.lock, translate_errors():
        form = session.form
        session.exam_dialog.open(client, form.fields, len(form.selected_images))
        return _editor_state(session)


@router.post("/{session_id}/generate/exams/{exam_name}/subtopics")
def add_generated_subtopic(
    session: Editor, exam_name: str, data: SubtopicRequest
) -> dict[str, object]:
    with session.lock, translate_errors():
        session.exam_dialog.add_subtopic(exam_name, data.name, data.section)
        return _editor_state(session)


@router.delete("/{session_id}/generate/exams/{exam_name}/subtopics/{index}")
def remove_generated_subtopic(session: Editor, exam_name: str, index: int) -> dict[str, object]:
    with session.lock, translate_errors():
        session.exam_dialog.remove_subtopic(exam_name, index)
        return _editor_state(session)


@router.delete("/{session_id}/generate/exams/{exam_name}")
def remove_generated_exam(session: Editor, exam_name: str) -> dict[str, object]:
    with session.lock, translate_errors():
        session.exam_dialog.remove_exam(exam_name)
        return _editor_state(session)


@router.post("/{session_id}/generate/exams/accept")
def accept_generated_exams(session: Editor) -> dict[str, object]:
    with session.lock:
        session.exam_dialog.accept(session.form.accept_generated_exams)
        return _editor_state(session)


@router.post("/{session_id}/generate/exams/close")
def close_exam_generation(session: Editor) -> dict[str, object]:
    with session.lock:
        session.exam_dialog.close()
        return _editor_state(session)
