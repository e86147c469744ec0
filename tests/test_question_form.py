import pytest

from qbank.client.base import ApiClient
from qbank.forms.question_form import (
    IMAGE_USAGE_ERROR,
    FormError,
    QuestionForm,
    UnknownEntryError,
)
from qbank.models.descriptions import DescriptionDraft, ExamType, Modality
from qbank.models.metadata import ApplicableExam, Metadata, Subtopic
from qbank.models.questions import Image, Question, UsageType
from qbank.models.results import StepKind

from tests.conftest import FakeBackend


def _fill(form: QuestionForm, **overrides: str) -> None:
    values = {
        "question": "What is the most common cause of MR?",
        "choice_a": "Degenerative mitral valve disease",
        "choice_b": "Rheumatic heart disease",
        "correct_answer": "A",
        "explanation": "Primary degenerative disease dominates in adults.",
    }
    values.update(overrides)
    for name, value in values.items():
        form.set_field(name, value)


def _image(backend: FakeBackend, **values) -> Image:
    return Image.model_validate(backend.add_image(**values))


def _saved_question(backend: FakeBackend, api: ApiClient) -> Question:
    status, payload = backend.create_question(
        body={
            "question": "Which view best shows the LAA?",
            "choice_a": "ME LAA view",
            "choice_b": "TG mid SAX",
            "correct_answer": "A",
            "explanation": "",
            "source_folder": "",
        }
    )
    assert status == 201
    return Question.model_validate(payload)


def test_submit_creates_question(backend: FakeBackend, api: ApiClient) -> None:
    saved = []
    form = QuestionForm(on_success=saved.append)
    _fill(form)

    report = form.submit(api)

    assert report.succeeded
    assert report.question is not None
    assert report.question.correct_answer == "A"
    assert report.question.question == "What is the most common cause of MR?"
    assert saved == [report.question]
    assert form.success == "Question created successfully!"
    assert form.error is None


def test_submit_does_not_send_question_number_on_create(backend: FakeBackend, api: ApiClient) -> None:
    form = QuestionForm()
    _fill(form, question_number="42")

    form.submit(api)

    _, path, body = backend.calls[0]
    assert path == "/questions"
    assert "question_number" not in body


def test_submit_without_correct_answer_makes_no_call(backend: FakeBackend, api: ApiClient) -> None:
    form = QuestionForm()
    _fill(form, correct_answer="")

    report = form.submit(api)

    assert not report.succeeded
    assert report.validation_error == (
        "Please select which answer choice is correct by clicking a radio button"
    )
    assert form.error == report.validation_error
    assert backend.calls == []


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"question": "   "}, "Question text is required"),
        ({"correct_answer": "H"}, "Correct answer must be A, B, C, D, E, F, or G"),
        ({"correct_answer": "C"}, "Answer choice C is empty but is marked as correct"),
    ],
)
def test_validation_messages(overrides: dict, message: str) -> None:
    form = QuestionForm()
    _fill(form, **overrides)
    assert form.validate() == message


def test_set_field_clears_error_and_rejects_unknown_fields() -> None:
    form = QuestionForm()
    form.error = "Question text is required"
    form.set_field("question", "Stem")
    assert form.error is None
    with pytest.raises(FormError):
        form.set_field("bogus", "x")


def test_submit_associates_images_in_order_and_refetches(backend: FakeBackend, api: ApiClient) -> None:
    first = _image(backend)
    second = _image(backend)
    form = QuestionForm()
    _fill(form)
    form.add_image(first)
    form.add_image(second, UsageType.EXPLANATION)

    report = form.submit(api)

    assert report.succeeded
    question_id = report.question.id
    assert backend.associations[(first.id, question_id)]["display_order"] == 1
    assert backend.associations[(second.id, question_id)] == {
        "image_id": second.id,
        "display_order": 2,
        "usage_type": "explanation",
    }
    assert [image.id for image in report.question.images] == [first.id, second.id]
    assert [step.kind for step in report.steps] == [
        StepKind.QUESTION,
        StepKind.IMAGE,
        StepKind.IMAGE,
        StepKind.REFRESH,
    ]


def test_create_success_resets_form(backend: FakeBackend, api: ApiClient) -> None:
    form = QuestionForm()
    _fill(form)
    form.add_image(_image(backend))
    form.add_metadata_entry(Metadata(topic="MR"))
    form.add_exam_entry([ApplicableExam(exam_name="PTEeXAM")])

    form.submit(api)

    assert form.fields.question == ""
    assert form.selected_images == []
    assert form.metadata_entries == {}
    assert form.exam_entries == {}
    assert form.question_id is None


def test_edit_success_keeps_metadata_and_exams(backend: FakeBackend, api: ApiClient) -> None:
    question = _saved_question(backend, api)
    form = QuestionForm(question)
    key = form.add_metadata_entry(Metadata(topic="LAA"))
    form.set_field("explanation", "The LAA is best seen at the ME level.")

    report = form.submit(api)

    assert report.succeeded
    assert form.success == "Question updated successfully!"
    assert key in form.metadata_entries
    assert backend.questions[question.id]["explanation"] == "The LAA is best seen at the ME level."
    assert ("PUT", f"/questions/{question.id}") in [(m, p) for m, p, _ in backend.calls]


def test_metadata_and_exam_failures_are_warnings(backend: FakeBackend, api: ApiClient) -> None:
    question = _saved_question(backend, api)
    form = QuestionForm(question)
    failing = form.add_metadata_entry(Metadata(topic="first"))
    form.add_metadata_entry(Metadata(topic="second"))
    form.add_exam_entry([ApplicableExam(exam_name="EACTVI")])
    backend.fail("POST", f"/questions/{question.id}/metadata", 500, "metadata store down")
    backend.fail("POST", f"/questions/{question.id}/exams", 400, "bad exams")

    report = form.submit(api)

    assert report.succeeded
    failed_metadata = report.failed(StepKind.METADATA)
    assert len(failed_metadata) == 2
    assert failed_metadata[0].target == failing
    assert len(report.failed(StepKind.EXAMS)) == 1
    assert report.warnings[0] == (
        f"Warning: Failed to save metadata {failing} - metadata store down"
    )
    assert form.error == "\n".join(report.warnings)
    # Both metadata entries were attempted even though the first failed
    assert backend.paths("POST").count(f"/questions/{question.id}/metadata") == 2


def test_question_failure_aborts(backend: FakeBackend, api: ApiClient) -> None:
    form = QuestionForm()
    _fill(form)
    form.add_metadata_entry(Metadata(topic="MR"))
    backend.fail("POST", "/questions", 500)

    report = form.submit(api)

    assert not report.succeeded
    assert form.error == "Failed to create question. Please try again."
    assert backend.paths() == ["/questions"]
    assert form.fields.question == "What is the most common cause of MR?"


def test_image_failure_aborts_and_retry_updates(backend: FakeBackend, api: ApiClient) -> None:
    image = _image(backend)
    form = QuestionForm()
    _fill(form)
    form.add_image(image)
    form.add_metadata_entry(Metadata(topic="MR"))

    backend.fail("POST", f"/images/{image.id}/associate/1", 500)
    report = form.submit(api)

    assert not report.succeeded
    assert report.failed(StepKind.IMAGE)[0].target == str(image.id)
    assert form.error == "Failed to create question. Please try again."
    assert form.question_id == 1
    assert not any("/metadata" in path for path in backend.paths())

    backend.failures.clear()
    retry = form.submit(api)

    assert retry.succeeded
    assert backend.paths("POST").count("/questions") == 1
    assert "/questions/1" in backend.paths("PUT")
    assert len(backend.questions) == 1


def test_refresh_failure_aborts(backend: FakeBackend, api: ApiClient) -> None:
    form = QuestionForm()
    _fill(form)
    form.add_image(_image(backend))
    backend.fail("GET", "/questions/1", 503)

    report = form.submit(api)

    assert not report.succeeded
    assert report.failed(StepKind.REFRESH)


def test_add_image_ignores_duplicates(backend: FakeBackend) -> None:
    image = _image(backend)
    form = QuestionForm()
    assert form.add_image(image)
    assert not form.add_image(image, UsageType.EXPLANATION)
    assert len(form.selected_images) == 1
    assert form.selected_images[0].usage_type is UsageType.QUESTION


def test_remove_image(backend: FakeBackend) -> None:
    kept = _image(backend)
    dropped = _image(backend)
    form = QuestionForm()
    form.add_image(kept)
    form.add_image(dropped)

    form.remove_image(dropped.id)

    assert [selection.image.id for selection in form.selected_images] == [kept.id]
    with pytest.raises(UnknownEntryError):
        form.remove_image(dropped.id)


def test_toggle_usage_twice_restores_original(backend: FakeBackend, api: ApiClient) -> None:
    image = _image(backend)
    form = QuestionForm()
    form.add_image(image)

    form.toggle_image_usage(api, image.id)
    assert form.selected_images[0].usage_type is UsageType.EXPLANATION
    form.toggle_image_usage(api, image.id)

    assert form.selected_images[0].usage_type is UsageType.QUESTION
    # Unsaved question: nothing to persist
    assert backend.calls == []


def test_usage_change_persists_for_saved_question(backend: FakeBackend, api: ApiClient) -> None:
    question = _saved_question(backend, api)
    image = _image(backend)
    backend.associate(image.id, question.id, body={"display_order": 1, "usage_type": "question"})
    form = QuestionForm(Question.model_validate(backend.get_question(question.id)[1]))

    assert form.move_image(api, image.id, UsageType.EXPLANATION)

    assert backend.associations[(image.id, question.id)]["usage_type"] == "explanation"


def test_usage_change_failure_keeps_local_state(backend: FakeBackend, api: ApiClient) -> None:
    question = _saved_question(backend, api)
    image = _image(backend)
    form = QuestionForm(question)
    form.add_image(image)
    backend.fail("PUT", f"/images/{image.id}/usage/{question.id}", 500)

    assert not form.toggle_image_usage(api, image.id)

    assert form.selected_images[0].usage_type is UsageType.EXPLANATION
    assert form.error == IMAGE_USAGE_ERROR


def test_temporary_descriptions_stay_local_until_created(backend: FakeBackend, api: ApiClient) -> None:
    form = QuestionForm()
    _fill(form)
    first = form.add_description(api, DescriptionDraft(description="Flail P2 scallop"))
    second = form.add_description(
        api,
        DescriptionDraft(
            description="Color jet",
            usage_type=UsageType.EXPLANATION,
            exam_type=ExamType.TTE,
            view_type="Apical 4-Chamber",
        ),
    )
    form.change_description(api, first.key, "Flail P2 scallop with ruptured chord")
    form.change_description_usage(api, second.key, UsageType.QUESTION)

    assert first.is_temporary and second.is_temporary
    assert backend.calls == []

    report = form.submit(api)

    assert report.succeeded
    created = [body for method, path, body in backend.calls if path == "/image-descriptions"]
    assert len(created) == 2
    assert created[0]["description"] == "Flail P2 scallop with ruptured chord"
    assert created[1]["usage_type"] == "question"
    assert created[1]["modality"] == Modality.TRANSTHORACIC.value
    assert created[1]["echo_view"] == "Apical 4-Chamber"
    assert all(body["question_id"] == report.question.id for body in created)


def test_description_failure_after_create_is_warning(backend: FakeBackend, api: ApiClient) -> None:
    form = QuestionForm()
    _fill(form)
    form.add_description(api, DescriptionDraft(description="Needs an image"))
    backend.fail("POST", "/image-descriptions", 500, "description store down")

    report = form.submit(api)

    assert report.succeeded
    assert report.failed(StepKind.DESCRIPTION)[0].error == "description store down"


def test_descriptions_persist_once_after_retry(backend: FakeBackend, api: ApiClient) -> None:
    image = _image(backend)
    form = QuestionForm()
    _fill(form)
    form.add_image(image)
    form.add_description(api, DescriptionDraft(description="Placeholder"))
    backend.fail("POST", f"/images/{image.id}/associate/1", 500)

    form.submit(api)
    assert not form.descriptions[0].is_temporary

    backend.failures.clear()
    form.submit(api)

    assert backend.paths("POST").count("/image-descriptions") == 1


def test_descriptions_go_to_backend_for_saved_question(backend: FakeBackend, api: ApiClient) -> None:
    question = _saved_question(backend, api)
    form = QuestionForm(question)

    entry = form.add_description(api, DescriptionDraft(description="Deep TG view"))
    assert not entry.is_temporary
    assert backend.descriptions[entry.entry_id.server_id]["question_id"] == question.id

    form.change_description(api, entry.key, "Deep TG long axis")
    assert backend.descriptions[entry.entry_id.server_id]["description"] == "Deep TG long axis"

    form.remove_description(api, entry.key)
    assert form.descriptions == []
    assert backend.descriptions == {}


def test_description_backend_failure_sets_banner(backend: FakeBackend, api: ApiClient) -> None:
    question = _saved_question(backend, api)
    form = QuestionForm(question)
    entry = form.add_description(api, DescriptionDraft(description="Deep TG view"))
    backend.fail("DELETE", f"/image-descriptions/{entry.entry_id.server_id}", 500)

    form.remove_description(api, entry.key)

    assert form.error == "Failed to remove image description"
    assert form.descriptions == [entry]


def test_remove_metadata_entry_removes_only_that_entry() -> None:
    form = QuestionForm()
    first = form.add_metadata_entry(Metadata(topic="one"))
    second = form.add_metadata_entry(Metadata(topic="two"))
    third = form.add_metadata_entry(Metadata(topic="three"))

    form.remove_metadata_entry(second)

    assert list(form.metadata_entries) == [first, third]
    assert form.metadata_entries[first].topic == "one"
    assert second not in form.editing_metadata


def test_remove_exam_entry_removes_only_that_entry() -> None:
    form = QuestionForm()
    first = form.add_exam_entry()
    second = form.accept_generated_exams([ApplicableExam(exam_name="PTEeXAM")])

    form.remove_exam_entry(first)

    assert list(form.exam_entries) == [second]
    with pytest.raises(UnknownEntryError):
        form.remove_exam_entry(first)


def test_new_entries_start_in_edit_mode_and_generated_do_not() -> None:
    form = QuestionForm()
    manual = form.add_metadata_entry()
    generated = form.accept_generated_metadata(Metadata(topic="MR"))

    assert form.editing_metadata == {manual: True, generated: False}
    assert form.toggle_metadata_edit(generated) is True
    assert manual.startswith("metadata-")


def test_update_metadata_field() -> None:
    form = QuestionForm()
    key = form.add_metadata_entry()

    form.update_metadata_field(key, "difficulty", "Hard")
    form.update_metadata_field(key, "keywords", ["SAM", "LVOT"])

    assert form.metadata_entries[key].difficulty == "Hard"
    assert form.metadata_entries[key].keywords == ["SAM", "LVOT"]
    with pytest.raises(FormError):
        form.update_metadata_field(key, "colour", "red")


def test_cleared_view_is_stored_as_none() -> None:
    form = QuestionForm()
    key = form.add_metadata_entry(Metadata(view="ME 4C"))

    form.update_metadata_field(key, "view", "")

    assert form.metadata_entries[key].view is None


def test_set_fields_applies_nothing_on_unknown_name() -> None:
    form = QuestionForm()

    with pytest.raises(FormError):
        form.set_fields({"question": "Which valve?", "answer": "A"})

    assert form.fields.question == ""
    form.set_fields({"question": "Which valve?", "correct_answer": "C"})
    assert (form.fields.question, form.fields.correct_answer) == ("Which valve?", "C")


def test_exam_entry_reducers() -> None:
    form = QuestionForm()
    key = form.add_exam_entry()

    form.update_exam_field(key, 0, "exam_name", "PTEeXAM")
    form.update_exam_field(key, 0, "subtopics", ["3.1: Mitral Valve Disease"])
    form.add_exam_to_entry(key)
    form.update_exam_field(key, 1, "exam_name", "EACTVI")
    form.remove_exam_from_entry(key, 0)

    exams = form.exam_entries[key]
    assert [exam.exam_name for exam in exams] == ["EACTVI"]
    with pytest.raises(UnknownEntryError):
        form.update_exam_field(key, 5, "reasoning", "x")


def test_exam_subtopic_strings_are_parsed() -> None:
    form = QuestionForm()
    key = form.add_exam_entry()
    form.update_exam_field(key, 0, "subtopics", ["3.1: Mitral Valve Disease"])
    assert form.exam_entries[key][0].subtopics == [
        Subtopic(name="Mitral Valve Disease", section="3.1")
    ]


def test_reset_needs_confirmation(backend: FakeBackend, api: ApiClient) -> None:
    question = _saved_question(backend, api)
    form = QuestionForm(question)
    form.set_field("question", "Changed")
    form.add_image(_image(backend))
    form.error = "Some error"

    assert not form.reset(lambda: False)
    assert form.fields.question == "Changed"

    assert form.reset(lambda: True)
    assert form.fields.question == "Which view best shows the LAA?"
    assert form.selected_images == []
    assert form.error is None


def test_load_existing_tolerates_missing_records(backend: FakeBackend, api: ApiClient) -> None:
    question = _saved_question(backend, api)
    form = QuestionForm(question)

    form.load_existing(api)

    assert form.metadata_entries == {}
    assert form.exam_entries == {}
    assert form.descriptions == []


def test_load_existing_reads_saved_records(backend: FakeBackend, api: ApiClient) -> None:
    question = _saved_question(backend, api)
    backend.metadata[question.id] = {"difficulty": "Easy", "major_structures": ["LAA"]}
    backend.exams[question.id] = [{"exam_name": "PTEeXAM", "subtopics": ["1.2: Basic TEE Views and Anatomy"]}]
    backend.create_description(body={"question_id": question.id, "description": "LAA thrombus"})
    form = QuestionForm(question)

    form.load_existing(api)

    [metadata] = form.metadata_entries.values()
    assert metadata.major_structures == ["LAA"]
    [exams] = form.exam_entries.values()
    assert exams[0].subtopics[0].section == "1.2"
    assert form.descriptions[0].record.description == "LAA thrombus"
    assert not form.descriptions[0].is_temporary


def test_state_is_json_ready(backend: FakeBackend) -> None:
    form = QuestionForm()
    form.add_image(_image(backend))
    form.add_metadata_entry(Metadata(question_type="Diagnosis"))

    state = form.state()

    assert state["mode"] == "create"
    assert state["selected_images"][0]["usage_type"] == "question"
    assert state["metadata_entries"][0]["metadata"]["questionType"] == "Diagnosis"
