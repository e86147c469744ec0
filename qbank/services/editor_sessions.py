"""Server-held question editors.

Each open editor page owns a ``QuestionForm`` plus its dialogs. Routes run
in FastAPI's threadpool. Every operation that changes an editor takes its
lock, including submit and generation which hold it across backend calls.
State reads do not take the lock and work from snapshots of the entry
collections.
"""
import logging
import threading
import uuid
from dataclasses import dataclass, field

from qbank.dialogs import (
    EditMetadataModal,
    ExamGenerationDialog,
    ImageDescriptionModal,
    ManualExamAssignmentModal,
    MetadataGenerationDialog,
)
from qbank.forms.question_form import QuestionForm

logger = logging.getLogger(__name__)


@dataclass
class EditorSession:
    form: QuestionForm
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    lock: threading.Lock = field(default_factory=threading.Lock)
    metadata_dialog: MetadataGenerationDialog = field(default_factory=MetadataGenerationDialog)
    exam_dialog: ExamGenerationDialog = field(default_factory=ExamGenerationDialog)
    edit_metadata_modal: EditMetadataModal = field(default_factory=EditMetadataModal)
    manual_exam_modal: ManualExamAssignmentModal = field(default_factory=ManualExamAssignmentModal)
    description_modal: ImageDescriptionModal = field(default_factory=ImageDescriptionModal)
    # Entry being edited in a modal; None while a modal adds a new entry
    editing_metadata_key: str | None = None
    editing_exams_key: str | None = None
    # Page to show after the last successful save
    redirect: str | None = None


class EditorRegistry:
    """Open editors keyed by session id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[str, EditorSession] = {}

    def open(self, form: QuestionForm) -> EditorSession:
        session = EditorSession(form=form)
        with self._lock:
            self._sessions[session.id] = session
        logger.info("Opened %s editor %s", form.mode, session.id)
        return session

    def get(self, session_id: str) -> EditorSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def close(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info("Closed editor %s", session_id)
        return removed is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
