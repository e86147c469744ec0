"""Modal dialogs: local state seeded on open, finalized value on confirm."""
from qbank.dialogs.base import DialogError
from qbank.dialogs.edit_metadata import EditMetadataModal
from qbank.dialogs.exam_generation import ExamGenerationDialog
from qbank.dialogs.image_description import ImageDescriptionModal
from qbank.dialogs.manual_exam_assignment import ManualExamAssignmentModal
from qbank.dialogs.metadata_generation import MetadataGenerationDialog

__all__ = [
    "DialogError",
    "EditMetadataModal",
    "ExamGenerationDialog",
    "ImageDescriptionModal",
    "ManualExamAssignmentModal",
    "MetadataGenerationDialog",
]
