"""Question editing form."""
from qbank.forms.question_form import FormError, QuestionForm, UnknownEntryError

__all__ = ["FormError", "QuestionForm", "UnknownEntryError"]
