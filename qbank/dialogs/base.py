"""Shared pieces of the modal dialogs."""
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from pydantic import ValidationError

from qbank.client.base import ApiClient, ApiError
from qbank.models.questions import QuestionFields

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DialogError(ValueError):
    """Input rejected by a dialog; the dialog state is unchanged."""


def add_to_list(items: list[str], value: str) -> bool:
    """Append a trimmed value, ignoring blanks. Returns whether it was added."""
    value = value.strip()
    if not value:
        return False
    items.append(value)
    return True


def remove_at(items: list, index: int) -> None:
    if not 0 <= index < len(items):
        raise DialogError(f"No item at position {index}")
    del items[index]


class GenerationDialog(ABC, Generic[T]):
    """
    Dialog that asks a backend generator for a result and lets the user edit it.

    Opening with no cached result runs one generation call. Progress values
    are cosmetic; ``history`` keeps every ``(progress, status_text)`` step.
    A failed generation is not retried until the dialog has been closed.
    """

    error_message = "Error generating results. Please try again."
    complete_message = "Generation complete!"

    def __init__(self) -> None:
        self.is_open = False
        self.is_generating = False
        self.result: T | None = None
        self.editable: T | None = None
        self.error: str | None = None
        self.progress = 0
        self.status_text = ""
        self.history: list[tuple[int, str]] = []

    def open(self, client: ApiClient, fields: QuestionFields, image_count: int = 0) -> None:
        self.is_open = True
        if self.result is None and not self.is_generating and self.error is None:
            self.generate(client, fields, image_count)

    def generate(self, client: ApiClient, fields: QuestionFields, image_count: int = 0) -> None:
        self.is_generating = True
        self.error = None
        self.history = []
        self._step(10, "Analyzing question content...")
        try:
            for progress, text in self._lead_steps(image_count):
                self._step(progress, text)
            result = self._call(client, fields, image_count)
            self._step(90, "Finalizing results...")
            self.result = result
            self.editable = self._copy(result)
            self._step(100, self.complete_message)
        except ApiError as exc:
            logger.error("%s: %s", self.error_message, exc.detail)
            self.error = self.error_message
            self.status_text = self.error_message
        except ValidationError as exc:
            logger.error("%s: unexpected generator response: %s", self.error_message, exc)
            self.error = self.error_message
            self.status_text = self.error_message
        finally:
            self.is_generating = False

    def accept(self, on_accept: Callable[[T], None]) -> T | None:
        """Hand the edited copy to the parent and hide the dialog."""
        if self.editable is None:
            return None
        accepted = self._copy(self.editable)
        on_accept(accepted)
        self.is_open = False
        return accepted

    def close(self) -> None:
        """Hide the dialog and discard the result."""
        self.is_open = False
        self.result = None
        self.editable = None
        self.error = None
        self.progress = 0
        self.status_text = ""
        self.history = []

    def _step(self, progress: int, text: str) -> None:
        self.progress = progress
        self.status_text = text
        self.history.append((progress, text))

    @abstractmethod
    def _lead_steps(self, image_count: int) -> list[tuple[int, str]]:
        """Progress steps shown before the generator call."""

    @abstractmethod
    def _call(self, client: ApiClient, fields: QuestionFields, image_count: int) -> T:
        """Ask the backend for a result."""

    @abstractmethod
    def _copy(self, value: T) -> T:
        """Independent copy of a result, for editing."""
