"""Manual metadata editor."""
from collections.abc import Callable

from qbank.dialogs.base import DialogError, add_to_list, remove_at
from qbank.models.metadata import SCALAR_FIELDS, TAG_FIELDS, Metadata


class EditMetadataModal:
    """Local draft of a metadata value, re-seeded every time it opens."""

    def __init__(self) -> None:
        self.is_open = False
        self.draft = Metadata()

    def open(self, metadata: Metadata | None = None) -> None:
        self.draft = metadata.model_copy(deep=True) if metadata else Metadata()
        self.is_open = True

    def add_tag(self, field: str, value: str) -> bool:
        return add_to_list(self._tags(field), value)

    def remove_tag(self, field: str, index: int) -> None:
        remove_at(self._tags(field), index)

    def set_field(self, field: str, value: str | None) -> None:
        if field not in SCALAR_FIELDS:
            raise DialogError(f"Unknown metadata field: {field}")
        if field == "view":
            self.draft.view = value or None
        else:
            setattr(self.draft, field, value or "")

    def save(self, on_save: Callable[[Metadata], None]) -> Metadata:
        saved = self.draft.model_copy(deep=True)
        on_save(saved)
        self.close()
        return saved

    def close(self) -> None:
        self.is_open = False

    def _tags(self, field: str) -> list[str]:
        if field not in TAG_FIELDS:
            raise DialogError(f"Unknown tag field: {field}")
        return getattr(self.draft, field)
