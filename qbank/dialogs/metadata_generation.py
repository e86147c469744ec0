"""AI metadata generation dialog."""
from qbank.client import metadata as metadata_api
from qbank.client.base import ApiClient
from qbank.dialogs.base import DialogError, GenerationDialog, add_to_list, remove_at
from qbank.models.metadata import TAG_FIELDS, Metadata
from qbank.models.questions import QuestionFields


class MetadataGenerationDialog(GenerationDialog[Metadata]):
    """Generates metadata tags and exposes them as editable chip lists."""

    error_message = "Error generating metadata. Please try again."
    complete_message = "Metadata generation complete!"

    def add_tag(self, field: str, value: str) -> bool:
        return add_to_list(self._tags(field), value)

    def remove_tag(self, field: str, index: int) -> None:
        remove_at(self._tags(field), index)

    def _tags(self, field: str) -> list[str]:
        if field not in TAG_FIELDS:
            raise DialogError(f"Unknown tag field: {field}")
        if self.editable is None:
            raise DialogError("No generated metadata to edit")
        return getattr(self.editable, field)

    def _lead_steps(self, image_count: int) -> list[tuple[int, str]]:
        steps = [(30, "Processing question text with AI...")]
        if image_count > 0:
            steps.append((50, f"Analyzing {image_count} image(s)..."))
        steps.append((70, "Generating metadata tags..."))
        return steps

    def _call(self, client: ApiClient, fields: QuestionFields, image_count: int) -> Metadata:
        return metadata_api.generate_metadata(client, fields, image_count)

    def _copy(self, value: Metadata) -> Metadata:
        return value.model_copy(deep=True)
