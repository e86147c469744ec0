"""Pydantic models for question metadata and exam assignments."""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

TAG_FIELDS = ("keywords", "major_structures", "minor_structures", "modalities")
SCALAR_FIELDS = ("difficulty", "category", "topic", "question_type", "view")


class Metadata(BaseModel):
    """Classification tags attached to a question.

    Accepts both the camelCase shape returned by the generator and the
    snake_case shape of the question-metadata table; dumps camelCase with
    ``by_alias=True``.
    """

    model_config = ConfigDict(populate_by_name=True)

    difficulty: str = ""
    category: str = ""
    topic: str = ""
    keywords: list[str] = Field(default_factory=list)
    question_type: str = Field(
        "",
        validation_alias=AliasChoices("questionType", "question_type"),
        serialization_alias="questionType",
    )
    view: str | None = Field(
        None,
        validation_alias=AliasChoices("view", "view_type"),
        serialization_alias="view",
    )
    major_structures: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("majorStructures", "major_structures"),
        serialization_alias="majorStructures",
    )
    minor_structures: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("minorStructures", "minor_structures"),
        serialization_alias="minorStructures",
    )
    modalities: list[str] = Field(default_factory=list)

    @field_validator("difficulty", "category", "topic", "question_type", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator(*TAG_FIELDS, mode="before")
    @classmethod
    def _none_as_empty_list(cls, value: object) -> object:
        return [] if value is None else value

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)


class Subtopic(BaseModel):
    """Syllabus subtopic and its section code."""

    name: str
    section: str = ""

    @classmethod
    def parse(cls, value: object) -> "Subtopic":
        """Build from a dict or from the stored ``"section: name"`` string."""
        if isinstance(value, Subtopic):
            return value
        if isinstance(value, dict):
            return cls.model_validate(value)
        text = str(value)
        section, sep, name = text.partition(": ")
        if sep:
            return cls(name=name, section=section)
        return cls(name=text, section="")


class ApplicableExam(BaseModel):
    """Certification exam a question maps to."""

    model_config = ConfigDict(populate_by_name=True)

    exam_name: str = Field(
        "",
        validation_alias=AliasChoices("examName", "exam_name"),
        serialization_alias="examName",
    )
    subtopics: list[Subtopic] = Field(default_factory=list)
    reasoning: str | None = None

    @field_validator("subtopics", mode="before")
    @classmethod
    def _parse_subtopics(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            return [Subtopic.parse(item) for item in value]
        return value

    def has_subtopic(self, name: str) -> bool:
        return any(subtopic.name == name for subtopic in self.subtopics)

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)
