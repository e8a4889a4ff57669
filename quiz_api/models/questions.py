"""
Question and answer-variant models.

A question carries exactly one kind of answer payload, selected by its type
tag. Payloads form a closed tagged union discriminated by ``kind``.
"""
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class QuestionType(str, Enum):
    """Type tag of a question."""

    SINGLE_CHOICE = "single-choice"
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    MATCHING = "matching"
    SEQUENCE = "sequence"
    DRAG_DROP = "drag-drop"
    DROPDOWN = "dropdown"

    @classmethod
    def parse(cls, raw: object) -> "QuestionType | None":
        """Normalise a stored tag; returns None for unknown tags."""
        if not isinstance(raw, str):
            return None
        tag = raw.strip().lower().replace("_", "-")
        tag = _TAG_ALIASES.get(tag, tag)
        try:
            return cls(tag)
        except ValueError:
            return None

    @property
    def payload_kind(self) -> str:
        return _PAYLOAD_KIND[self]


_TAG_ALIASES = {
    "dropdown-fill": "dropdown",
    "truefalse": "true-false",
    "dragdrop": "drag-drop",
}

CHOICE_TYPES = frozenset(
    {QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE}
)

_PAYLOAD_KIND = {
    QuestionType.SINGLE_CHOICE: "choice",
    QuestionType.MULTIPLE_CHOICE: "choice",
    QuestionType.TRUE_FALSE: "choice",
    QuestionType.MATCHING: "matching",
    QuestionType.SEQUENCE: "sequence",
    QuestionType.DRAG_DROP: "drag-drop",
    QuestionType.DROPDOWN: "dropdown",
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class ChoiceOption(_CamelModel):
    id: str
    text: str
    is_correct: bool = False
    position: int = 0


class MatchPair(_CamelModel):
    id: str
    left_text: str
    right_text: str
    position: int = 0


class SequenceEntry(_CamelModel):
    id: str
    text: str
    correct_position: int


class DragDropEntry(_CamelModel):
    id: str
    content: str
    target_zone: str
    position: int = 0


class DropdownStatement(_CamelModel):
    id: str
    statement: str
    options: list[str] = Field(default_factory=list)
    correct_option: str
    position: int = 0


class ChoicePayload(_CamelModel):
    kind: Literal["choice"] = "choice"
    answers: list[ChoiceOption] = Field(default_factory=list)


class MatchingPayload(_CamelModel):
    kind: Literal["matching"] = "matching"
    items: list[MatchPair] = Field(default_factory=list)


class SequencePayload(_CamelModel):
    kind: Literal["sequence"] = "sequence"
    items: list[SequenceEntry] = Field(default_factory=list)


class DragDropPayload(_CamelModel):
    kind: Literal["drag-drop"] = "drag-drop"
    items: list[DragDropEntry] = Field(default_factory=list)


class DropdownPayload(_CamelModel):
    kind: Literal["dropdown"] = "dropdown"
    items: list[DropdownStatement] = Field(default_factory=list)


AnswerPayload = Annotated[
    Union[ChoicePayload, MatchingPayload, SequencePayload, DragDropPayload, DropdownPayload],
    Field(discriminator="kind"),
]


class QuestionModel(_CamelModel):
    """Assembled question with its answer payload."""

    id: str
    text: str
    type: str
    category_id: str | None = None
    difficulty: str | None = None
    points: int = 1
    explanation: str | None = None
    media_url: str | None = None
    position: int = 0
    payload: AnswerPayload | None = None

    @property
    def question_type(self) -> QuestionType | None:
        return QuestionType.parse(self.type)

    @property
    def record_count(self) -> int:
        """Number of authored answer records attached."""
        if self.payload is None:
            return 0
        if isinstance(self.payload, ChoicePayload):
            return len(self.payload.answers)
        return len(self.payload.items)


class TestPayload(_CamelModel):
    """Test metadata with its ordered questions."""

    id: str
    title: str
    description: str | None = None
    instructions: str | None = None
    time_limit: int
    price: float = 0
    currency: str | None = None
    is_free: bool = True
    category_ids: list[str] = Field(default_factory=list)
    questions: list[QuestionModel] = Field(default_factory=list)

    @property
    def total_questions(self) -> int:
        return len(self.questions)


# Submitted response: selected ids / ordered ids (list) or id -> value map
SubmittedResponse = Union[list[str], dict[str, str], None]
