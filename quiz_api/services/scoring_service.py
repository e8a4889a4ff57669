"""Server-side scoring of submitted responses per question type."""
import logging
from dataclasses import dataclass
from typing import Callable

from quiz_api.models.questions import (
    ChoicePayload,
    DragDropPayload,
    DropdownPayload,
    MatchingPayload,
    QuestionModel,
    SequencePayload,
    SubmittedResponse,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring one response. No partial credit."""

    is_correct: bool
    answered: bool
    anomaly: str | None = None


def is_answered(response: SubmittedResponse) -> bool:
    """A response counts as answered when it carries at least one value."""
    if response is None:
        return False
    if isinstance(response, dict):
        return any(str(value).strip() for value in response.values())
    return any(str(value).strip() for value in response)


def _score_choice(payload: ChoicePayload, response: SubmittedResponse) -> bool:
    if not isinstance(response, list):
        return False
    correct_ids = {answer.id for answer in payload.answers if answer.is_correct}
    return set(response) == correct_ids


def _score_matching(payload: MatchingPayload, response: SubmittedResponse) -> bool:
    if not isinstance(response, dict) or len(response) != len(payload.items):
        return False
    return all(response.get(item.id) == item.right_text for item in payload.items)


def _score_sequence(payload: SequencePayload, response: SubmittedResponse) -> bool:
    if not isinstance(response, list) or len(response) != len(payload.items):
        return False
    positions = {item.id: item.correct_position for item in payload.items}
    return all(
        positions.get(item_id) == index
        for index, item_id in enumerate(response, start=1)
    )


def _score_drag_drop(payload: DragDropPayload, response: SubmittedResponse) -> bool:
    if not isinstance(response, dict) or len(response) != len(payload.items):
        return False
    return all(response.get(item.id) == item.target_zone for item in payload.items)


def _score_dropdown(payload: DropdownPayload, response: SubmittedResponse) -> bool:
    if not isinstance(response, dict) or len(response) != len(payload.items):
        return False
    return all(response.get(item.id) == item.correct_option for item in payload.items)


_SCORERS: dict[type, Callable[..., bool]] = {
    ChoicePayload: _score_choice,
    MatchingPayload: _score_matching,
    SequencePayload: _score_sequence,
    DragDropPayload: _score_drag_drop,
    DropdownPayload: _score_dropdown,
}


def _anomaly(question: QuestionModel, answered: bool, reason: str) -> ScoreResult:
    logger.warning(
        "Data integrity anomaly in question %s (type=%r): %s",
        question.id,
        question.type,
        reason,
    )
    return ScoreResult(is_correct=False, answered=answered, anomaly=reason)


def score_answer(question: QuestionModel, response: SubmittedResponse) -> ScoreResult:
    """
    Score a single response against the authored answer payload.

    Never raises: unscorable questions (unknown type tag, no authored
    records, payload not matching the tag) score as incorrect and are logged.
    """
    answered = is_answered(response)

    question_type = question.question_type
    if question_type is None:
        return _anomaly(question, answered, "unrecognized question type")

    payload = question.payload
    if payload is None or question.record_count == 0:
        return _anomaly(question, answered, "no answer records")

    if payload.kind != question_type.payload_kind:
        return _anomaly(
            question, answered, f"payload kind {payload.kind!r} does not match type"
        )

    if not answered:
        return ScoreResult(is_correct=False, answered=False)

    scorer = _SCORERS[type(payload)]
    return ScoreResult(is_correct=scorer(payload, response), answered=True)

