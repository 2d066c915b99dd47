"""Point values for submitted answers."""

from __future__ import annotations

from quiznest.constants.quiz_constants import (
    DEFAULT_CORRECT_SCORE,
    DEFAULT_INCORRECT_SCORE,
    SUB_QUESTION_CORRECT_SCORE,
    SUB_QUESTION_INCORRECT_SCORE,
)
from quiznest.core.models import ConceptQuestion, Option, Question


def resolve_score(
    selected_option: Option,
    question: Question | ConceptQuestion,
    is_correct: bool,
) -> float:
    """Resolve the points earned for ``selected_option``.

    Priority: the option's own score, then the question's correct/incorrect
    scores (each falling back to the fixed default), then the fixed tariff.
    Concept questions carry no question-level scores and skip the second step.
    """
    if selected_option.score is not None:
        return selected_option.score

    correct_score = getattr(question, "correct_score", None)
    incorrect_score = getattr(question, "incorrect_score", None)
    if correct_score is not None or incorrect_score is not None:
        if is_correct:
            return correct_score if correct_score is not None else DEFAULT_CORRECT_SCORE
        return incorrect_score if incorrect_score is not None else DEFAULT_INCORRECT_SCORE

    return DEFAULT_CORRECT_SCORE if is_correct else DEFAULT_INCORRECT_SCORE


def resolve_sub_score(selected_option: Option, is_correct: bool) -> float:
    """Sub-question tariff: the option's own score, else +50 / -25."""
    if selected_option.score is not None:
        return selected_option.score
    return SUB_QUESTION_CORRECT_SCORE if is_correct else SUB_QUESTION_INCORRECT_SCORE
