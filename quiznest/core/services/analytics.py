"""Per-concept accuracy projected from a finished quiz play-through."""

from __future__ import annotations

from dataclasses import dataclass, field

from quiznest.constants.quiz_constants import ADEQUATE_BAND_THRESHOLD, STRONG_BAND_THRESHOLD
from quiznest.core.models import AnswerRecord, Concept, Quiz
from quiznest.core.services.playback_common import percentage

STRONG = "strong"
ADEQUATE = "adequate"
NEEDS_IMPROVEMENT = "needs_improvement"


@dataclass(slots=True)
class ConceptEntry:
    """Mutable accumulator used while walking the questions."""

    concept: Concept
    correct: int = 0
    total: int = 0
    question_numbers: list[int] = field(default_factory=list)


@dataclass(slots=True)
class ConceptPerformance:
    """Immutable snapshot returned to consumers."""

    concept: Concept
    correct: int
    total: int
    question_numbers: list[int]

    @property
    def percentage(self) -> int:
        return percentage(self.correct, self.total)

    @property
    def band(self) -> str:
        return performance_band(self.percentage)


def compute_concept_performance(
    quiz: Quiz, answers: list[AnswerRecord]
) -> list[ConceptPerformance] | None:
    """Aggregate answers per tagged concept.

    Returns ``None`` when the projection is unavailable: the quiz names no
    concepts, or none of its concepts has an answered question.
    ``question_numbers`` holds 1-based positions in ``quiz.questions``.
    """
    if not quiz.concepts_used_in_quiz:
        return None

    entries: dict[int, ConceptEntry] = {
        concept.id: ConceptEntry(concept=concept) for concept in quiz.concepts_used_in_quiz
    }
    answers_by_question = {answer.question_id: answer for answer in answers}

    for position, question in enumerate(quiz.questions, start=1):
        if question.concept_id is None or question.concept_id not in entries:
            continue
        answer = answers_by_question.get(question.id)
        if answer is None:
            continue
        entry = entries[question.concept_id]
        entry.total += 1
        entry.question_numbers.append(position)
        if answer.is_correct:
            entry.correct += 1

    performances = [
        ConceptPerformance(
            concept=entry.concept,
            correct=entry.correct,
            total=entry.total,
            question_numbers=list(entry.question_numbers),
        )
        for entry in entries.values()
        if entry.total > 0
    ]
    return performances or None


def performance_band(value: int) -> str:
    if value >= STRONG_BAND_THRESHOLD:
        return STRONG
    if value >= ADEQUATE_BAND_THRESHOLD:
        return ADEQUATE
    return NEEDS_IMPROVEMENT


def results_message(value: int) -> str:
    if value >= STRONG_BAND_THRESHOLD:
        return "Excellent work!"
    if value >= ADEQUATE_BAND_THRESHOLD:
        return "Good job!"
    return "Keep studying!"
