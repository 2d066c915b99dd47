"""State machine driving a nested concept play-through.

Views follow the tree in order::

    EXPLANATION(c) -> QUESTIONS(c, q)* -> [SUB_EXPLANATION(c, s) -> SUB_QUESTIONS(c, s, q)*]*
    -> EXPLANATION(c + 1) ... -> RESULTS

Question views whose list is empty are never entered; explanation views are
always shown. ``back`` walks the same graph in reverse.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
import logging

from quiznest.core.models import (
    ConceptAnswer,
    ConceptExplanation,
    ConceptQuestion,
    ConceptTree,
    SubExplanation,
)
from quiznest.core.scoring import resolve_score
from quiznest.core.services.playback_common import (
    Clock,
    PlaybackError,
    RevealWindow,
    percentage,
    reveal_markers,
    validate_option_index,
)

logger = logging.getLogger(__name__)

# (concept_index, sub_explanation_index or None, question_index)
AnswerSlot = tuple[int, int | None, int]


class ConceptStage(Enum):
    EXPLANATION = auto()
    QUESTIONS = auto()
    SUB_EXPLANATION = auto()
    SUB_QUESTIONS = auto()
    RESULTS = auto()


@dataclass(frozen=True, slots=True)
class ConceptCursor:
    """Position inside the concept tree; indices not used by a stage stay 0."""

    stage: ConceptStage
    concept_index: int = 0
    sub_index: int = 0
    question_index: int = 0


@dataclass(slots=True)
class ConceptResults:
    answers: list[ConceptAnswer]
    correct_answers: int
    answered_questions: int
    total_questions: int
    total_score: float
    accuracy: int


class ConceptPlayback:
    """One play-through of a concept tree."""

    def __init__(self, tree: ConceptTree, clock: Clock | None = None) -> None:
        self._tree = tree
        self._answers: dict[AnswerSlot, ConceptAnswer] = {}
        self._reveal = RevealWindow(clock=clock) if clock else RevealWindow()
        self._cursor = self._first_cursor()
        self._selected: int | None = None
        self._submitted = False

    # --- Read-only views ---

    @property
    def tree(self) -> ConceptTree:
        return self._tree

    @property
    def cursor(self) -> ConceptCursor:
        return self._cursor

    @property
    def stage(self) -> ConceptStage:
        return self._cursor.stage

    @property
    def selected_option_index(self) -> int | None:
        return self._selected

    @property
    def submitted(self) -> bool:
        return self._submitted

    @property
    def answers(self) -> list[ConceptAnswer]:
        return list(self._answers.values())

    @property
    def total_concepts(self) -> int:
        return len(self._tree.concepts)

    @property
    def total_questions(self) -> int:
        return self._tree.question_count()

    def current_concept(self) -> ConceptExplanation | None:
        if self._cursor.stage is ConceptStage.RESULTS:
            return None
        return self._tree.concepts[self._cursor.concept_index]

    def current_sub_explanation(self) -> SubExplanation | None:
        if self._cursor.stage not in (ConceptStage.SUB_EXPLANATION, ConceptStage.SUB_QUESTIONS):
            return None
        return self.current_concept().sub_explanations[self._cursor.sub_index]

    def current_question(self) -> ConceptQuestion | None:
        cursor = self._cursor
        if cursor.stage is ConceptStage.QUESTIONS:
            return self.current_concept().questions[cursor.question_index]
        if cursor.stage is ConceptStage.SUB_QUESTIONS:
            return self.current_sub_explanation().questions[cursor.question_index]
        return None

    def option_markers(self) -> list[str | None]:
        question = self._require_question()
        if not self._submitted:
            return [None] * len(question.options)
        return reveal_markers(question.options, self._selected)

    def is_revealing(self) -> bool:
        return self._reveal.is_open()

    def progress_percentage(self) -> int:
        return percentage(len(self._answers), self.total_questions)

    def results(self) -> ConceptResults:
        answers = self.answers
        correct = sum(1 for answer in answers if answer.is_correct)
        return ConceptResults(
            answers=answers,
            correct_answers=correct,
            answered_questions=len(answers),
            total_questions=self.total_questions,
            total_score=sum(answer.score for answer in answers),
            accuracy=percentage(correct, len(answers)),
        )

    # --- Transitions ---

    def proceed(self) -> ConceptCursor:
        """Leave an explanation view ("Start questions" / "Continue")."""
        cursor = self._cursor
        if cursor.stage is ConceptStage.EXPLANATION:
            concept = self.current_concept()
            if concept.questions:
                target = ConceptCursor(ConceptStage.QUESTIONS, cursor.concept_index)
            else:
                target = self._after_concept_questions(cursor.concept_index)
        elif cursor.stage is ConceptStage.SUB_EXPLANATION:
            if self.current_sub_explanation().questions:
                target = ConceptCursor(ConceptStage.SUB_QUESTIONS, cursor.concept_index, cursor.sub_index)
            else:
                target = self._after_sub_explanation(cursor.concept_index, cursor.sub_index)
        else:
            raise PlaybackError("Continue is only available on explanation views.")
        return self._move_to(target)

    def select_option(self, option_index: int) -> None:
        question = self._require_question()
        if self._submitted:
            raise PlaybackError("This question has already been submitted.")
        validate_option_index(question.options, option_index)
        self._selected = option_index

    def submit(self) -> ConceptAnswer:
        question = self._require_question()
        if self._submitted:
            raise PlaybackError("This question has already been submitted.")
        if self._selected is None:
            raise PlaybackError("Select an option before submitting.")

        cursor = self._cursor
        option = question.options[self._selected]
        in_sub = cursor.stage is ConceptStage.SUB_QUESTIONS
        answer = ConceptAnswer(
            concept_index=cursor.concept_index,
            question_index=cursor.question_index,
            selected_option_index=self._selected,
            is_correct=option.is_correct,
            score=resolve_score(option, question, option.is_correct),
            is_sub_explanation=in_sub,
            sub_explanation_index=cursor.sub_index if in_sub else None,
        )
        # Re-answering after back-navigation replaces the earlier record.
        self._answers[self._slot(cursor)] = answer
        self._submitted = True
        self._reveal.open()
        return answer

    def advance(self) -> ConceptCursor:
        """Move on from a submitted question.

        A question revisited through ``back`` that already holds an answer can be
        left without resubmitting; an unsubmitted new selection is then discarded.
        """
        cursor = self._cursor
        self._require_question()
        if not self._submitted and self._slot(cursor) not in self._answers:
            raise PlaybackError("Submit an answer before moving on.")
        if cursor.stage is ConceptStage.QUESTIONS:
            if cursor.question_index + 1 < len(self.current_concept().questions):
                target = ConceptCursor(
                    ConceptStage.QUESTIONS, cursor.concept_index, question_index=cursor.question_index + 1
                )
            else:
                target = self._after_concept_questions(cursor.concept_index)
        else:
            if cursor.question_index + 1 < len(self.current_sub_explanation().questions):
                target = ConceptCursor(
                    ConceptStage.SUB_QUESTIONS,
                    cursor.concept_index,
                    cursor.sub_index,
                    cursor.question_index + 1,
                )
            else:
                target = self._after_sub_explanation(cursor.concept_index, cursor.sub_index)
        return self._move_to(target)

    def back(self) -> ConceptCursor:
        """Return to the unique predecessor of the current view."""
        target = self._predecessor(self._cursor)
        if target is None:
            raise PlaybackError("Already at the first explanation.")
        return self._move_to(target)

    def restart(self) -> None:
        self._answers = {}
        self._move_to(self._first_cursor())

    # --- Graph helpers ---

    def _first_cursor(self) -> ConceptCursor:
        if not self._tree.concepts:
            return ConceptCursor(ConceptStage.RESULTS)
        return ConceptCursor(ConceptStage.EXPLANATION, 0)

    def _after_concept_questions(self, concept_index: int) -> ConceptCursor:
        if self._tree.concepts[concept_index].sub_explanations:
            return ConceptCursor(ConceptStage.SUB_EXPLANATION, concept_index, 0)
        return self._next_concept(concept_index)

    def _after_sub_explanation(self, concept_index: int, sub_index: int) -> ConceptCursor:
        if sub_index + 1 < len(self._tree.concepts[concept_index].sub_explanations):
            return ConceptCursor(ConceptStage.SUB_EXPLANATION, concept_index, sub_index + 1)
        return self._next_concept(concept_index)

    def _next_concept(self, concept_index: int) -> ConceptCursor:
        if concept_index + 1 < self.total_concepts:
            return ConceptCursor(ConceptStage.EXPLANATION, concept_index + 1)
        return ConceptCursor(ConceptStage.RESULTS)

    def _last_view_of_concept(self, concept_index: int) -> ConceptCursor:
        concept = self._tree.concepts[concept_index]
        if concept.sub_explanations:
            return self._last_view_of_sub(concept_index, len(concept.sub_explanations) - 1)
        if concept.questions:
            return ConceptCursor(ConceptStage.QUESTIONS, concept_index, question_index=len(concept.questions) - 1)
        return ConceptCursor(ConceptStage.EXPLANATION, concept_index)

    def _last_view_of_sub(self, concept_index: int, sub_index: int) -> ConceptCursor:
        questions = self._tree.concepts[concept_index].sub_explanations[sub_index].questions
        if questions:
            return ConceptCursor(ConceptStage.SUB_QUESTIONS, concept_index, sub_index, len(questions) - 1)
        return ConceptCursor(ConceptStage.SUB_EXPLANATION, concept_index, sub_index)

    def _predecessor(self, cursor: ConceptCursor) -> ConceptCursor | None:
        c, s, q = cursor.concept_index, cursor.sub_index, cursor.question_index
        if cursor.stage is ConceptStage.RESULTS:
            return self._last_view_of_concept(self.total_concepts - 1) if self._tree.concepts else None
        if cursor.stage is ConceptStage.EXPLANATION:
            return self._last_view_of_concept(c - 1) if c > 0 else None
        if cursor.stage is ConceptStage.QUESTIONS:
            if q > 0:
                return ConceptCursor(ConceptStage.QUESTIONS, c, question_index=q - 1)
            return ConceptCursor(ConceptStage.EXPLANATION, c)
        if cursor.stage is ConceptStage.SUB_EXPLANATION:
            if s > 0:
                return self._last_view_of_sub(c, s - 1)
            questions = self._tree.concepts[c].questions
            if questions:
                return ConceptCursor(ConceptStage.QUESTIONS, c, question_index=len(questions) - 1)
            return ConceptCursor(ConceptStage.EXPLANATION, c)
        if q > 0:
            return ConceptCursor(ConceptStage.SUB_QUESTIONS, c, s, q - 1)
        return ConceptCursor(ConceptStage.SUB_EXPLANATION, c, s)

    def _move_to(self, target: ConceptCursor) -> ConceptCursor:
        self._cursor = target
        self._selected = None
        self._submitted = False
        self._reveal.close()
        if target.stage is ConceptStage.RESULTS:
            results = self.results()
            logger.info(
                "Finished concept quiz '%s': %d/%d correct, score %s",
                self._tree.title,
                results.correct_answers,
                results.answered_questions,
                results.total_score,
            )
        return target

    def _require_question(self) -> ConceptQuestion:
        question = self.current_question()
        if question is None:
            raise PlaybackError("No question is currently being played.")
        return question

    @staticmethod
    def _slot(cursor: ConceptCursor) -> AnswerSlot:
        if cursor.stage is ConceptStage.SUB_QUESTIONS:
            return (cursor.concept_index, cursor.sub_index, cursor.question_index)
        return (cursor.concept_index, None, cursor.question_index)
