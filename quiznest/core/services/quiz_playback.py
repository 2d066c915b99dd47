"""State machine driving a single-level quiz play-through."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto
import logging
import random
from typing import ClassVar, Union

from quiznest.core.models import AnswerRecord, Question, Quiz, SubAnswer
from quiznest.core.scoring import resolve_score, resolve_sub_score
from quiznest.core.services.playback_common import (
    Clock,
    PlaybackError,
    RevealWindow,
    percentage,
    reveal_markers,
    validate_option_index,
)
from quiznest.core.shuffle import shuffle_quiz

logger = logging.getLogger(__name__)


class QuizPhase(Enum):
    NOT_STARTED = auto()
    IN_PROGRESS = auto()
    COMPLETED = auto()


@dataclass(frozen=True, slots=True)
class NotStarted:
    phase: ClassVar[QuizPhase] = QuizPhase.NOT_STARTED


@dataclass(frozen=True, slots=True)
class InProgress:
    """A question is on screen; selections stay editable until submitted."""

    phase: ClassVar[QuizPhase] = QuizPhase.IN_PROGRESS

    question_index: int
    selected_option_index: int | None = None
    sub_selections: dict[int, int] = field(default_factory=dict)
    submitted: bool = False


@dataclass(frozen=True, slots=True)
class Completed:
    phase: ClassVar[QuizPhase] = QuizPhase.COMPLETED


QuizState = Union[NotStarted, InProgress, Completed]


@dataclass(slots=True)
class QuizResults:
    answers: list[AnswerRecord]
    correct_answers: int
    total_questions: int
    total_score: float
    percentage: int


class QuizPlayback:
    """One play-through of a flat quiz.

    Every learner action is a method that validates the current state and
    replaces it; ``state`` is the single source of truth for what is shown.
    """

    def __init__(
        self,
        quiz: Quiz,
        rng: random.Random | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not quiz.questions:
            raise ValueError("Quiz must contain at least one question.")
        self._quiz = quiz
        self._rng = rng
        self._played_quiz = quiz
        self._state: QuizState = NotStarted()
        self._answers: list[AnswerRecord] = []
        self._reveal = RevealWindow(clock=clock) if clock else RevealWindow()

    # --- Read-only views ---

    @property
    def quiz(self) -> Quiz:
        """The quiz in play order (shuffled once the play-through started)."""
        return self._played_quiz

    @property
    def state(self) -> QuizState:
        return self._state

    @property
    def phase(self) -> QuizPhase:
        return self._state.phase

    @property
    def answers(self) -> list[AnswerRecord]:
        return list(self._answers)

    @property
    def total_questions(self) -> int:
        return len(self._quiz.questions)

    def current_question(self) -> Question | None:
        if isinstance(self._state, InProgress):
            return self._played_quiz.questions[self._state.question_index]
        return None

    def progress_percentage(self) -> int:
        if isinstance(self._state, Completed):
            return 100
        if isinstance(self._state, InProgress):
            return percentage(self._state.question_index, self.total_questions)
        return 0

    def is_revealing(self) -> bool:
        """True while the correct/incorrect animation is still playing."""
        return self._reveal.is_open()

    def option_markers(self) -> list[str | None]:
        state = self._require_in_progress()
        question = self.current_question()
        if not state.submitted:
            return [None] * len(question.options)
        return reveal_markers(question.options, state.selected_option_index)

    def results(self) -> QuizResults:
        if not isinstance(self._state, Completed):
            raise PlaybackError("Results are available once the quiz is completed.")
        correct = sum(1 for answer in self._answers if answer.is_correct)
        return QuizResults(
            answers=self.answers,
            correct_answers=correct,
            total_questions=self.total_questions,
            total_score=sum(answer.total_score for answer in self._answers),
            percentage=percentage(correct, self.total_questions),
        )

    # --- Transitions ---

    def start(self) -> None:
        if not isinstance(self._state, NotStarted):
            raise PlaybackError("Quiz has already been started.")
        self._played_quiz = shuffle_quiz(self._quiz, self._rng)
        self._answers = []
        self._state = InProgress(question_index=0)
        logger.info("Started quiz '%s' with %d questions", self._quiz.title, self.total_questions)

    def select_option(self, option_index: int) -> None:
        state = self._require_editable()
        validate_option_index(self.current_question().options, option_index)
        self._state = replace(state, selected_option_index=option_index)

    def select_sub_option(self, sub_question_id: int, option_index: int) -> None:
        state = self._require_editable()
        sub_question = next(
            (sub for sub in self.current_question().sub_questions if sub.id == sub_question_id),
            None,
        )
        if sub_question is None:
            raise ValueError(f"Unknown sub-question {sub_question_id}")
        validate_option_index(sub_question.options, option_index)
        selections = dict(state.sub_selections)
        selections[sub_question_id] = option_index
        self._state = replace(state, sub_selections=selections)

    def submit(self) -> AnswerRecord:
        state = self._require_editable()
        question = self.current_question()
        if state.selected_option_index is None:
            raise PlaybackError("Select an option before submitting.")
        missing = [sub.id for sub in question.sub_questions if sub.id not in state.sub_selections]
        if missing:
            raise PlaybackError(f"Answer every sub-question before submitting (missing {missing}).")

        selected = question.options[state.selected_option_index]
        sub_answers = []
        for sub in question.sub_questions:
            sub_index = state.sub_selections[sub.id]
            sub_option = sub.options[sub_index]
            sub_answers.append(
                SubAnswer(
                    sub_question_id=sub.id,
                    selected_option_index=sub_index,
                    is_correct=sub_option.is_correct,
                    score=resolve_sub_score(sub_option, sub_option.is_correct),
                )
            )
        record = AnswerRecord(
            question_id=question.id,
            selected_option_index=state.selected_option_index,
            is_correct=selected.is_correct,
            score=resolve_score(selected, question, selected.is_correct),
            sub_answers=sub_answers,
        )
        self._answers.append(record)
        self._state = replace(state, submitted=True)
        self._reveal.open()
        return record

    def advance(self) -> QuizState:
        state = self._require_in_progress()
        if not state.submitted:
            raise PlaybackError("Submit an answer before moving on.")
        self._reveal.close()
        next_index = state.question_index + 1
        if next_index < self.total_questions:
            self._state = InProgress(question_index=next_index)
        else:
            self._state = Completed()
            logger.info(
                "Completed quiz '%s': %d/%d correct",
                self._quiz.title,
                sum(1 for answer in self._answers if answer.is_correct),
                self.total_questions,
            )
        return self._state

    def restart(self) -> None:
        self._state = NotStarted()
        self._answers = []
        self._played_quiz = self._quiz
        self._reveal.close()

    def _require_in_progress(self) -> InProgress:
        if not isinstance(self._state, InProgress):
            raise PlaybackError("No question is currently being played.")
        return self._state

    def _require_editable(self) -> InProgress:
        state = self._require_in_progress()
        if state.submitted:
            raise PlaybackError("This question has already been submitted.")
        return state
