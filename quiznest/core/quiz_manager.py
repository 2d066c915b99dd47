"""Business logic shared between the API and the playback sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import random
from threading import Lock
import time
from uuid import uuid4

from quiznest.constants.quiz_constants import SESSION_IDLE_SECONDS
from quiznest.core.models import AnswerRecord, ConceptAnswer, ConceptQuestion, Question, Quiz
from quiznest.core.quiz_importer import (
    load_sample_quiz,
    parse_concept_json,
    parse_concepts_for_analytics,
    parse_quiz_json,
)
from quiznest.core.services.analytics import ConceptPerformance, compute_concept_performance
from quiznest.core.services.concept_playback import (
    ConceptCursor,
    ConceptPlayback,
    ConceptResults,
    ConceptStage,
)
from quiznest.core.services.playback_common import Clock
from quiznest.core.services.quiz_playback import InProgress, QuizPhase, QuizPlayback, QuizResults
from quiznest.core.services.quiz_repository import (
    ALL_FOLDERS,
    Folder,
    FolderNode,
    QuizRepository,
    SavedQuiz,
)
from quiznest.core.services.saved_quizzes import SavedQuizzesListing

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """Raised when a play-through handle is unknown or already closed."""


@dataclass(slots=True)
class QuizSessionSnapshot:
    """Copy of a quiz play-through taken under the manager lock."""

    session_id: str
    quiz_id: str
    title: str
    description: str
    phase: QuizPhase
    total_questions: int
    question_index: int | None
    question: Question | None
    selected_option_index: int | None
    sub_selections: dict[int, int]
    submitted: bool
    option_markers: list[str | None]
    revealing: bool
    progress: int
    answers: list[AnswerRecord]
    results: QuizResults | None


@dataclass(slots=True)
class ConceptSessionSnapshot:
    session_id: str
    quiz_id: str
    title: str
    description: str
    cursor: ConceptCursor
    total_concepts: int
    concept_name: str | None
    concept_explanation: str | None
    sub_explanation_count: int
    sub_title: str | None
    sub_explanation: str | None
    question: ConceptQuestion | None
    selected_option_index: int | None
    submitted: bool
    option_markers: list[str | None]
    revealing: bool
    progress: int
    answers: list[ConceptAnswer]
    results: ConceptResults | None


@dataclass(slots=True)
class ListingOutcome:
    """Result of a change made through a saved-quizzes listing."""

    ok: bool
    items: list[SavedQuiz]
    notifications: list[str] = field(default_factory=list)


@dataclass(slots=True)
class _QuizSession:
    quiz_id: str
    playback: QuizPlayback
    last_active: float


@dataclass(slots=True)
class _ConceptSession:
    quiz_id: str
    playback: ConceptPlayback
    last_active: float


class QuizManager:
    """Facade over the repository and the live play-through sessions."""

    def __init__(
        self,
        repository: QuizRepository | None = None,
        clock: Clock | None = None,
        session_idle_seconds: float = SESSION_IDLE_SECONDS,
    ) -> None:
        self._lock = Lock()
        self._repository = repository or QuizRepository()
        self._clock = clock
        self._session_idle_seconds = session_idle_seconds
        self._quiz_sessions: dict[str, _QuizSession] = {}
        self._concept_sessions: dict[str, _ConceptSession] = {}

    # --- Authoring ---

    def create_quiz(
        self,
        json_text: str,
        folder_id: str | None = None,
        concepts_json: str | None = None,
    ) -> SavedQuiz:
        """Validate authoring JSON and save it; raises ``QuizImportError`` when invalid."""
        quiz = parse_quiz_json(json_text).unwrap()
        if concepts_json and concepts_json.strip():
            quiz.concepts_used_in_quiz = parse_concepts_for_analytics(concepts_json).unwrap()
        with self._lock:
            return self._repository.save_quiz(quiz, folder_id=folder_id)

    def create_concept_quiz(
        self,
        title: str,
        description: str,
        json_text: str,
        folder_id: str | None = None,
    ) -> SavedQuiz:
        tree = parse_concept_json(json_text, title, description).unwrap()
        with self._lock:
            return self._repository.save_concept_tree(tree, folder_id=folder_id)

    def load_sample_quiz(self) -> SavedQuiz:
        quiz = load_sample_quiz()
        with self._lock:
            return self._repository.save_quiz(quiz)

    # --- Saved quizzes & folders ---

    def get_saved_quiz(self, quiz_id: str) -> SavedQuiz:
        with self._lock:
            return self._repository.get_quiz(quiz_id)

    def list_saved_quizzes(self, folder_id: str | None = ALL_FOLDERS) -> list[SavedQuiz]:
        with self._lock:
            return self._repository.list_quizzes(folder_id)

    def delete_saved_quiz(self, quiz_id: str, from_folder_id: str | None = None) -> ListingOutcome:
        with self._lock:
            listing = SavedQuizzesListing(self._repository, from_folder_id)
            deleted = listing.delete_quiz(quiz_id)
            return ListingOutcome(ok=deleted, items=listing.items, notifications=listing.pop_notifications())

    def move_saved_quiz(
        self,
        quiz_id: str,
        folder_id: str | None,
        from_folder_id: str | None = None,
    ) -> ListingOutcome:
        with self._lock:
            listing = SavedQuizzesListing(self._repository, from_folder_id)
            moved = listing.move_quiz(quiz_id, folder_id)
            return ListingOutcome(ok=moved, items=listing.items, notifications=listing.pop_notifications())

    def create_folder(self, name: str, parent_id: str | None = None, color: str | None = None) -> Folder:
        with self._lock:
            return self._repository.create_folder(name, parent_id=parent_id, color=color)

    def update_folder(self, folder_id: str, name: str | None = None, color: str | None = None) -> Folder:
        with self._lock:
            return self._repository.update_folder(folder_id, name=name, color=color)

    def delete_folder(self, folder_id: str) -> None:
        with self._lock:
            self._repository.delete_folder(folder_id)

    def get_folder_tree(self) -> list[FolderNode]:
        with self._lock:
            return self._repository.folder_tree()

    def get_folder_path(self, folder_id: str | None) -> list[Folder]:
        with self._lock:
            return self._repository.folder_path(folder_id)

    # --- Quiz play-throughs ---

    def open_quiz_session(self, quiz_id: str, seed: int | None = None) -> QuizSessionSnapshot:
        with self._lock:
            quiz = self._repository.get_quiz(quiz_id).to_quiz().unwrap()
            rng = random.Random(seed) if seed is not None else None
            self._reap_idle_sessions()
            session_id = uuid4().hex
            playback = QuizPlayback(quiz, rng=rng, clock=self._clock)
            self._quiz_sessions[session_id] = _QuizSession(quiz_id, playback, last_active=self._now())
            logger.info("Opened quiz session %s for quiz %s", session_id, quiz_id)
            return self._quiz_snapshot(session_id)

    def get_quiz_session(self, session_id: str) -> QuizSessionSnapshot:
        with self._lock:
            return self._quiz_snapshot(session_id)

    def start_quiz(self, session_id: str) -> QuizSessionSnapshot:
        with self._lock:
            self._get_quiz_playback(session_id).start()
            return self._quiz_snapshot(session_id)

    def select_quiz_option(self, session_id: str, option_index: int) -> QuizSessionSnapshot:
        with self._lock:
            self._get_quiz_playback(session_id).select_option(option_index)
            return self._quiz_snapshot(session_id)

    def select_sub_question_option(
        self, session_id: str, sub_question_id: int, option_index: int
    ) -> QuizSessionSnapshot:
        with self._lock:
            self._get_quiz_playback(session_id).select_sub_option(sub_question_id, option_index)
            return self._quiz_snapshot(session_id)

    def submit_quiz_answer(self, session_id: str) -> QuizSessionSnapshot:
        with self._lock:
            self._get_quiz_playback(session_id).submit()
            return self._quiz_snapshot(session_id)

    def advance_quiz(self, session_id: str) -> QuizSessionSnapshot:
        with self._lock:
            self._get_quiz_playback(session_id).advance()
            return self._quiz_snapshot(session_id)

    def restart_quiz(self, session_id: str) -> QuizSessionSnapshot:
        with self._lock:
            self._get_quiz_playback(session_id).restart()
            return self._quiz_snapshot(session_id)

    def get_concept_performance(self, session_id: str) -> list[ConceptPerformance] | None:
        """Per-concept analytics for a completed play-through, ``None`` if unavailable."""
        with self._lock:
            playback = self._get_quiz_playback(session_id)
            results = playback.results()
            return compute_concept_performance(playback.quiz, results.answers)

    # --- Concept play-throughs ---

    def open_concept_session(self, quiz_id: str) -> ConceptSessionSnapshot:
        with self._lock:
            tree = self._repository.get_quiz(quiz_id).to_concept_tree().unwrap()
            self._reap_idle_sessions()
            session_id = uuid4().hex
            playback = ConceptPlayback(tree, clock=self._clock)
            self._concept_sessions[session_id] = _ConceptSession(quiz_id, playback, last_active=self._now())
            logger.info("Opened concept session %s for quiz %s", session_id, quiz_id)
            return self._concept_snapshot(session_id)

    def get_concept_session(self, session_id: str) -> ConceptSessionSnapshot:
        with self._lock:
            return self._concept_snapshot(session_id)

    def continue_concept(self, session_id: str) -> ConceptSessionSnapshot:
        with self._lock:
            self._get_concept_playback(session_id).proceed()
            return self._concept_snapshot(session_id)

    def select_concept_option(self, session_id: str, option_index: int) -> ConceptSessionSnapshot:
        with self._lock:
            self._get_concept_playback(session_id).select_option(option_index)
            return self._concept_snapshot(session_id)

    def submit_concept_answer(self, session_id: str) -> ConceptSessionSnapshot:
        with self._lock:
            self._get_concept_playback(session_id).submit()
            return self._concept_snapshot(session_id)

    def advance_concept(self, session_id: str) -> ConceptSessionSnapshot:
        with self._lock:
            self._get_concept_playback(session_id).advance()
            return self._concept_snapshot(session_id)

    def go_back_concept(self, session_id: str) -> ConceptSessionSnapshot:
        with self._lock:
            self._get_concept_playback(session_id).back()
            return self._concept_snapshot(session_id)

    def restart_concept(self, session_id: str) -> ConceptSessionSnapshot:
        with self._lock:
            self._get_concept_playback(session_id).restart()
            return self._concept_snapshot(session_id)

    def close_session(self, session_id: str) -> None:
        """Discard a play-through; unsaved answers are dropped silently."""
        with self._lock:
            removed = self._quiz_sessions.pop(session_id, None) or self._concept_sessions.pop(session_id, None)
            if removed is None:
                raise SessionNotFoundError(f"Unknown session {session_id}")

    # --- Internals (lock held) ---

    def _get_quiz_playback(self, session_id: str) -> QuizPlayback:
        session = self._quiz_sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Unknown session {session_id}")
        session.last_active = self._now()
        return session.playback

    def _get_concept_playback(self, session_id: str) -> ConceptPlayback:
        session = self._concept_sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Unknown session {session_id}")
        session.last_active = self._now()
        return session.playback

    def _now(self) -> float:
        return (self._clock or time.monotonic)()

    def _reap_idle_sessions(self) -> None:
        """Drop play-throughs nobody has touched within the idle limit."""
        cutoff = self._now() - self._session_idle_seconds
        for sessions in (self._quiz_sessions, self._concept_sessions):
            idle = [sid for sid, session in sessions.items() if session.last_active < cutoff]
            for session_id in idle:
                del sessions[session_id]
            if idle:
                logger.info("Dropped %d idle sessions", len(idle))

    def _quiz_snapshot(self, session_id: str) -> QuizSessionSnapshot:
        playback = self._get_quiz_playback(session_id)
        state = playback.state
        in_progress = isinstance(state, InProgress)
        quiz: Quiz = playback.quiz
        completed = playback.phase is QuizPhase.COMPLETED
        return QuizSessionSnapshot(
            session_id=session_id,
            quiz_id=self._quiz_sessions[session_id].quiz_id,
            title=quiz.title,
            description=quiz.description,
            phase=playback.phase,
            total_questions=playback.total_questions,
            question_index=state.question_index if in_progress else None,
            question=playback.current_question(),
            selected_option_index=state.selected_option_index if in_progress else None,
            sub_selections=dict(state.sub_selections) if in_progress else {},
            submitted=state.submitted if in_progress else False,
            option_markers=playback.option_markers() if in_progress else [],
            revealing=playback.is_revealing(),
            progress=playback.progress_percentage(),
            answers=playback.answers,
            results=playback.results() if completed else None,
        )

    def _concept_snapshot(self, session_id: str) -> ConceptSessionSnapshot:
        playback = self._get_concept_playback(session_id)
        concept = playback.current_concept()
        sub = playback.current_sub_explanation()
        question = playback.current_question()
        finished = playback.stage is ConceptStage.RESULTS
        return ConceptSessionSnapshot(
            session_id=session_id,
            quiz_id=self._concept_sessions[session_id].quiz_id,
            title=playback.tree.title,
            description=playback.tree.description,
            cursor=playback.cursor,
            total_concepts=playback.total_concepts,
            concept_name=concept.name if concept else None,
            concept_explanation=concept.explanation if concept else None,
            sub_explanation_count=len(concept.sub_explanations) if concept else 0,
            sub_title=sub.title if sub else None,
            sub_explanation=sub.explanation if sub else None,
            question=question,
            selected_option_index=playback.selected_option_index,
            submitted=playback.submitted,
            option_markers=playback.option_markers() if question else [],
            revealing=playback.is_revealing(),
            progress=playback.progress_percentage(),
            answers=playback.answers,
            results=playback.results() if finished else None,
        )
