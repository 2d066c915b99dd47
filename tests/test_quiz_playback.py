import random

import pytest

from quiznest.core.models import Option, Question, Quiz
from quiznest.core.services.playback_common import PlaybackError
from quiznest.core.services.quiz_playback import (
    Completed,
    InProgress,
    NotStarted,
    QuizPhase,
    QuizPlayback,
)


def _correct_index(question) -> int:
    return next(idx for idx, option in enumerate(question.options) if option.is_correct)


def _wrong_index(question) -> int:
    return next(idx for idx, option in enumerate(question.options) if not option.is_correct)


def _answer(playback: QuizPlayback, correct: bool = True) -> None:
    question = playback.current_question()
    playback.select_option(_correct_index(question) if correct else _wrong_index(question))
    playback.submit()
    playback.advance()


def test_empty_quiz_is_rejected():
    with pytest.raises(ValueError):
        QuizPlayback(Quiz(title="Empty", description="", questions=[]))


def test_one_right_one_wrong_scores_fifty(make_quiz):
    playback = QuizPlayback(make_quiz(2), rng=random.Random(5))
    assert isinstance(playback.state, NotStarted)

    playback.start()
    _answer(playback, correct=True)
    _answer(playback, correct=False)

    assert isinstance(playback.state, Completed)
    results = playback.results()
    assert results.correct_answers == 1
    assert results.total_questions == 2
    assert results.total_score == 50
    assert results.percentage == 50


def test_every_question_gets_exactly_one_answer(make_quiz):
    playback = QuizPlayback(make_quiz(6), rng=random.Random(11))
    playback.start()
    seen = []
    while playback.phase is QuizPhase.IN_PROGRESS:
        seen.append(playback.current_question().id)
        _answer(playback)

    assert sorted(seen) == [1, 2, 3, 4, 5, 6]
    assert [answer.question_id for answer in playback.answers] == seen
    assert playback.results().percentage == 100
    assert playback.progress_percentage() == 100


def test_selection_can_change_until_submitted(make_quiz):
    playback = QuizPlayback(make_quiz(1))
    playback.start()
    playback.select_option(1)
    playback.select_option(2)
    assert playback.state.selected_option_index == 2

    playback.submit()
    with pytest.raises(PlaybackError):
        playback.select_option(0)
    with pytest.raises(PlaybackError):
        playback.submit()


def test_cannot_submit_without_selection_or_advance_before_submit(make_quiz):
    playback = QuizPlayback(make_quiz(2))
    playback.start()
    with pytest.raises(PlaybackError):
        playback.submit()
    playback.select_option(0)
    with pytest.raises(PlaybackError):
        playback.advance()


def test_actions_outside_a_question_are_rejected(make_quiz):
    playback = QuizPlayback(make_quiz(1))
    with pytest.raises(PlaybackError):
        playback.select_option(0)
    with pytest.raises(PlaybackError):
        playback.results()
    playback.start()
    with pytest.raises(PlaybackError):
        playback.start()
    _answer(playback)
    with pytest.raises(PlaybackError):
        playback.advance()


def test_out_of_range_option_is_rejected(make_quiz):
    playback = QuizPlayback(make_quiz(1))
    playback.start()
    with pytest.raises(ValueError):
        playback.select_option(4)
    with pytest.raises(ValueError):
        playback.select_option(-1)


def test_sub_questions_gate_submission_and_add_their_scores(quiz_with_sub_questions):
    playback = QuizPlayback(quiz_with_sub_questions, rng=random.Random(2))
    playback.start()
    while playback.current_question().id != 1:
        _answer(playback)

    question = playback.current_question()
    playback.select_option(_correct_index(question))
    with pytest.raises(PlaybackError):
        playback.submit()

    first, second = question.sub_questions
    playback.select_sub_option(first.id, _correct_index(first))
    with pytest.raises(PlaybackError):
        playback.submit()
    with pytest.raises(ValueError):
        playback.select_sub_option(999, 0)

    playback.select_sub_option(second.id, _wrong_index(second))
    record = playback.submit()

    assert record.score == 100
    assert [(sub.sub_question_id, sub.is_correct, sub.score) for sub in record.sub_answers] == [
        (11, True, 50),
        (12, False, -25),
    ]
    assert record.total_score == 125


def test_markers_appear_only_after_submission(make_quiz):
    playback = QuizPlayback(make_quiz(1))
    playback.start()
    question = playback.current_question()
    wrong = _wrong_index(question)
    playback.select_option(wrong)
    assert playback.option_markers() == [None] * 4

    playback.submit()
    markers = playback.option_markers()
    assert markers[_correct_index(question)] == "correct"
    assert markers[wrong] == "incorrect"
    assert markers.count(None) == 2


def test_reveal_window_closes_after_two_seconds(make_quiz, clock):
    playback = QuizPlayback(make_quiz(2), clock=clock)
    playback.start()
    assert not playback.is_revealing()

    playback.select_option(0)
    playback.submit()
    assert playback.is_revealing()
    clock.advance(1.9)
    assert playback.is_revealing()
    clock.advance(0.2)
    assert not playback.is_revealing()

    playback.advance()
    playback.select_option(0)
    playback.submit()
    assert playback.is_revealing()
    playback.advance()
    assert not playback.is_revealing()


def test_option_score_flows_into_answers():
    question = Question(
        id=7,
        text="Bonus",
        options=[Option(text="big", is_correct=True, score=200), Option(text="small", is_correct=False)],
        explanation="",
        correct_score=150,
        incorrect_score=-75,
    )
    playback = QuizPlayback(Quiz(title="Bonus", description="", questions=[question]))
    playback.start()
    question = playback.current_question()
    playback.select_option(_wrong_index(question))
    assert playback.submit().score == -75
    playback.advance()

    playback.restart()
    playback.start()
    playback.select_option(_correct_index(playback.current_question()))
    assert playback.submit().score == 200


def test_restart_clears_answers_and_reshuffles(make_quiz):
    quiz = make_quiz(8)
    playback = QuizPlayback(quiz, rng=random.Random(4))
    playback.start()
    first_order = [q.id for q in playback.quiz.questions]
    _answer(playback)
    assert playback.progress_percentage() == round(1 / 8 * 100)

    playback.restart()
    assert isinstance(playback.state, NotStarted)
    assert playback.answers == []
    assert playback.quiz is quiz
    assert playback.progress_percentage() == 0

    playback.start()
    assert isinstance(playback.state, InProgress)
    assert sorted(q.id for q in playback.quiz.questions) == sorted(first_order)
