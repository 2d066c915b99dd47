import pytest

from quiznest.core.models import ConceptQuestion, Option, Question
from quiznest.core.scoring import resolve_score, resolve_sub_score


def _question(**kwargs) -> Question:
    options = [Option(text="yes", is_correct=True), Option(text="no", is_correct=False)]
    return Question(id=1, text="Q", options=options, explanation="", **kwargs)


@pytest.mark.parametrize(
    ("is_correct", "expected"),
    [(True, 100), (False, -50)],
)
def test_default_tariff(is_correct, expected):
    question = _question()
    option = question.options[0 if is_correct else 1]
    assert resolve_score(option, question, is_correct) == expected


def test_option_score_wins_over_everything():
    question = _question(correct_score=150, incorrect_score=-75)
    assert resolve_score(Option(text="x", is_correct=False, score=7), question, False) == 7
    assert resolve_score(Option(text="x", is_correct=True, score=-3), question, True) == -3


def test_zero_option_score_is_used_verbatim():
    question = _question()
    assert resolve_score(Option(text="x", is_correct=True, score=0), question, True) == 0


def test_question_scores_override_defaults():
    question = _question(correct_score=150, incorrect_score=-75)
    assert resolve_score(question.options[0], question, True) == 150
    assert resolve_score(question.options[1], question, False) == -75


def test_partial_question_override_falls_back_per_outcome():
    only_correct = _question(correct_score=150)
    assert resolve_score(only_correct.options[0], only_correct, True) == 150
    assert resolve_score(only_correct.options[1], only_correct, False) == -50

    only_incorrect = _question(incorrect_score=-10)
    assert resolve_score(only_incorrect.options[0], only_incorrect, True) == 100
    assert resolve_score(only_incorrect.options[1], only_incorrect, False) == -10


def test_concept_questions_use_default_tariff():
    question = ConceptQuestion(text="Q", options=[Option(text="a", is_correct=True)])
    assert resolve_score(question.options[0], question, True) == 100
    assert resolve_score(Option(text="b", is_correct=False), question, False) == -50


def test_sub_question_tariff():
    assert resolve_sub_score(Option(text="a", is_correct=True), True) == 50
    assert resolve_sub_score(Option(text="b", is_correct=False), False) == -25
    assert resolve_sub_score(Option(text="c", is_correct=False, score=12), False) == 12
