"""Randomized presentation order for questions and options.

The shuffle keeps every element object intact and only changes positions, so
correctness flags, per-option scores and question ids travel with the element.
"""

from __future__ import annotations

from dataclasses import replace
import random
from typing import Sequence, TypeVar

from quiznest.core.models import Question, Quiz, SubQuestion

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a Fisher-Yates shuffled copy of ``items``; the input is untouched."""
    source = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = source.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def shuffle_quiz(quiz: Quiz, rng: random.Random | None = None) -> Quiz:
    """Shuffle question order and, independently, every option list."""
    questions = [_shuffle_question(question, rng) for question in shuffle(quiz.questions, rng)]
    return replace(quiz, questions=questions)


def _shuffle_question(question: Question, rng: random.Random | None) -> Question:
    return replace(
        question,
        options=shuffle(question.options, rng),
        sub_questions=[_shuffle_sub_question(sub, rng) for sub in question.sub_questions],
    )


def _shuffle_sub_question(sub_question: SubQuestion, rng: random.Random | None) -> SubQuestion:
    return replace(sub_question, options=shuffle(sub_question.options, rng))
