"""Shared fixtures for the QuizNest test-suite."""

from __future__ import annotations

import pytest

from quiznest.core.models import (
    Concept,
    ConceptExplanation,
    ConceptQuestion,
    ConceptTree,
    Option,
    Question,
    Quiz,
    SubExplanation,
    SubQuestion,
)


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _options(count: int, correct_index: int) -> list[Option]:
    return [Option(text=f"Option {idx}", is_correct=idx == correct_index) for idx in range(count)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_question():
    def factory(question_id: int, correct_index: int = 0, option_count: int = 4, **kwargs) -> Question:
        return Question(
            id=question_id,
            text=f"Question {question_id}",
            options=_options(option_count, correct_index),
            explanation=f"Explanation {question_id}",
            **kwargs,
        )

    return factory


@pytest.fixture
def make_quiz(make_question):
    def factory(question_count: int = 2, **kwargs) -> Quiz:
        questions = [make_question(idx + 1, correct_index=idx % 4) for idx in range(question_count)]
        return Quiz(title="Sample", description="Sample quiz", questions=questions, **kwargs)

    return factory


@pytest.fixture
def quiz_with_sub_questions(make_question) -> Quiz:
    main = make_question(1)
    main.sub_questions = [
        SubQuestion(id=11, text="Sub 1", options=_options(2, 0), explanation="Sub 1 explanation"),
        SubQuestion(id=12, text="Sub 2", options=_options(2, 1), explanation="Sub 2 explanation"),
    ]
    return Quiz(title="With subs", description="Sub-questions", questions=[main, make_question(2)])


@pytest.fixture
def tagged_quiz(make_question) -> Quiz:
    questions = [
        make_question(1, concept_id=1),
        make_question(2, concept_id=2),
        make_question(3, concept_id=1),
        make_question(4),
        make_question(5, concept_id=99),
    ]
    concepts = [Concept(id=1, label="Factoring"), Concept(id=2, label="Complex numbers"), Concept(id=3, label="Unused")]
    return Quiz(title="Tagged", description="Tagged quiz", questions=questions, concepts_used_in_quiz=concepts)


def concept_question(text: str, correct_index: int = 0) -> ConceptQuestion:
    return ConceptQuestion(text=text, options=_options(3, correct_index), explanation=f"Because {text}")


@pytest.fixture
def concept_tree() -> ConceptTree:
    """Two concepts covering every kind of node, including empty ones."""
    return ConceptTree(
        title="Complex numbers",
        description="Nested walkthrough",
        concepts=[
            ConceptExplanation(
                name="Imaginary unit",
                explanation="i squared is -1",
                questions=[concept_question("A1"), concept_question("A2", correct_index=1)],
                sub_explanations=[
                    SubExplanation(title="Powers of i", explanation="Cycle of four", questions=[concept_question("A-S1")]),
                ],
            ),
            ConceptExplanation(name="Empty", explanation="Nothing to ask here"),
            ConceptExplanation(
                name="Conjugates",
                explanation="Flip the sign of the imaginary part",
                sub_explanations=[
                    SubExplanation(title="Notation", explanation="z bar"),
                    SubExplanation(
                        title="Products",
                        explanation="z times z bar is real",
                        questions=[concept_question("C-S1"), concept_question("C-S2", correct_index=2)],
                    ),
                ],
            ),
        ],
    )
