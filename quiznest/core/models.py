"""Domain models for quizzes, concept trees and play-through answers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class Option:
    """Answer option; identified by its position inside the owning question."""

    text: str
    is_correct: bool
    score: float | None = None  # Author-controlled override, sign included


@dataclass(slots=True)
class SubQuestion:
    """Secondary question attached to a main question."""

    id: int
    text: str
    options: list[Option]
    explanation: str
    citations: str | None = None


@dataclass(slots=True)
class Question:
    """Multiple-choice question of a flat quiz."""

    id: int
    text: str
    options: list[Option]
    explanation: str
    concept_id: int | None = None
    sub_questions: list[SubQuestion] = field(default_factory=list)
    correct_score: float | None = None
    incorrect_score: float | None = None
    citations: str | None = None


@dataclass(slots=True)
class Concept:
    """Labeled topic used to tag questions for analytics."""

    id: int
    label: str


@dataclass(slots=True)
class Quiz:
    """A flat quiz as supplied by the author."""

    title: str
    description: str
    questions: list[Question]
    concepts_used_in_quiz: list[Concept] = field(default_factory=list)


@dataclass(slots=True)
class ConceptQuestion:
    """Question inside a concept explanation tree."""

    text: str
    options: list[Option]
    explanation: str | None = None


@dataclass(slots=True)
class SubExplanation:
    title: str
    explanation: str
    questions: list[ConceptQuestion] = field(default_factory=list)


@dataclass(slots=True)
class ConceptExplanation:
    """Node of the concept explanation tree (not the analytics Concept)."""

    name: str
    explanation: str
    questions: list[ConceptQuestion] = field(default_factory=list)
    sub_explanations: list[SubExplanation] = field(default_factory=list)


@dataclass(slots=True)
class ConceptTree:
    """Ordered concept explanations saved under a title and description."""

    title: str
    description: str
    concepts: list[ConceptExplanation]

    def question_count(self) -> int:
        total = 0
        for concept in self.concepts:
            total += len(concept.questions)
            total += sum(len(sub.questions) for sub in concept.sub_explanations)
        return total


@dataclass(slots=True)
class SubAnswer:
    sub_question_id: int
    selected_option_index: int
    is_correct: bool
    score: float


@dataclass(slots=True)
class AnswerRecord:
    """Answer given to one question of a flat quiz play-through."""

    question_id: int
    selected_option_index: int
    is_correct: bool
    score: float
    sub_answers: list[SubAnswer] = field(default_factory=list)

    @property
    def total_score(self) -> float:
        return self.score + sum(sub.score for sub in self.sub_answers)


@dataclass(slots=True)
class ConceptAnswer:
    """Answer given inside a concept play-through."""

    concept_index: int
    question_index: int
    selected_option_index: int
    is_correct: bool
    score: float
    is_sub_explanation: bool = False
    sub_explanation_index: int | None = None
