"""Pydantic schemas describing the JSON documents authors paste in.

The schemas only describe and validate the untrusted documents; the importer
turns a validated document into domain models from ``quiznest.core.models``.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, Field, StrictBool, field_validator, model_validator

NonEmptyStr = Annotated[str, Field(min_length=1)]


class OptionSchema(BaseModel):
    text: NonEmptyStr
    # Only a literal JSON true marks an option correct.
    is_correct: StrictBool = False
    score: float | None = None


def _none_as_empty(value: Any) -> Any:
    # Authors may write null for an optional list.
    return [] if value is None else value


def _require_correct_option(options: list[OptionSchema]) -> None:
    if not any(option.is_correct for option in options):
        raise ValueError("must have at least one correct answer")


class SubQuestionSchema(BaseModel):
    id: int
    question_text: NonEmptyStr
    options: Annotated[list[OptionSchema], Field(min_length=1)]
    explanation: NonEmptyStr
    citations: str | None = None

    @model_validator(mode="after")
    def _check_correct_option(self) -> "SubQuestionSchema":
        _require_correct_option(self.options)
        return self


class QuestionSchema(BaseModel):
    id: int
    question_text: NonEmptyStr
    options: Annotated[list[OptionSchema], Field(min_length=1)]
    explanation: NonEmptyStr
    citations: str | None = None
    concept_id: int | None = None
    sub_questions: list[SubQuestionSchema] = Field(default_factory=list)
    correct_score: float | None = None
    incorrect_score: float | None = None

    @field_validator("sub_questions", mode="before")
    @classmethod
    def _null_sub_questions(cls, value: Any) -> Any:
        return _none_as_empty(value)

    @model_validator(mode="after")
    def _check_correct_option(self) -> "QuestionSchema":
        _require_correct_option(self.options)
        return self


class QuizConceptSchema(BaseModel):
    id: int
    concept: NonEmptyStr


class QuizDocumentSchema(BaseModel):
    """Regular quiz: ``{quiz_title, description, questions, concepts_used_in_quiz?}``."""

    quiz_title: NonEmptyStr
    description: NonEmptyStr
    questions: Annotated[list[QuestionSchema], Field(min_length=1)]
    concepts_used_in_quiz: list[QuizConceptSchema] = Field(default_factory=list)

    @field_validator("concepts_used_in_quiz", mode="before")
    @classmethod
    def _null_concepts(cls, value: Any) -> Any:
        return _none_as_empty(value)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "QuizDocumentSchema":
        seen: set[int] = set()
        for question in self.questions:
            if question.id in seen:
                raise ValueError(f"question id {question.id} is used more than once")
            seen.add(question.id)
        return self


class ConceptsForAnalyticsSchema(BaseModel):
    concepts_used_in_quiz: list[QuizConceptSchema]


class ConceptQuestionSchema(BaseModel):
    question_text: NonEmptyStr
    explanation: str | None = None
    options: Annotated[list[OptionSchema], Field(min_length=1)]

    @model_validator(mode="after")
    def _check_correct_option(self) -> "ConceptQuestionSchema":
        _require_correct_option(self.options)
        return self


class SubExplanationSchema(BaseModel):
    title: NonEmptyStr
    explanation: NonEmptyStr
    questions: list[ConceptQuestionSchema] = Field(default_factory=list)

    @field_validator("questions", mode="before")
    @classmethod
    def _null_questions(cls, value: Any) -> Any:
        return _none_as_empty(value)


class ConceptSchema(BaseModel):
    name: NonEmptyStr
    explanation: NonEmptyStr
    questions: list[ConceptQuestionSchema] = Field(default_factory=list)
    sub_explanations: list[SubExplanationSchema] = Field(default_factory=list)

    @field_validator("questions", "sub_explanations", mode="before")
    @classmethod
    def _null_lists(cls, value: Any) -> Any:
        return _none_as_empty(value)


class ConceptDocumentSchema(BaseModel):
    """Concept quiz: ``{concepts: [{name, explanation, questions?, sub_explanations?}]}``."""

    concepts: Annotated[list[ConceptSchema], Field(min_length=1)]
