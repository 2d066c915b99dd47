"""Import quizzes and concept trees from authoring JSON.

Three documents are accepted:

    Regular quiz      {"quiz_title", "description", "questions": [...],
                       "concepts_used_in_quiz"?: [{"id", "concept"}]}
    Concept tree      {"concepts": [{"name", "explanation", "questions"?,
                                     "sub_explanations"?: [...]}]}
    Analytics concepts {"concepts_used_in_quiz": [{"id", "concept"}]}

Parsing never raises for bad input. Each parser returns either
``ImportSuccess`` carrying the domain value or ``ImportFailure`` whose ``kind``
tells a JSON syntax error apart from a schema violation, so the caller can show
the author a blocking message before anything is saved or played.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ValidationError

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
from quiznest.core.schemas import (
    ConceptDocumentSchema,
    ConceptQuestionSchema,
    ConceptsForAnalyticsSchema,
    OptionSchema,
    QuestionSchema,
    QuizConceptSchema,
    QuizDocumentSchema,
)

T = TypeVar("T")
SchemaT = TypeVar("SchemaT", bound=BaseModel)

SYNTAX_ERROR = "syntax"
SCHEMA_ERROR = "schema"

SAMPLE_QUIZ_PATH = Path(__file__).resolve().parent.parent / "data" / "sample_quiz.json"


class QuizImportError(Exception):
    """Raised when a failed import is unwrapped."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(slots=True)
class ImportSuccess(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(slots=True)
class ImportFailure:
    kind: str
    message: str

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise QuizImportError(self.kind, self.message)


ImportResult = Union[ImportSuccess[T], ImportFailure]


def parse_quiz_json(text: str) -> ImportResult[Quiz]:
    """Validate a regular quiz document and build a ``Quiz``."""
    decoded = _decode(text)
    if isinstance(decoded, ImportFailure):
        return decoded
    return quiz_from_document(decoded)


def quiz_from_document(document: Any) -> ImportResult[Quiz]:
    """Validate an already decoded quiz document."""
    validated = _validate(QuizDocumentSchema, document)
    if isinstance(validated, ImportFailure):
        return validated
    return ImportSuccess(_build_quiz(validated))


def parse_concept_json(text: str, title: str, description: str) -> ImportResult[ConceptTree]:
    """Validate a concept document and attach the title/description it is saved under."""
    if not title.strip() or not description.strip():
        return ImportFailure(SCHEMA_ERROR, "Please enter title, description, and concept JSON data")
    decoded = _decode(text)
    if isinstance(decoded, ImportFailure):
        return decoded
    return concept_tree_from_document(decoded, title.strip(), description.strip())


def concept_tree_from_document(document: Any, title: str, description: str) -> ImportResult[ConceptTree]:
    validated = _validate(ConceptDocumentSchema, document)
    if isinstance(validated, ImportFailure):
        return validated
    concepts = [
        ConceptExplanation(
            name=concept.name,
            explanation=concept.explanation,
            questions=[_build_concept_question(q) for q in concept.questions],
            sub_explanations=[
                SubExplanation(
                    title=sub.title,
                    explanation=sub.explanation,
                    questions=[_build_concept_question(q) for q in sub.questions],
                )
                for sub in concept.sub_explanations
            ],
        )
        for concept in validated.concepts
    ]
    return ImportSuccess(ConceptTree(title=title, description=description, concepts=concepts))


def parse_concepts_for_analytics(text: str) -> ImportResult[list[Concept]]:
    """Parse the optional ``concepts_used_in_quiz`` document paired with a quiz."""
    decoded = _decode(text)
    if isinstance(decoded, ImportFailure):
        return decoded
    validated = _validate(ConceptsForAnalyticsSchema, decoded)
    if isinstance(validated, ImportFailure):
        return validated
    return ImportSuccess([_build_concept(c) for c in validated.concepts_used_in_quiz])


def load_quiz_from_file(file_path: Path) -> Quiz:
    """Read a quiz document from disk; raises ``QuizImportError`` when invalid."""
    text = file_path.read_text(encoding="utf-8")
    return parse_quiz_json(text).unwrap()


def load_sample_quiz() -> Quiz:
    return load_quiz_from_file(SAMPLE_QUIZ_PATH)


def _decode(text: str) -> Any:
    if not text or not text.strip():
        return ImportFailure(SYNTAX_ERROR, "Please enter JSON data")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        return ImportFailure(SYNTAX_ERROR, f"JSON formatting error: {exc.msg} (line {exc.lineno}, column {exc.colno})")


def _validate(schema: type[SchemaT], document: Any) -> SchemaT | ImportFailure:
    try:
        return schema.model_validate(document)
    except ValidationError as exc:
        return ImportFailure(SCHEMA_ERROR, _format_validation_error(exc))


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = _format_location(error["loc"])
        message = error["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def _format_location(loc: tuple[Any, ...]) -> str:
    """Render ``("questions", 0, "options")`` as ``questions[1].options``."""
    parts: list[str] = []
    for item in loc:
        if isinstance(item, int):
            # 1-based, the way authors count questions
            parts.append(f"[{item + 1}]")
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts)


def _build_option(option: OptionSchema) -> Option:
    return Option(text=option.text, is_correct=option.is_correct, score=option.score)


def _build_question(question: QuestionSchema) -> Question:
    return Question(
        id=question.id,
        text=question.question_text,
        options=[_build_option(o) for o in question.options],
        explanation=question.explanation,
        concept_id=question.concept_id,
        sub_questions=[
            SubQuestion(
                id=sub.id,
                text=sub.question_text,
                options=[_build_option(o) for o in sub.options],
                explanation=sub.explanation,
                citations=sub.citations,
            )
            for sub in question.sub_questions
        ],
        correct_score=question.correct_score,
        incorrect_score=question.incorrect_score,
        citations=question.citations,
    )


def _build_concept(concept: QuizConceptSchema) -> Concept:
    return Concept(id=concept.id, label=concept.concept)


def _build_quiz(document: QuizDocumentSchema) -> Quiz:
    return Quiz(
        title=document.quiz_title,
        description=document.description,
        questions=[_build_question(q) for q in document.questions],
        concepts_used_in_quiz=[_build_concept(c) for c in document.concepts_used_in_quiz],
    )


def _build_concept_question(question: ConceptQuestionSchema) -> ConceptQuestion:
    return ConceptQuestion(
        text=question.question_text,
        options=[_build_option(o) for o in question.options],
        explanation=question.explanation,
    )
