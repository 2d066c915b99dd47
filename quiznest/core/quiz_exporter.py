"""Utilities for exporting quizzes to the authoring JSON used for imports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from quiznest.core.models import (
    ConceptQuestion,
    ConceptTree,
    Option,
    Question,
    Quiz,
    SubQuestion,
)

# Concept trees are persisted inside a single synthetic question entry.
CONCEPT_DATA_KEY = "concept_data"


def save_quiz_to_file(file_path: Path, quiz: Quiz) -> None:
    """Persist the quiz to disk as authoring JSON."""

    if not quiz.questions:
        raise ValueError("Cannot export an empty quiz.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    document = json.dumps(quiz_to_document(quiz), indent=2, ensure_ascii=False)
    file_path.write_text(document + "\n", encoding="utf-8")


def quiz_to_document(quiz: Quiz) -> dict[str, Any]:
    document: dict[str, Any] = {
        "quiz_title": quiz.title,
        "description": quiz.description,
        "questions": [_serialize_question(q) for q in quiz.questions],
    }
    if quiz.concepts_used_in_quiz:
        document["concepts_used_in_quiz"] = [
            {"id": concept.id, "concept": concept.label} for concept in quiz.concepts_used_in_quiz
        ]
    return document


def concept_tree_to_document(tree: ConceptTree) -> dict[str, Any]:
    return {
        "concepts": [
            {
                "name": concept.name,
                "explanation": concept.explanation,
                "questions": [_serialize_concept_question(q) for q in concept.questions],
                "sub_explanations": [
                    {
                        "title": sub.title,
                        "explanation": sub.explanation,
                        "questions": [_serialize_concept_question(q) for q in sub.questions],
                    }
                    for sub in concept.sub_explanations
                ],
            }
            for concept in tree.concepts
        ]
    }


def serialize_stored_questions(quiz: Quiz | ConceptTree) -> str:
    """Encode the ``questions`` column of a persisted quiz record."""
    if isinstance(quiz, ConceptTree):
        return json.dumps([{CONCEPT_DATA_KEY: concept_tree_to_document(quiz)}], ensure_ascii=False)
    return json.dumps(quiz_to_document(quiz)["questions"], ensure_ascii=False)


def _serialize_option(option: Option) -> dict[str, Any]:
    data: dict[str, Any] = {"text": option.text, "is_correct": option.is_correct}
    if option.score is not None:
        data["score"] = option.score
    return data


def _serialize_sub_question(sub_question: SubQuestion) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": sub_question.id,
        "question_text": sub_question.text,
        "options": [_serialize_option(o) for o in sub_question.options],
        "explanation": sub_question.explanation,
    }
    if sub_question.citations is not None:
        data["citations"] = sub_question.citations
    return data


def _serialize_question(question: Question) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": question.id,
        "question_text": question.text,
        "options": [_serialize_option(o) for o in question.options],
        "explanation": question.explanation,
    }
    optional = {
        "citations": question.citations,
        "concept_id": question.concept_id,
        "correct_score": question.correct_score,
        "incorrect_score": question.incorrect_score,
    }
    data.update({key: value for key, value in optional.items() if value is not None})
    if question.sub_questions:
        data["sub_questions"] = [_serialize_sub_question(s) for s in question.sub_questions]
    return data


def _serialize_concept_question(question: ConceptQuestion) -> dict[str, Any]:
    data: dict[str, Any] = {
        "question_text": question.text,
        "options": [_serialize_option(o) for o in question.options],
    }
    if question.explanation is not None:
        data["explanation"] = question.explanation
    return data
