"""Service storing saved quiz records and the folders that organize them.

Records keep the shape of the hosted ``quizzes`` table: the questions column
is a JSON string and ``quiz_type`` tells regular quizzes from concept trees,
which are stored inside one synthetic question entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import logging
from typing import Any
from uuid import uuid4

from quiznest.constants.quiz_constants import (
    DEFAULT_FOLDER_COLOR,
    QUIZ_TYPE_CONCEPT,
    QUIZ_TYPE_REGULAR,
)
from quiznest.core.models import ConceptTree, Quiz
from quiznest.core.quiz_exporter import CONCEPT_DATA_KEY, serialize_stored_questions
from quiznest.core.quiz_importer import (
    ImportFailure,
    ImportResult,
    SCHEMA_ERROR,
    concept_tree_from_document,
    quiz_from_document,
)

logger = logging.getLogger(__name__)

# Sentinel for "no folder filter"; ``None`` means the root folder.
ALL_FOLDERS: Any = object()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizNotFoundError(LookupError):
    """Raised when a saved quiz id is unknown."""


class FolderNotFoundError(LookupError):
    """Raised when a folder id is unknown."""


@dataclass(slots=True)
class SavedQuiz:
    """Persisted quiz record."""

    id: str
    quiz_title: str
    description: str
    questions: str
    quiz_type: str = QUIZ_TYPE_REGULAR
    folder_id: str | None = None
    user_id: str | None = None
    concepts_used_in_quiz: list[dict[str, Any]] | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def to_quiz(self) -> ImportResult[Quiz]:
        if self.quiz_type != QUIZ_TYPE_REGULAR:
            return ImportFailure(SCHEMA_ERROR, "Saved quiz is a concept quiz")
        document: dict[str, Any] = {
            "quiz_title": self.quiz_title,
            "description": self.description,
            "questions": json.loads(self.questions),
        }
        if self.concepts_used_in_quiz:
            document["concepts_used_in_quiz"] = self.concepts_used_in_quiz
        return quiz_from_document(document)

    def to_concept_tree(self) -> ImportResult[ConceptTree]:
        entries = json.loads(self.questions)
        if self.quiz_type != QUIZ_TYPE_CONCEPT or not entries or CONCEPT_DATA_KEY not in entries[0]:
            return ImportFailure(SCHEMA_ERROR, "Saved quiz does not contain concept data")
        return concept_tree_from_document(entries[0][CONCEPT_DATA_KEY], self.quiz_title, self.description)


@dataclass(slots=True)
class Folder:
    id: str
    name: str
    parent_id: str | None = None
    color: str = DEFAULT_FOLDER_COLOR
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass(slots=True)
class FolderNode:
    """Folder with its nested children, as shown in the folder tree."""

    folder: Folder
    children: list[FolderNode] = field(default_factory=list)
    quiz_count: int = 0


class QuizRepository:
    """Manages saved quizzes and folders."""

    def __init__(self) -> None:
        self._quizzes: dict[str, SavedQuiz] = {}
        self._folders: dict[str, Folder] = {}

    # --- Quizzes ---

    def save_quiz(
        self,
        quiz: Quiz,
        folder_id: str | None = None,
        user_id: str | None = None,
    ) -> SavedQuiz:
        if not quiz.questions:
            raise ValueError("Quiz must contain at least one question.")
        concepts = [{"id": c.id, "concept": c.label} for c in quiz.concepts_used_in_quiz] or None
        return self._insert(
            quiz.title, quiz.description, serialize_stored_questions(quiz),
            QUIZ_TYPE_REGULAR, folder_id, user_id, concepts,
        )

    def save_concept_tree(
        self,
        tree: ConceptTree,
        folder_id: str | None = None,
        user_id: str | None = None,
    ) -> SavedQuiz:
        if not tree.concepts:
            raise ValueError("Concept quiz must contain at least one concept.")
        return self._insert(
            tree.title, tree.description, serialize_stored_questions(tree),
            QUIZ_TYPE_CONCEPT, folder_id, user_id, None,
        )

    def get_quiz(self, quiz_id: str) -> SavedQuiz:
        record = self._quizzes.get(quiz_id)
        if record is None:
            raise QuizNotFoundError("Quiz not found")
        return record

    def list_quizzes(self, folder_id: str | None = ALL_FOLDERS) -> list[SavedQuiz]:
        """Return saved quizzes, newest first, optionally limited to one folder."""
        if isinstance(folder_id, str) and folder_id.lower() == "null":
            folder_id = None
        records = list(self._quizzes.values())
        if folder_id is not ALL_FOLDERS:
            records = [record for record in records if record.folder_id == folder_id]
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    def delete_quiz(self, quiz_id: str) -> None:
        self.get_quiz(quiz_id)
        del self._quizzes[quiz_id]
        logger.info("Deleted quiz %s", quiz_id)

    def move_quiz(self, quiz_id: str, folder_id: str | None) -> SavedQuiz:
        record = self.get_quiz(quiz_id)
        if folder_id is not None:
            self.get_folder(folder_id)
        record.folder_id = folder_id
        record.updated_at = _utcnow()
        return record

    # --- Folders ---

    def create_folder(
        self,
        name: str,
        parent_id: str | None = None,
        color: str | None = None,
    ) -> Folder:
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Folder name must not be empty.")
        if parent_id is not None:
            self.get_folder(parent_id)
        folder = Folder(id=uuid4().hex, name=cleaned, parent_id=parent_id, color=color or DEFAULT_FOLDER_COLOR)
        self._folders[folder.id] = folder
        return folder

    def get_folder(self, folder_id: str) -> Folder:
        folder = self._folders.get(folder_id)
        if folder is None:
            raise FolderNotFoundError("Folder not found")
        return folder

    def update_folder(self, folder_id: str, name: str | None = None, color: str | None = None) -> Folder:
        folder = self.get_folder(folder_id)
        if name is not None:
            if not name.strip():
                raise ValueError("Folder name must not be empty.")
            folder.name = name.strip()
        if color is not None:
            folder.color = color
        folder.updated_at = _utcnow()
        return folder

    def delete_folder(self, folder_id: str) -> None:
        """Delete a folder; its quizzes move to the root, its children to its parent."""
        folder = self.get_folder(folder_id)
        for child in self._folders.values():
            if child.parent_id == folder_id:
                child.parent_id = folder.parent_id
        for record in self._quizzes.values():
            if record.folder_id == folder_id:
                record.folder_id = None
        del self._folders[folder_id]

    def list_folders(self) -> list[Folder]:
        return sorted(self._folders.values(), key=lambda folder: folder.name)

    def folder_tree(self) -> list[FolderNode]:
        nodes = {folder.id: FolderNode(folder=folder) for folder in self.list_folders()}
        for record in self._quizzes.values():
            if record.folder_id in nodes:
                nodes[record.folder_id].quiz_count += 1
        roots: list[FolderNode] = []
        for node in nodes.values():
            parent = nodes.get(node.folder.parent_id) if node.folder.parent_id else None
            if parent is not None:
                parent.children.append(node)
            elif node.folder.parent_id is None:
                roots.append(node)
        return roots

    def folder_path(self, folder_id: str | None) -> list[Folder]:
        """Breadcrumb from the root down to ``folder_id``."""
        path: list[Folder] = []
        seen: set[str] = set()
        while folder_id is not None and folder_id not in seen:
            seen.add(folder_id)
            folder = self.get_folder(folder_id)
            path.append(folder)
            folder_id = folder.parent_id
        return list(reversed(path))

    def _insert(
        self,
        title: str,
        description: str,
        questions: str,
        quiz_type: str,
        folder_id: str | None,
        user_id: str | None,
        concepts: list[dict[str, Any]] | None,
    ) -> SavedQuiz:
        if folder_id is not None:
            self.get_folder(folder_id)
        record = SavedQuiz(
            id=uuid4().hex,
            quiz_title=title,
            description=description,
            questions=questions,
            quiz_type=quiz_type,
            folder_id=folder_id,
            user_id=user_id,
            concepts_used_in_quiz=concepts,
        )
        self._quizzes[record.id] = record
        logger.info("Saved %s quiz '%s' as %s", quiz_type, title, record.id)
        return record
