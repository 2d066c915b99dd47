"""Listing of saved quizzes in one folder, with optimistic moves."""

from __future__ import annotations

import logging

from quiznest.core.services.quiz_repository import (
    FolderNotFoundError,
    QuizNotFoundError,
    QuizRepository,
    SavedQuiz,
)

logger = logging.getLogger(__name__)


class SavedQuizzesListing:
    """Holds what the saved-quizzes view currently shows for ``folder_id``.

    Failures of the backing store are reported as notifications instead of
    propagating, and any optimistic change to ``items`` is rolled back.
    """

    def __init__(self, repository: QuizRepository, folder_id: str | None = None) -> None:
        self._repository = repository
        self._folder_id = folder_id
        self._items: list[SavedQuiz] = []
        self._notifications: list[str] = []
        self.refresh()

    @property
    def folder_id(self) -> str | None:
        return self._folder_id

    @property
    def items(self) -> list[SavedQuiz]:
        return list(self._items)

    def refresh(self) -> list[SavedQuiz]:
        self._items = self._repository.list_quizzes(self._folder_id)
        return self.items

    def pop_notifications(self) -> list[str]:
        notifications, self._notifications = self._notifications, []
        return notifications

    def move_quiz(self, quiz_id: str, target_folder_id: str | None) -> bool:
        previous = list(self._items)
        self._items = [item for item in self._items if item.id != quiz_id]
        try:
            self._repository.move_quiz(quiz_id, target_folder_id)
        except (QuizNotFoundError, FolderNotFoundError) as exc:
            logger.warning("Moving quiz %s failed, restoring listing: %s", quiz_id, exc)
            self._items = previous
            self._notifications.append("Failed to move quiz. Please try again.")
            return False
        self.refresh()
        return True

    def delete_quiz(self, quiz_id: str) -> bool:
        try:
            self._repository.delete_quiz(quiz_id)
        except QuizNotFoundError as exc:
            logger.warning("Deleting quiz %s failed: %s", quiz_id, exc)
            self._notifications.append("Failed to delete quiz. Please try again.")
            return False
        self._notifications.append("Quiz deleted successfully!")
        self.refresh()
        return True
