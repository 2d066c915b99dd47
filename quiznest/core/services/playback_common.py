"""Pieces shared by the quiz and concept playback state machines."""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Callable

from quiznest.constants.quiz_constants import REVEAL_ANIMATION_SECONDS
from quiznest.core.models import Option

Clock = Callable[[], float]


class PlaybackError(RuntimeError):
    """Raised when an action is not allowed in the current playback state."""


@dataclass(slots=True)
class RevealWindow:
    """One-shot correct/incorrect animation window opened on submission."""

    clock: Clock = time.monotonic
    duration: float = REVEAL_ANIMATION_SECONDS
    opened_at: float | None = None

    def open(self) -> None:
        self.opened_at = self.clock()

    def close(self) -> None:
        self.opened_at = None

    def is_open(self) -> bool:
        if self.opened_at is None:
            return False
        return self.clock() - self.opened_at < self.duration


def validate_option_index(options: list[Option], index: int) -> None:
    if not 0 <= index < len(options):
        raise ValueError(f"Option index {index} out of range")


def reveal_markers(options: list[Option], selected_index: int | None) -> list[str | None]:
    """Per-option feedback shown once an answer is revealed."""
    markers: list[str | None] = []
    for idx, option in enumerate(options):
        if option.is_correct:
            markers.append("correct")
        elif idx == selected_index:
            markers.append("incorrect")
        else:
            markers.append(None)
    return markers


def percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round(part / whole * 100)
