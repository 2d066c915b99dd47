"""Quiz-related constants shared across core, services and API layers."""

DEFAULT_CORRECT_SCORE: int = 100
DEFAULT_INCORRECT_SCORE: int = -50
SUB_QUESTION_CORRECT_SCORE: int = 50
SUB_QUESTION_INCORRECT_SCORE: int = -25

# Correct/incorrect animation shown after an answer is submitted.
REVEAL_ANIMATION_SECONDS: float = 2.0

STRONG_BAND_THRESHOLD: int = 80
ADEQUATE_BAND_THRESHOLD: int = 60

QUIZ_TYPE_REGULAR: str = "regular"
QUIZ_TYPE_CONCEPT: str = "concept"
DEFAULT_FOLDER_COLOR: str = "#3B82F6"

# Play-throughs untouched for this long are dropped when a new one is opened.
SESSION_IDLE_SECONDS: float = 2 * 60 * 60
