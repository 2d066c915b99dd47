"""Static metadata describing QuizNest."""

APP_NAME = "QuizNest"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizNest lets authors paste quizzes or nested concept explanations as JSON, "
    "organize them into folders, and play them back with scoring, shuffling "
    "and per-concept analytics."
)

HELP_TEXT = (
    "Regular quizzes are authored as JSON:\n\n"
    '{"quiz_title": "Quadratics", "description": "Warm-up",\n'
    ' "questions": [{"id": 1, "question_text": "Roots of $x^2 - 1$?",\n'
    '   "options": [{"text": "1 and -1", "is_correct": true}, {"text": "0", "is_correct": false}],\n'
    '   "explanation": "Factor as $(x-1)(x+1)$.", "concept_id": 1}],\n'
    ' "concepts_used_in_quiz": [{"id": 1, "concept": "Factoring"}]}\n\n'
    "Concept quizzes nest explanations, questions and sub-explanations:\n\n"
    '{"concepts": [{"name": "Complex numbers", "explanation": "$i^2 = -1$",\n'
    '   "questions": [], "sub_explanations": [{"title": "Powers of i",\n'
    '   "explanation": "...", "questions": []}]}]}'
)
