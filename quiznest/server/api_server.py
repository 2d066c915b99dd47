"""FastAPI server exposing authoring, saved quizzes and play-through sessions."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, Iterator

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel
import uvicorn

from quiznest.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION, HELP_TEXT
from quiznest.constants.network_constants import API_LOG_LEVEL, DEFAULT_HOST, DEFAULT_PORT
from quiznest.core.markdown_renderer import renderer
from quiznest.core.models import ConceptQuestion, Option, Question
from quiznest.core.quiz_importer import QuizImportError
from quiznest.core.quiz_manager import (
    ConceptSessionSnapshot,
    QuizManager,
    QuizSessionSnapshot,
    SessionNotFoundError,
)
from quiznest.core.services.analytics import performance_band, results_message
from quiznest.core.services.playback_common import PlaybackError, reveal_markers
from quiznest.core.services.quiz_repository import (
    ALL_FOLDERS,
    Folder,
    FolderNode,
    FolderNotFoundError,
    QuizNotFoundError,
    SavedQuiz,
)


class CreateQuizPayload(BaseModel):
    """Raw authoring JSON pasted by the author."""

    json_text: str
    folder_id: str | None = None
    concepts_json: str | None = None


class CreateConceptQuizPayload(BaseModel):
    title: str
    description: str
    json_text: str
    folder_id: str | None = None


class MoveQuizPayload(BaseModel):
    folder_id: str | None = None
    from_folder_id: str | None = None


class FolderPayload(BaseModel):
    name: str
    parent_id: str | None = None
    color: str | None = None


class FolderUpdatePayload(BaseModel):
    name: str | None = None
    color: str | None = None


class PlayPayload(BaseModel):
    seed: int | None = None


class SelectPayload(BaseModel):
    option_index: int


class SubSelectPayload(BaseModel):
    sub_question_id: int
    option_index: int


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Map domain exceptions onto HTTP status codes."""
    try:
        yield
    except QuizImportError as exc:
        raise HTTPException(status_code=422, detail={"kind": exc.kind, "message": str(exc)}) from exc
    except (QuizNotFoundError, FolderNotFoundError, SessionNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PlaybackError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _saved_quiz_json(record: SavedQuiz) -> dict[str, object]:
    return {
        "id": record.id,
        "quiz_title": record.quiz_title,
        "description": record.description,
        "quiz_type": record.quiz_type,
        "folder_id": record.folder_id,
        "user_id": record.user_id,
        "questions": record.questions,
        "concepts_used_in_quiz": record.concepts_used_in_quiz,
        "created_at": record.created_at.isoformat(),
        "updated_at": record.updated_at.isoformat(),
    }


def _folder_json(folder: Folder) -> dict[str, object]:
    return {
        "id": folder.id,
        "name": folder.name,
        "parent_id": folder.parent_id,
        "color": folder.color,
        "created_at": folder.created_at.isoformat(),
        "updated_at": folder.updated_at.isoformat(),
    }


def _folder_node_json(node: FolderNode) -> dict[str, object]:
    data = _folder_json(node.folder)
    data["quiz_count"] = node.quiz_count
    data["children"] = [_folder_node_json(child) for child in node.children]
    return data


def _options_json(options: list[Option], markers: list[str | None]) -> list[dict[str, object]]:
    rendered = []
    for idx, option in enumerate(options):
        rendered.append(
            {
                "index": idx,
                "text": option.text,
                "html": renderer.render_inline(option.text),
                "marker": markers[idx] if idx < len(markers) else None,
            }
        )
    return rendered


def _quiz_question_json(snapshot: QuizSessionSnapshot, question: Question) -> dict[str, object]:
    revealed = snapshot.submitted
    sub_questions = []
    for sub in question.sub_questions:
        selected = snapshot.sub_selections.get(sub.id)
        sub_markers = reveal_markers(sub.options, selected) if revealed else []
        sub_questions.append(
            {
                "id": sub.id,
                "text": sub.text,
                "html": renderer.render_fragment(sub.text),
                "options": _options_json(sub.options, sub_markers),
                "selected_option_index": selected,
                "explanation_html": renderer.render_fragment(sub.explanation) if revealed else None,
            }
        )
    return {
        "id": question.id,
        "text": question.text,
        "html": renderer.render_fragment(question.text),
        "options": _options_json(question.options, snapshot.option_markers),
        "sub_questions": sub_questions,
        "explanation_html": renderer.render_fragment(question.explanation) if revealed else None,
        "citations": question.citations if revealed else None,
    }


def _quiz_session_json(snapshot: QuizSessionSnapshot) -> dict[str, object]:
    results: dict[str, object] | None = None
    if snapshot.results is not None:
        results = {
            "correct_answers": snapshot.results.correct_answers,
            "total_questions": snapshot.results.total_questions,
            "total_score": snapshot.results.total_score,
            "percentage": snapshot.results.percentage,
            "band": performance_band(snapshot.results.percentage),
            "message": results_message(snapshot.results.percentage),
        }
    return {
        "session_id": snapshot.session_id,
        "quiz_id": snapshot.quiz_id,
        "title": snapshot.title,
        "description": snapshot.description,
        "phase": snapshot.phase.name.lower(),
        "total_questions": snapshot.total_questions,
        "question_index": snapshot.question_index,
        "question": _quiz_question_json(snapshot, snapshot.question) if snapshot.question else None,
        "selected_option_index": snapshot.selected_option_index,
        "submitted": snapshot.submitted,
        "revealing": snapshot.revealing,
        "progress": snapshot.progress,
        "answers": [asdict(answer) for answer in snapshot.answers],
        "results": results,
    }


def _concept_question_json(snapshot: ConceptSessionSnapshot, question: ConceptQuestion) -> dict[str, object]:
    return {
        "text": question.text,
        "html": renderer.render_fragment(question.text),
        "options": _options_json(question.options, snapshot.option_markers),
        "explanation_html": renderer.render_fragment(question.explanation) if snapshot.submitted else None,
    }


def _concept_session_json(snapshot: ConceptSessionSnapshot) -> dict[str, object]:
    cursor = snapshot.cursor
    results: dict[str, object] | None = None
    if snapshot.results is not None:
        results = {
            "correct_answers": snapshot.results.correct_answers,
            "answered_questions": snapshot.results.answered_questions,
            "total_questions": snapshot.results.total_questions,
            "total_score": snapshot.results.total_score,
            "accuracy": snapshot.results.accuracy,
            "message": results_message(snapshot.results.accuracy),
        }
    return {
        "session_id": snapshot.session_id,
        "quiz_id": snapshot.quiz_id,
        "title": snapshot.title,
        "description": snapshot.description,
        "stage": cursor.stage.name.lower(),
        "concept_index": cursor.concept_index,
        "sub_index": cursor.sub_index,
        "question_index": cursor.question_index,
        "total_concepts": snapshot.total_concepts,
        "concept": None if snapshot.concept_name is None else {
            "name": snapshot.concept_name,
            "explanation_html": renderer.render_fragment(snapshot.concept_explanation),
            "sub_explanation_count": snapshot.sub_explanation_count,
        },
        "sub_explanation": None if snapshot.sub_title is None else {
            "title": snapshot.sub_title,
            "explanation_html": renderer.render_fragment(snapshot.sub_explanation),
        },
        "question": _concept_question_json(snapshot, snapshot.question) if snapshot.question else None,
        "selected_option_index": snapshot.selected_option_index,
        "submitted": snapshot.submitted,
        "revealing": snapshot.revealing,
        "progress": snapshot.progress,
        "answers": [asdict(answer) for answer in snapshot.answers],
        "results": results,
    }


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/")
    def get_about() -> dict[str, object]:
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "license": APP_LICENSE,
            "about": APP_ABOUT_TEXT,
            "help": HELP_TEXT,
        }

    @app.get("/health")
    def get_health() -> dict[str, object]:
        return {"status": "ok"}

    # --- Authoring & saved quizzes ---

    @app.post("/quizzes", status_code=201)
    def create_quiz(
        payload: CreateQuizPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            record = manager.create_quiz(
                payload.json_text,
                folder_id=payload.folder_id,
                concepts_json=payload.concepts_json,
            )
        return _saved_quiz_json(record)

    @app.post("/concept-quizzes", status_code=201)
    def create_concept_quiz(
        payload: CreateConceptQuizPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            record = manager.create_concept_quiz(
                payload.title,
                payload.description,
                payload.json_text,
                folder_id=payload.folder_id,
            )
        return _saved_quiz_json(record)

    @app.get("/quizzes")
    def list_quizzes(
        folder_id: str | None = None,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        # No query parameter lists every quiz; "null" selects the root folder.
        records = manager.list_saved_quizzes(ALL_FOLDERS if folder_id is None else folder_id)
        return [_saved_quiz_json(record) for record in records]

    @app.get("/quizzes/{quiz_id}")
    def get_quiz(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _saved_quiz_json(manager.get_saved_quiz(quiz_id))

    @app.delete("/quizzes/{quiz_id}")
    def delete_quiz(
        quiz_id: str,
        folder_id: str | None = None,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        # folder_id names the listing the client is showing; omitted means the root.
        outcome = manager.delete_saved_quiz(quiz_id, from_folder_id=folder_id)
        if not outcome.ok:
            raise HTTPException(status_code=404, detail="; ".join(outcome.notifications))
        return {
            "deleted": outcome.ok,
            "items": [_saved_quiz_json(record) for record in outcome.items],
            "notifications": outcome.notifications,
        }

    @app.patch("/quizzes/{quiz_id}/folder")
    def move_quiz(
        quiz_id: str,
        payload: MoveQuizPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        outcome = manager.move_saved_quiz(quiz_id, payload.folder_id, payload.from_folder_id)
        if not outcome.ok:
            raise HTTPException(status_code=404, detail="; ".join(outcome.notifications))
        return {
            "moved": outcome.ok,
            "items": [_saved_quiz_json(record) for record in outcome.items],
            "notifications": outcome.notifications,
        }

    # --- Folders ---

    @app.post("/folders", status_code=201)
    def create_folder(
        payload: FolderPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            folder = manager.create_folder(payload.name, parent_id=payload.parent_id, color=payload.color)
        return _folder_json(folder)

    @app.get("/folders")
    def get_folder_tree(manager: QuizManager = Depends(quiz_manager_dep)) -> list[dict[str, object]]:
        return [_folder_node_json(node) for node in manager.get_folder_tree()]

    @app.get("/folders/{folder_id}/path")
    def get_folder_path(folder_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> list[dict[str, object]]:
        with _translate_errors():
            return [_folder_json(folder) for folder in manager.get_folder_path(folder_id)]

    @app.patch("/folders/{folder_id}")
    def update_folder(
        folder_id: str,
        payload: FolderUpdatePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            folder = manager.update_folder(folder_id, name=payload.name, color=payload.color)
        return _folder_json(folder)

    @app.delete("/folders/{folder_id}", status_code=204)
    def delete_folder(folder_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> None:
        with _translate_errors():
            manager.delete_folder(folder_id)

    # --- Quiz play-throughs ---

    @app.post("/quizzes/{quiz_id}/play", status_code=201)
    def open_quiz_session(
        quiz_id: str,
        payload: PlayPayload | None = None,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        seed = payload.seed if payload else None
        with _translate_errors():
            return _quiz_session_json(manager.open_quiz_session(quiz_id, seed=seed))

    @app.get("/sessions/{session_id}")
    def get_quiz_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _quiz_session_json(manager.get_quiz_session(session_id))

    @app.post("/sessions/{session_id}/start")
    def start_quiz(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _quiz_session_json(manager.start_quiz(session_id))

    @app.post("/sessions/{session_id}/select")
    def select_option(
        session_id: str,
        payload: SelectPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            return _quiz_session_json(manager.select_quiz_option(session_id, payload.option_index))

    @app.post("/sessions/{session_id}/select-sub")
    def select_sub_option(
        session_id: str,
        payload: SubSelectPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.select_sub_question_option(
                session_id, payload.sub_question_id, payload.option_index
            )
        return _quiz_session_json(snapshot)

    @app.post("/sessions/{session_id}/submit")
    def submit_answer(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _quiz_session_json(manager.submit_quiz_answer(session_id))

    @app.post("/sessions/{session_id}/next")
    def next_question(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _quiz_session_json(manager.advance_quiz(session_id))

    @app.post("/sessions/{session_id}/restart")
    def restart_quiz(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _quiz_session_json(manager.restart_quiz(session_id))

    @app.get("/sessions/{session_id}/analytics")
    def get_analytics(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            performances = manager.get_concept_performance(session_id)
        if performances is None:
            return {"available": False, "concepts": []}
        concepts: list[dict[str, Any]] = [
            {
                "id": performance.concept.id,
                "concept": performance.concept.label,
                "correct": performance.correct,
                "total": performance.total,
                "questions": performance.question_numbers,
                "percentage": performance.percentage,
                "band": performance.band,
            }
            for performance in performances
        ]
        return {"available": True, "concepts": concepts}

    @app.delete("/sessions/{session_id}", status_code=204)
    def close_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> None:
        with _translate_errors():
            manager.close_session(session_id)

    # --- Concept play-throughs ---

    @app.post("/quizzes/{quiz_id}/concept-play", status_code=201)
    def open_concept_session(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _concept_session_json(manager.open_concept_session(quiz_id))

    @app.get("/concept-sessions/{session_id}")
    def get_concept_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _concept_session_json(manager.get_concept_session(session_id))

    @app.post("/concept-sessions/{session_id}/continue")
    def continue_concept(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _concept_session_json(manager.continue_concept(session_id))

    @app.post("/concept-sessions/{session_id}/select")
    def select_concept_option(
        session_id: str,
        payload: SelectPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            return _concept_session_json(manager.select_concept_option(session_id, payload.option_index))

    @app.post("/concept-sessions/{session_id}/submit")
    def submit_concept_answer(
        session_id: str, manager: QuizManager = Depends(quiz_manager_dep)
    ) -> dict[str, object]:
        with _translate_errors():
            return _concept_session_json(manager.submit_concept_answer(session_id))

    @app.post("/concept-sessions/{session_id}/next")
    def next_concept_question(
        session_id: str, manager: QuizManager = Depends(quiz_manager_dep)
    ) -> dict[str, object]:
        with _translate_errors():
            return _concept_session_json(manager.advance_concept(session_id))

    @app.post("/concept-sessions/{session_id}/back")
    def go_back(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _concept_session_json(manager.go_back_concept(session_id))

    @app.post("/concept-sessions/{session_id}/restart")
    def restart_concept(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _translate_errors():
            return _concept_session_json(manager.restart_concept(session_id))

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=API_LOG_LEVEL)
    server = uvicorn.Server(config)
    server.run()
