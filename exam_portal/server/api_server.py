"""FastAPI server that exposes the student and admin endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging
from typing import Any

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field
import uvicorn

from exam_portal.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from exam_portal.core.auth import AdminCredentials, LoginError, admin_login, student_login
from exam_portal.core.gesture import FrameRect, KeyRect, Point
from exam_portal.core.markdown_renderer import renderer
from exam_portal.core.models import Question
from exam_portal.core.question_bank import QuestionBankValidationError, parse_question_bank, preview
from exam_portal.core.services.exam_session import ExamSession
from exam_portal.core.services.session_registry import SessionNotFound, SessionRegistry
from exam_portal.server.pages import ADMIN_PAGE_HTML, STUDENT_PAGE_HTML
from exam_portal.settings import Settings
from exam_portal.storage.exam_storage import ExamStorage, StorageError

logger = logging.getLogger(__name__)


class StudentLoginPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    roll_number: str | None = Field(default=None, alias="rollNumber")


class AdminLoginPayload(BaseModel):
    username: str | None = None
    password: str | None = None


class SubmitExamPayload(BaseModel):
    """Raw submission posted directly by a client that scored locally."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    roll_number: str = Field(alias="rollNumber")
    answers: dict[str, str] = Field(default_factory=dict)
    score: int


class AnswerPayload(BaseModel):
    value: str


class CursorPayload(BaseModel):
    position: int


class KeyPayload(BaseModel):
    label: str
    channel: str = "gesture"


class PointPayload(BaseModel):
    x: float
    y: float


class FramePayload(BaseModel):
    left: float
    top: float
    width: float
    height: float


class KeyRectPayload(BaseModel):
    label: str
    left: float
    top: float
    right: float
    bottom: float


class GestureFramePayload(BaseModel):
    index_tip: PointPayload
    thumb_tip: PointPayload
    frame: FramePayload
    keys: list[KeyRectPayload]
    timestamp_ms: float


class GestureStatusPayload(BaseModel):
    available: bool
    reason: str = "camera unavailable"


def _failure(error: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "error": error, **extra}


def _question_view(position: int, question: Question) -> dict[str, Any]:
    """Student-facing question; never includes the correct answer."""
    return {
        "position": position,
        "text": question.text,
        "text_html": renderer.render_fragment(question.text),
        "options": {
            label: renderer.render_inline(text) for label, text in question.options.items()
        },
    }


def _get_dependency(value: Any):
    def dependency() -> Any:
        return value

    return dependency


def create_api_app(
    registry: SessionRegistry,
    storage: ExamStorage,
    settings: Settings,
) -> FastAPI:
    """Create a FastAPI application wired to the provided registry and storage."""
    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        registry.close_all()

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    registry_dep = _get_dependency(registry)
    storage_dep = _get_dependency(storage)
    credentials = AdminCredentials(settings.admin_username, settings.admin_password)

    def _session(session_id: str, sessions: SessionRegistry) -> ExamSession:
        try:
            return sessions.get(session_id)
        except SessionNotFound as exc:
            raise HTTPException(status_code=404, detail="Exam session not found.") from exc

    @app.get("/", response_class=HTMLResponse)
    def serve_student_page() -> str:
        return STUDENT_PAGE_HTML

    @app.get("/admin", response_class=HTMLResponse)
    def serve_admin_page() -> str:
        return ADMIN_PAGE_HTML

    @app.get("/api/about")
    def get_about() -> dict[str, str]:
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "license": APP_LICENSE,
            "about": APP_ABOUT_TEXT,
        }

    # --- Login ---

    @app.post("/api/student-login")
    def post_student_login(payload: StudentLoginPayload) -> dict[str, Any]:
        try:
            student_login(payload.name, payload.roll_number)
        except LoginError as exc:
            return _failure(str(exc))
        return {"success": True}

    @app.post("/api/admin-login")
    def post_admin_login(payload: AdminLoginPayload) -> dict[str, Any]:
        try:
            admin_login(credentials, payload.username, payload.password)
        except LoginError as exc:
            logger.warning("Rejected admin login for %r", payload.username)
            return _failure(str(exc))
        return {"success": True}

    # --- Question bank and results ---

    @app.get("/api/questions")
    def get_questions(store: ExamStorage = Depends(storage_dep)) -> list[dict[str, Any]]:
        try:
            return store.fetch_questions()
        except StorageError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    @app.post("/api/upload-questions")
    def upload_questions(
        file: UploadFile | None = File(default=None),
        store: ExamStorage = Depends(storage_dep),
    ) -> dict[str, Any]:
        if file is None:
            return _failure("No file uploaded.")
        try:
            questions = parse_question_bank(file.file.read())
        except QuestionBankValidationError as exc:
            logger.warning("Rejected question bank %s: %s", file.filename, exc)
            return _failure(str(exc), errors=exc.errors)
        finally:
            file.file.close()

        try:
            store.replace_questions([question.to_document() for question in questions])
        except StorageError as exc:
            logger.error("Upload questions error: %s", exc)
            return _failure("Unable to store questions.")
        logger.info("Question bank replaced with %d question(s)", len(questions))
        return {
            "success": True,
            "count": len(questions),
            "preview": [
                {"question": item.question, "answer": item.answer, "options": item.options}
                for item in preview(questions)
            ],
        }

    @app.post("/api/submit-exam")
    def submit_exam(
        payload: SubmitExamPayload,
        store: ExamStorage = Depends(storage_dep),
    ) -> dict[str, Any]:
        try:
            store.insert_submission(payload.model_dump(by_alias=True))
        except StorageError as exc:
            logger.error("Submit exam error: %s", exc)
            return _failure("Unable to store submission. Please try again.")
        return {"success": True}

    @app.get("/api/results")
    def get_results(store: ExamStorage = Depends(storage_dep)) -> list[dict[str, Any]]:
        try:
            return store.fetch_submissions()
        except StorageError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    # --- Exam sessions ---

    @app.post("/api/sessions", status_code=201)
    def open_session(
        payload: StudentLoginPayload,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, Any]:
        try:
            context = student_login(payload.name, payload.roll_number)
        except LoginError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        session = sessions.open_session(context)
        return {
            "session_id": session.session_id,
            "questions": [
                _question_view(position, question)
                for position, question in enumerate(session.questions, start=1)
            ],
            "state": session.snapshot(),
        }

    @app.get("/api/sessions/{session_id}")
    def get_session(
        session_id: str,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, Any]:
        return _session(session_id, sessions).snapshot()

    @app.put("/api/sessions/{session_id}/answers/{position}")
    def put_answer(
        session_id: str,
        position: int,
        payload: AnswerPayload,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, Any]:
        session = _session(session_id, sessions)
        try:
            accepted = session.set_answer(position, payload.value)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"accepted": accepted, "answer": session.get_answer(position)}

    @app.post("/api/sessions/{session_id}/cursor")
    def post_cursor(
        session_id: str,
        payload: CursorPayload,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, Any]:
        session = _session(session_id, sessions)
        session.go_to(payload.position)
        return {"cursor": session.cursor}

    @app.post("/api/sessions/{session_id}/keys")
    def post_key(
        session_id: str,
        payload: KeyPayload,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, Any]:
        session = _session(session_id, sessions)
        if payload.channel not in ("keyboard", "gesture"):
            raise HTTPException(status_code=422, detail=f"Unknown input channel {payload.channel!r}.")
        session.activate_key(payload.label, channel=payload.channel)
        return {"answers": session.answers()}

    @app.post("/api/sessions/{session_id}/gesture-frames")
    def post_gesture_frame(
        session_id: str,
        payload: GestureFramePayload,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, Any]:
        session = _session(session_id, sessions)
        selected = session.process_gesture_frame(
            index_tip=Point(payload.index_tip.x, payload.index_tip.y),
            thumb_tip=Point(payload.thumb_tip.x, payload.thumb_tip.y),
            frame=FrameRect(
                payload.frame.left, payload.frame.top, payload.frame.width, payload.frame.height
            ),
            keys=[
                KeyRect(key.label, key.left, key.top, key.right, key.bottom)
                for key in payload.keys
            ],
            timestamp_ms=payload.timestamp_ms,
        )
        return {"selected": selected}

    @app.post("/api/sessions/{session_id}/gesture-status")
    def post_gesture_status(
        session_id: str,
        payload: GestureStatusPayload,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, Any]:
        session = _session(session_id, sessions)
        session.update_input_device(payload.available, payload.reason)
        return {"gesture_status": session.snapshot()["gesture_status"]}

    @app.post("/api/sessions/{session_id}/submit")
    def post_submit(
        session_id: str,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, Any]:
        session = _session(session_id, sessions)
        outcome = session.submit(auto=False)
        if outcome is None:
            return {"accepted": False, "state": session.snapshot()}
        return {
            "accepted": True,
            "success": outcome.success,
            "score": outcome.score,
            "total": outcome.total,
            "message": outcome.message,
            "state": session.snapshot(),
        }

    @app.delete("/api/sessions/{session_id}", status_code=204)
    def delete_session(
        session_id: str,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> None:
        try:
            sessions.close_session(session_id)
        except SessionNotFound as exc:
            raise HTTPException(status_code=404, detail="Exam session not found.") from exc

    return app


def run_api_server(app: FastAPI, host: str, port: int) -> None:
    """Serve the app with uvicorn until interrupted."""
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
