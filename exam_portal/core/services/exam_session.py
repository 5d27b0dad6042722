"""Controller for one student's exam attempt, from question load to submission."""

from __future__ import annotations

from enum import Enum
import logging
from threading import RLock
import time
from typing import Any, Callable
from uuid import uuid4

from exam_portal.constants.exam_constants import (
    AUTO_SUBMITTED_MESSAGE_TEMPLATE,
    EXAM_DURATION_SECONDS,
    GESTURE_DISABLED_TEMPLATE,
    LOAD_FAILED_MESSAGE,
    NO_QUESTIONS_MESSAGE,
    NO_QUESTIONS_TO_SUBMIT_MESSAGE,
    SUBMISSION_FAILED_MESSAGE,
    SUBMISSION_SERVER_ERROR_MESSAGE,
    SUBMITTED_MESSAGE_TEMPLATE,
)
from exam_portal.core.gesture import (
    FrameRect,
    InputDeviceFailure,
    KeyRect,
    PinchSelector,
    Point,
    require_input_device,
)
from exam_portal.core.input_channels import GestureKeyboardChannel, KeyboardChannel
from exam_portal.core.models import Question, SessionContext, SubmissionOutcome, SubmissionRecord
from exam_portal.core.services.answer_store import AnswerStore
from exam_portal.core.services.countdown_timer import CountdownTimer, TickScheduler, TimerState
from exam_portal.core.services.question_loader import LoadFailure, NoQuestionsAvailable, QuestionLoader
from exam_portal.core.services.scoring import compute_score

logger = logging.getLogger(__name__)

SubmitExam = Callable[[dict[str, Any]], dict[str, Any]]


class SubmissionFailure(Exception):
    """Raised by a submit gateway when the record could not be persisted."""


class SessionPhase(str, Enum):
    LOADING = "loading"
    LOAD_FAILED = "load_failed"
    NO_QUESTIONS = "no_questions"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class ExamSession:
    """Holds questions, answers, cursor and countdown for a single attempt.

    ``submit`` is guarded by a one-way latch that is set before any I/O, so
    a manual submit racing the timer's auto-submit reaches ``submit_exam``
    exactly once. A failed submission leaves the latch set.
    """

    def __init__(
        self,
        context: SessionContext,
        loader: QuestionLoader,
        submit_exam: SubmitExam,
        duration_seconds: int = EXAM_DURATION_SECONDS,
        scheduler: TickScheduler | None = None,
        session_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session_id = session_id or uuid4().hex
        self.submission_id = uuid4().hex
        self.context = context
        self._loader = loader
        self._submit_exam = submit_exam
        self._duration = duration_seconds
        self._scheduler = scheduler
        self._clock = clock
        self._lock = RLock()

        self._phase = SessionPhase.LOADING
        self._questions: tuple[Question, ...] = ()
        self._answers = AnswerStore()
        self._cursor: int | None = None
        self._timer: CountdownTimer | None = None
        self._submitted = False
        self._outcome: SubmissionOutcome | None = None
        self._finished_at: float | None = None
        self._status = ""
        self._error = ""
        self._gesture_status = ""
        self._pinch = PinchSelector()

        self.keyboard = KeyboardChannel(self._cursor_position, self.get_answer, self.set_answer)
        self.gesture = GestureKeyboardChannel(self._cursor_position, self.get_answer, self.set_answer)

    # --- Lifecycle ---

    def start(self) -> None:
        with self._lock:
            if self._phase is not SessionPhase.LOADING:
                return
            try:
                self._questions = self._loader.load()
            except NoQuestionsAvailable:
                self._phase = SessionPhase.NO_QUESTIONS
                self._error = NO_QUESTIONS_MESSAGE
                self._finished_at = self._clock()
                return
            except LoadFailure as exc:
                logger.warning("Session %s could not load questions: %s", self.session_id, exc)
                self._phase = SessionPhase.LOAD_FAILED
                self._error = LOAD_FAILED_MESSAGE
                self._finished_at = self._clock()
                return

            self._phase = SessionPhase.IN_PROGRESS
            self._cursor = 0
            self._timer = CountdownTimer(
                self._duration,
                on_expire=self._on_time_expired,
                scheduler=self._scheduler,
                halted=self._is_submitted,
            )
            self._timer.start()
            logger.info(
                "Session %s started for %s with %d question(s)",
                self.session_id,
                self.context.roll_number,
                len(self._questions),
            )

    def close(self) -> None:
        """Stop the countdown without submitting."""
        if self._timer is not None:
            self._timer.stop()

    # --- Questions and navigation ---

    @property
    def phase(self) -> SessionPhase:
        with self._lock:
            return self._phase

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def question_count(self) -> int:
        return len(self._questions)

    @property
    def cursor(self) -> int | None:
        with self._lock:
            return self._cursor

    def go_to(self, position: int) -> bool:
        """Move the cursor to a 0-based position; out-of-range requests are ignored."""
        with self._lock:
            if not 0 <= position < len(self._questions):
                return False
            self._cursor = position
            return True

    def _cursor_position(self) -> int | None:
        cursor = self._cursor
        return None if cursor is None else cursor + 1

    # --- Answers ---

    def set_answer(self, position: int, value: str) -> bool:
        """Overwrite the answer at a 1-based position. Returns False once submitted."""
        with self._lock:
            if self._submitted or self._phase is not SessionPhase.IN_PROGRESS:
                return False
            if not 1 <= position <= len(self._questions):
                raise ValueError(
                    f"Question position {position} out of range 1..{len(self._questions)}."
                )
            self._answers.set_answer(position, value)
            return True

    def get_answer(self, position: int) -> str:
        with self._lock:
            return self._answers.get_answer(position)

    def answers(self) -> dict[str, str]:
        with self._lock:
            return self._answers.snapshot()

    def activate_key(self, label: str, channel: str = "gesture") -> None:
        with self._lock:
            target = self.keyboard if channel == "keyboard" else self.gesture
            target.activate_key(label)

    # --- Gesture keyboard ---

    def process_gesture_frame(
        self,
        index_tip: Point,
        thumb_tip: Point,
        frame: FrameRect,
        keys: list[KeyRect],
        timestamp_ms: float,
    ) -> str | None:
        with self._lock:
            label = self._pinch.process_frame(index_tip, thumb_tip, frame, keys, timestamp_ms)
            if label is not None:
                self.gesture.activate_key(label)
            return label

    def update_input_device(self, available: bool, reason: str) -> None:
        """Record the camera status reported by the browser."""
        try:
            require_input_device(available, reason)
        except InputDeviceFailure as exc:
            self.report_input_device_failure(str(exc))

    def report_input_device_failure(self, reason: str) -> None:
        with self._lock:
            self._gesture_status = GESTURE_DISABLED_TEMPLATE.format(reason=reason)
        logger.warning("Session %s gesture input unavailable: %s", self.session_id, reason)

    # --- Timer ---

    @property
    def time_remaining(self) -> int:
        if self._timer is None:
            return self._duration if self._phase is SessionPhase.LOADING else 0
        return self._timer.time_remaining

    @property
    def timer_state(self) -> TimerState | None:
        return None if self._timer is None else self._timer.state

    @property
    def timer(self) -> CountdownTimer | None:
        return self._timer

    def _on_time_expired(self) -> None:
        self.submit(auto=True)

    def _is_submitted(self) -> bool:
        # Read without the session lock; the timer calls this under its own lock.
        return self._submitted

    # --- Submission ---

    @property
    def submitted(self) -> bool:
        with self._lock:
            return self._submitted

    @property
    def outcome(self) -> SubmissionOutcome | None:
        return self._outcome

    @property
    def finished_at(self) -> float | None:
        """Clock reading when the attempt reached a terminal state, else None."""
        with self._lock:
            return self._finished_at

    def submit(self, auto: bool = False) -> SubmissionOutcome | None:
        """Score and persist the attempt once. Later calls return None."""
        with self._lock:
            if self._submitted:
                return None
            self._submitted = True
            if self._timer is not None:
                self._timer.stop()
            phase = self._phase
            self._phase = SessionPhase.SUBMITTED
            self._status = ""
            self._error = ""
            questions = self._questions
            answers = self._answers.snapshot()

        if phase is not SessionPhase.IN_PROGRESS or not questions:
            return self._finish(
                SubmissionOutcome(False, 0, 0, auto, NO_QUESTIONS_TO_SUBMIT_MESSAGE)
            )

        score = compute_score(questions, answers)
        total = len(questions)
        record = SubmissionRecord(
            name=self.context.name,
            roll_number=self.context.roll_number,
            answers=answers,
            score=score,
            submission_id=self.submission_id,
        )

        try:
            response = self._submit_exam(record.to_document())
        except SubmissionFailure as exc:
            logger.error("Session %s submission failed: %s", self.session_id, exc)
            return self._finish(
                SubmissionOutcome(False, score, total, auto, SUBMISSION_SERVER_ERROR_MESSAGE)
            )
        except Exception:
            logger.exception("Session %s submission raised unexpectedly", self.session_id)
            return self._finish(
                SubmissionOutcome(False, score, total, auto, SUBMISSION_SERVER_ERROR_MESSAGE)
            )

        if not response.get("success"):
            logger.error(
                "Session %s submission rejected: %s", self.session_id, response.get("error")
            )
            return self._finish(
                SubmissionOutcome(False, score, total, auto, SUBMISSION_FAILED_MESSAGE)
            )

        template = AUTO_SUBMITTED_MESSAGE_TEMPLATE if auto else SUBMITTED_MESSAGE_TEMPLATE
        logger.info(
            "Session %s submitted (%s): %d/%d",
            self.session_id,
            "auto" if auto else "manual",
            score,
            total,
        )
        return self._finish(
            SubmissionOutcome(True, score, total, auto, template.format(score=score, total=total))
        )

    def _finish(self, outcome: SubmissionOutcome) -> SubmissionOutcome:
        with self._lock:
            self._outcome = outcome
            self._finished_at = self._clock()
            if outcome.success:
                self._status = outcome.message
            else:
                self._error = outcome.message
        return outcome

    # --- View ---

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "session_id": self.session_id,
                "name": self.context.name,
                "rollNumber": self.context.roll_number,
                "phase": self._phase.value,
                "question_count": len(self._questions),
                "cursor": self._cursor,
                "answers": self._answers.snapshot(),
                "time_remaining": self.time_remaining,
                "timer_state": None if self._timer is None else self._timer.state.value,
                "submitted": self._submitted,
                "status": self._status,
                "error": self._error,
                "gesture_status": self._gesture_status,
                "score": None if self._outcome is None else self._outcome.score,
            }
