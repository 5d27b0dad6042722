from typing import Any

import pytest

from exam_portal.core.models import SessionContext
from exam_portal.core.services.exam_session import ExamSession
from exam_portal.core.services.question_loader import QuestionLoader
from exam_portal.storage.exam_storage import StorageError


SAMPLE_QUESTIONS = [
    {"question": "2+2=?", "options": {"a": "3", "b": "4", "c": "5", "d": "6"}, "answer": "b"},
    {"question": "Capital of France?", "options": {"a": "Rome", "b": "Madrid", "c": "Paris", "d": "Oslo"}, "answer": "c"},
    {"question": "Largest planet?", "options": {"a": "Jupiter", "b": "Mars", "c": "Venus", "d": "Earth"}, "answer": "a"},
]


class ManualCall:
    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Collects scheduled ticks so tests decide when they fire."""

    def __init__(self):
        self.calls = []

    def call_later(self, delay, callback):
        call = ManualCall(callback)
        self.calls.append(call)
        return call

    @property
    def pending(self):
        return [call for call in self.calls if not call.cancelled]

    def run_pending(self):
        due = self.pending
        self.calls = []
        for call in due:
            call.callback()
        return len(due)


class InMemoryStorage:
    def __init__(self, questions=None):
        self.questions = list(questions or [])
        self.submissions = []
        self.insert_calls = 0
        self.fail_fetch = False
        self.fail_insert = False

    def fetch_questions(self) -> list[dict[str, Any]]:
        if self.fail_fetch:
            raise StorageError("database unreachable")
        return list(self.questions)

    def replace_questions(self, documents):
        self.questions = list(documents)

    def insert_submission(self, document):
        self.insert_calls += 1
        if self.fail_insert:
            raise StorageError("write failed")
        record = {**document, "submittedAt": "2026-01-01T00:00:00+00:00"}
        self.submissions.append(record)
        return record

    def fetch_submissions(self):
        return list(self.submissions)


class RecordingGateway:
    def __init__(self, response=None):
        self.documents = []
        self.response = response if response is not None else {"success": True}

    def __call__(self, document):
        self.documents.append(document)
        return self.response


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def context():
    return SessionContext(name="Asha", roll_number="R-17")


@pytest.fixture
def make_session(context, scheduler):
    def factory(questions=SAMPLE_QUESTIONS, gateway=None, duration=1800, fetch=None):
        gateway = gateway or RecordingGateway()
        session = ExamSession(
            context=context,
            loader=QuestionLoader(fetch or (lambda: list(questions))),
            submit_exam=gateway,
            duration_seconds=duration,
            scheduler=scheduler,
        )
        session.start()
        return session, gateway

    return factory
