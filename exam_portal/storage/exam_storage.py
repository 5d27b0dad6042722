"""Persistence for question banks and exam submissions.

MongoDB is the primary store. When it cannot be reached the service keeps
working against two local JSON files, ``uploads/questions.json`` and
``results.json``, so an exam can still be taken offline.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from exam_portal.constants.storage_constants import (
    QUESTIONS_COLLECTION,
    QUESTIONS_FILENAME,
    RESULTS_COLLECTION,
    RESULTS_FILENAME,
    SERVER_SELECTION_TIMEOUT_MS,
    UPLOADS_DIRNAME,
)
from exam_portal.settings import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a storage backend cannot complete a read or write."""


class ExamStorage(Protocol):
    def fetch_questions(self) -> list[dict[str, Any]]: ...

    def replace_questions(self, documents: list[dict[str, Any]]) -> None: ...

    def insert_submission(self, document: dict[str, Any]) -> dict[str, Any]: ...

    def fetch_submissions(self) -> list[dict[str, Any]]: ...


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _without_object_id(document: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in document.items() if key != "_id"}


class MongoExamStorage:
    """Stores questions and results in two MongoDB collections."""

    def __init__(self, database: Any) -> None:
        self._questions = database[QUESTIONS_COLLECTION]
        self._results = database[RESULTS_COLLECTION]

    def fetch_questions(self) -> list[dict[str, Any]]:
        try:
            return [_without_object_id(doc) for doc in self._questions.find({})]
        except PyMongoError as exc:
            raise StorageError(f"Unable to read questions from MongoDB: {exc}") from exc

    def replace_questions(self, documents: list[dict[str, Any]]) -> None:
        try:
            self._questions.delete_many({})
            # insert_many mutates its input by adding _id
            self._questions.insert_many([dict(doc) for doc in documents])
        except PyMongoError as exc:
            raise StorageError(f"Unable to replace questions in MongoDB: {exc}") from exc

    def insert_submission(self, document: dict[str, Any]) -> dict[str, Any]:
        record = {**document, "submittedAt": _timestamp()}
        try:
            submission_id = record.get("submissionId")
            if submission_id is not None:
                existing = self._results.find_one({"submissionId": submission_id})
                if existing is not None:
                    logger.info("Submission %s already stored; skipping insert", submission_id)
                    return _without_object_id(existing)
            self._results.insert_one(dict(record))
        except PyMongoError as exc:
            raise StorageError(f"Unable to store submission in MongoDB: {exc}") from exc
        return record

    def fetch_submissions(self) -> list[dict[str, Any]]:
        try:
            return [_without_object_id(doc) for doc in self._results.find({})]
        except PyMongoError as exc:
            raise StorageError(f"Unable to read results from MongoDB: {exc}") from exc


class JsonFileExamStorage:
    """Stores questions and results as pretty-printed JSON arrays on disk."""

    def __init__(self, data_dir: Path) -> None:
        uploads_dir = data_dir / UPLOADS_DIRNAME
        uploads_dir.mkdir(parents=True, exist_ok=True)
        self._questions_file = uploads_dir / QUESTIONS_FILENAME
        self._results_file = data_dir / RESULTS_FILENAME
        self._lock = Lock()

    @property
    def questions_file(self) -> Path:
        return self._questions_file

    @property
    def results_file(self) -> Path:
        return self._results_file

    def fetch_questions(self) -> list[dict[str, Any]]:
        with self._lock:
            return self._read(self._questions_file)

    def replace_questions(self, documents: list[dict[str, Any]]) -> None:
        with self._lock:
            self._write(self._questions_file, documents)

    def insert_submission(self, document: dict[str, Any]) -> dict[str, Any]:
        record = {**document, "submittedAt": _timestamp()}
        with self._lock:
            existing = self._read(self._results_file)
            submission_id = record.get("submissionId")
            if submission_id is not None:
                for stored in existing:
                    if stored.get("submissionId") == submission_id:
                        logger.info("Submission %s already stored; skipping insert", submission_id)
                        return stored
            existing.append(record)
            self._write(self._results_file, existing)
        return record

    def fetch_submissions(self) -> list[dict[str, Any]]:
        with self._lock:
            return self._read(self._results_file)

    @staticmethod
    def _read(file_path: Path) -> list[Any]:
        """Read a JSON array; a missing, blank or corrupt file reads as empty."""
        if not file_path.exists():
            return []
        try:
            raw = file_path.read_text(encoding="utf-8")
            if not raw.strip():
                return []
            payload = json.loads(raw)
        except (OSError, ValueError) as exc:
            logger.error("Error reading %s: %s", file_path, exc)
            return []
        if not isinstance(payload, list):
            logger.error("Expected a JSON array in %s, found %s", file_path, type(payload).__name__)
            return []
        return payload

    @staticmethod
    def _write(file_path: Path, payload: list[Any]) -> None:
        try:
            file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Unable to write {file_path}: {exc}") from exc


class FallbackExamStorage:
    """Prefers MongoDB and drops to JSON files while it is unreachable.

    A failed MongoDB read falls through to the files for that call. A failed
    write marks MongoDB as unavailable and is retried on the files, so a
    submission is not lost because the database went away mid-exam.
    """

    def __init__(self, primary: MongoExamStorage | None, fallback: JsonFileExamStorage) -> None:
        self._primary = primary
        self._fallback = fallback
        self._primary_ready = primary is not None

    @property
    def primary_ready(self) -> bool:
        return self._primary_ready

    def mark_primary_ready(self, ready: bool) -> None:
        if self._primary is None:
            return
        if ready != self._primary_ready:
            logger.warning(
                "MongoDB %s.", "reconnected" if ready else "unavailable; using local JSON storage"
            )
        self._primary_ready = ready

    def fetch_questions(self) -> list[dict[str, Any]]:
        if self._primary_ready and self._primary is not None:
            try:
                return self._primary.fetch_questions()
            except StorageError as exc:
                logger.error("Error fetching questions from MongoDB: %s", exc)
        return self._fallback.fetch_questions()

    def replace_questions(self, documents: list[dict[str, Any]]) -> None:
        if self._primary_ready and self._primary is not None:
            try:
                self._primary.replace_questions(documents)
                return
            except StorageError as exc:
                logger.error("Error replacing questions in MongoDB: %s", exc)
                self.mark_primary_ready(False)
        self._fallback.replace_questions(documents)

    def insert_submission(self, document: dict[str, Any]) -> dict[str, Any]:
        if self._primary_ready and self._primary is not None:
            try:
                return self._primary.insert_submission(document)
            except StorageError as exc:
                logger.error("Error storing submission in MongoDB: %s", exc)
                self.mark_primary_ready(False)
        return self._fallback.insert_submission(document)

    def fetch_submissions(self) -> list[dict[str, Any]]:
        if self._primary_ready and self._primary is not None:
            try:
                return self._primary.fetch_submissions()
            except StorageError as exc:
                logger.error("Fetch results error (MongoDB): %s", exc)
        return self._fallback.fetch_submissions()


def connect_storage(settings: Settings) -> FallbackExamStorage:
    """Build the storage chain, pinging MongoDB once if a URL is configured."""
    fallback = JsonFileExamStorage(settings.data_dir)
    if not settings.mongo_url:
        logger.info("MONGO_URL not set; using local JSON storage in %s", settings.data_dir)
        return FallbackExamStorage(None, fallback)

    try:
        client: MongoClient = MongoClient(
            settings.mongo_url,
            serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
        )
        client.admin.command("ping")
    except PyMongoError as exc:
        logger.error("MongoDB connection failed: %s", exc)
        logger.warning("Falling back to local JSON storage.")
        return FallbackExamStorage(None, fallback)

    logger.info("MongoDB connected (database %s)", settings.mongo_db_name)
    primary = MongoExamStorage(client[settings.mongo_db_name])
    return FallbackExamStorage(primary, fallback)
