import json

import pytest
from pymongo.errors import PyMongoError

from exam_portal.settings import Settings
from exam_portal.storage.exam_storage import (
    FallbackExamStorage,
    JsonFileExamStorage,
    MongoExamStorage,
    StorageError,
    connect_storage,
)


class FakeCollection:
    def __init__(self):
        self.documents = []
        self.fail = False
        self._next_id = 0

    def _check(self):
        if self.fail:
            raise PyMongoError("connection lost")

    def find(self, query):
        self._check()
        return [dict(doc) for doc in self.documents]

    def find_one(self, query):
        self._check()
        for doc in self.documents:
            if all(doc.get(key) == value for key, value in query.items()):
                return dict(doc)
        return None

    def delete_many(self, query):
        self._check()
        self.documents = []

    def insert_many(self, documents):
        self._check()
        for doc in documents:
            self.insert_one(doc)

    def insert_one(self, document):
        self._check()
        self._next_id += 1
        document["_id"] = self._next_id
        self.documents.append(document)


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


def test_json_storage_round_trips_questions(tmp_path):
    storage = JsonFileExamStorage(tmp_path)
    storage.replace_questions([{"question": "Q?", "answer": "a"}])
    assert storage.questions_file == tmp_path / "uploads" / "questions.json"
    assert storage.fetch_questions() == [{"question": "Q?", "answer": "a"}]
    assert json.loads(storage.questions_file.read_text(encoding="utf-8"))[0]["answer"] == "a"


def test_json_storage_reads_blank_or_corrupt_files_as_empty(tmp_path):
    storage = JsonFileExamStorage(tmp_path)
    assert storage.fetch_questions() == []
    storage.questions_file.write_text("   ", encoding="utf-8")
    assert storage.fetch_questions() == []
    storage.results_file.write_text("{broken", encoding="utf-8")
    assert storage.fetch_submissions() == []


def test_json_storage_stamps_and_appends_submissions(tmp_path):
    storage = JsonFileExamStorage(tmp_path)
    record = storage.insert_submission({"name": "A", "rollNumber": "1", "answers": {}, "score": 0})
    assert record["submittedAt"]
    storage.insert_submission({"name": "B", "rollNumber": "2", "answers": {}, "score": 1})
    assert [row["name"] for row in storage.fetch_submissions()] == ["A", "B"]


def test_json_storage_deduplicates_by_submission_id(tmp_path):
    storage = JsonFileExamStorage(tmp_path)
    document = {"name": "A", "rollNumber": "1", "answers": {}, "score": 0, "submissionId": "tok"}
    storage.insert_submission(document)
    storage.insert_submission(document)
    assert len(storage.fetch_submissions()) == 1


def test_mongo_storage_replaces_bank_and_hides_object_ids():
    database = FakeDatabase()
    storage = MongoExamStorage(database)
    storage.replace_questions([{"question": "old", "answer": "a"}])
    documents = [{"question": "new", "answer": "b"}]
    storage.replace_questions(documents)
    assert storage.fetch_questions() == [{"question": "new", "answer": "b"}]
    assert "_id" not in documents[0]


def test_mongo_storage_deduplicates_by_submission_id():
    storage = MongoExamStorage(FakeDatabase())
    document = {"name": "A", "rollNumber": "1", "answers": {}, "score": 0, "submissionId": "tok"}
    storage.insert_submission(document)
    storage.insert_submission(document)
    (stored,) = storage.fetch_submissions()
    assert stored["submissionId"] == "tok"
    assert "_id" not in stored


def test_mongo_errors_become_storage_errors():
    database = FakeDatabase()
    storage = MongoExamStorage(database)
    database["questions"].fail = True
    with pytest.raises(StorageError):
        storage.fetch_questions()


def test_fallback_reads_files_when_mongo_read_fails(tmp_path):
    database = FakeDatabase()
    files = JsonFileExamStorage(tmp_path)
    files.replace_questions([{"question": "from file", "answer": "a"}])
    storage = FallbackExamStorage(MongoExamStorage(database), files)
    database["questions"].fail = True
    assert storage.fetch_questions() == [{"question": "from file", "answer": "a"}]
    assert storage.primary_ready


def test_fallback_write_failure_switches_to_files(tmp_path):
    database = FakeDatabase()
    files = JsonFileExamStorage(tmp_path)
    storage = FallbackExamStorage(MongoExamStorage(database), files)
    database["results"].fail = True

    storage.insert_submission({"name": "A", "rollNumber": "1", "answers": {}, "score": 2})

    assert not storage.primary_ready
    assert [row["score"] for row in files.fetch_submissions()] == [2]
    assert [row["score"] for row in storage.fetch_submissions()] == [2]


def test_fallback_without_primary_uses_files(tmp_path):
    storage = FallbackExamStorage(None, JsonFileExamStorage(tmp_path))
    storage.mark_primary_ready(True)
    assert not storage.primary_ready
    storage.replace_questions([{"question": "Q", "answer": "a"}])
    assert storage.fetch_questions() == [{"question": "Q", "answer": "a"}]


def test_connect_storage_without_url_uses_files(tmp_path):
    storage = connect_storage(Settings(data_dir=tmp_path))
    assert not storage.primary_ready
    assert (tmp_path / "uploads").is_dir()
