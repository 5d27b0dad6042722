"""Storage configuration constants for the exam portal."""

DEFAULT_DB_NAME: str = "GestureExamDB"
QUESTIONS_COLLECTION: str = "questions"
RESULTS_COLLECTION: str = "results"
SERVER_SELECTION_TIMEOUT_MS: int = 5000

DEFAULT_DATA_DIR: str = "."
UPLOADS_DIRNAME: str = "uploads"
QUESTIONS_FILENAME: str = "questions.json"
RESULTS_FILENAME: str = "results.json"
