"""Exam-related constants shared across core and server layers."""

EXAM_DURATION_SECONDS: int = 30 * 60
TICK_INTERVAL_SECONDS: float = 1.0
SESSION_RETENTION_SECONDS: float = 10 * 60
ANSWER_KEY_PREFIX: str = "Q"
OPTION_LABELS: tuple[str, ...] = ("a", "b", "c", "d")

# Gesture keyboard
KEYBOARD_ROWS: tuple[str, ...] = ("QWERTYUIOP", "ASDFGHJKL", "ZXCVBNM")
KEY_SPACE: str = "SPACE"
KEY_BACKSPACE: str = "BACKSPACE"
KEY_CLEAR: str = "CLEAR"
PINCH_THRESHOLD: float = 0.05
SELECT_COOLDOWN_MS: int = 600

# Status messages
SUBMITTED_MESSAGE_TEMPLATE: str = "Exam submitted successfully! Score: {score}/{total}"
AUTO_SUBMITTED_MESSAGE_TEMPLATE: str = "Time over. Exam auto-submitted. Score: {score}/{total}"
SUBMISSION_FAILED_MESSAGE: str = "Failed to submit exam."
SUBMISSION_SERVER_ERROR_MESSAGE: str = "Server error while submitting exam."
LOAD_FAILED_MESSAGE: str = "Failed to load questions."
NO_QUESTIONS_MESSAGE: str = "No questions available."
NO_QUESTIONS_TO_SUBMIT_MESSAGE: str = "No questions to submit."
GESTURE_DISABLED_TEMPLATE: str = "Gesture keyboard disabled: {reason}"
