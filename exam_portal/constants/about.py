"""Static metadata describing the exam portal."""

APP_NAME = "Gesture Exam Portal"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Gesture Exam Portal is a browser-based examination tool built with FastAPI. "
    "Students answer questions by keyboard or with a webcam hand-gesture keyboard; "
    "administrators upload question banks and review results."
)
