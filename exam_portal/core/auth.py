"""Login checks for students and administrators.

No token is issued: a successful login only lets the browser move on to the
exam or admin page.
"""

from __future__ import annotations

from dataclasses import dataclass
import hmac

from exam_portal.core.models import SessionContext


class LoginError(Exception):
    """Raised when login details are missing or wrong."""


@dataclass(frozen=True, slots=True)
class AdminCredentials:
    username: str
    password: str


def student_login(name: str | None, roll_number: str | None) -> SessionContext:
    cleaned_name = (name or "").strip()
    cleaned_roll = (roll_number or "").strip()
    if not cleaned_name or not cleaned_roll:
        raise LoginError("Missing fields")
    return SessionContext(name=cleaned_name, roll_number=cleaned_roll)


def admin_login(credentials: AdminCredentials, username: str | None, password: str | None) -> None:
    valid_user = hmac.compare_digest((username or "").encode(), credentials.username.encode())
    valid_password = hmac.compare_digest((password or "").encode(), credentials.password.encode())
    if not (valid_user and valid_password):
        raise LoginError("Invalid admin credentials")
