from pathlib import Path

import pytest

from exam_portal.core.auth import AdminCredentials, LoginError, admin_login, student_login
from exam_portal.settings import load_settings


def test_defaults_without_environment():
    settings = load_settings({})
    assert settings.port == 5000
    assert settings.mongo_url is None
    assert settings.mongo_db_name == "GestureExamDB"
    assert settings.exam_duration_seconds == 1800
    assert settings.data_dir == Path(".")


def test_environment_overrides():
    settings = load_settings(
        {
            "PORT": "8080",
            "MONGO_URL": "mongodb://db:27017",
            "EXAM_DURATION_SECONDS": "600",
            "EXAM_DATA_DIR": "/srv/exam",
            "ADMIN_PASSWORD": "s3cret",
        }
    )
    assert settings.port == 8080
    assert settings.mongo_url == "mongodb://db:27017"
    assert settings.exam_duration_seconds == 600
    assert settings.data_dir == Path("/srv/exam")
    assert settings.admin_password == "s3cret"


@pytest.mark.parametrize("value", ["abc", "0", "-5"])
def test_invalid_integer_settings_are_rejected(value):
    with pytest.raises(ValueError):
        load_settings({"EXAM_DURATION_SECONDS": value})


def test_student_login_builds_context():
    context = student_login(" Asha ", "R-17")
    assert (context.name, context.roll_number) == ("Asha", "R-17")


@pytest.mark.parametrize(("name", "roll"), [("", "R-1"), ("Asha", None), ("  ", "  ")])
def test_student_login_requires_both_fields(name, roll):
    with pytest.raises(LoginError, match="Missing fields"):
        student_login(name, roll)


def test_admin_login_checks_credentials():
    credentials = AdminCredentials("admin", "admin123")
    admin_login(credentials, "admin", "admin123")
    with pytest.raises(LoginError, match="Invalid admin credentials"):
        admin_login(credentials, "admin", "wrong")
    with pytest.raises(LoginError):
        admin_login(credentials, None, None)
