"""Runtime settings resolved from environment variables."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping

from exam_portal.constants.exam_constants import EXAM_DURATION_SECONDS
from exam_portal.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_portal.constants.storage_constants import DEFAULT_DATA_DIR, DEFAULT_DB_NAME


@dataclass(frozen=True, slots=True)
class Settings:
    """Service configuration. Defaults come from the constants modules."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    mongo_url: str | None = None
    mongo_db_name: str = DEFAULT_DB_NAME
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    exam_duration_seconds: int = EXAM_DURATION_SECONDS
    admin_username: str = "admin"
    admin_password: str = "admin123"


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from ``environ`` (defaults to ``os.environ``)."""
    env = os.environ if environ is None else environ
    defaults = Settings()
    return Settings(
        host=env.get("HOST", defaults.host),
        port=_int_setting(env, "PORT", defaults.port),
        mongo_url=env.get("MONGO_URL") or None,
        mongo_db_name=env.get("MONGO_DB_NAME", defaults.mongo_db_name),
        data_dir=Path(env.get("EXAM_DATA_DIR", str(defaults.data_dir))),
        exam_duration_seconds=_int_setting(
            env, "EXAM_DURATION_SECONDS", defaults.exam_duration_seconds
        ),
        admin_username=env.get("ADMIN_USERNAME", defaults.admin_username),
        admin_password=env.get("ADMIN_PASSWORD", defaults.admin_password),
    )


def _int_setting(env: Mapping[str, str], key: str, default: int) -> int:
    raw_value = env.get(key)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw_value!r}.") from exc
    if value <= 0:
        raise ValueError(f"{key} must be a positive integer.")
    return value
