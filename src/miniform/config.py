from __future__ import annotations

import os
import secrets
from pathlib import Path

MAX_SECTIONS = 2
MAX_FIELDS_PER_SECTION = 3
FIELD_TYPES = ("text", "number", "email", "phone", "textarea")
# Older validation path accepted only these. Not used for validation.
LEGACY_FIELD_TYPES = ("text", "number")

DEFAULT_FORM_TITLE = "Untitled Form"
MAX_FORM_TITLE_LENGTH = 200
MAX_SECTION_NAME_LENGTH = 50
MAX_FIELD_LABEL_LENGTH = 100


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.storage_backend = os.getenv("STORAGE_BACKEND", "sqlite").lower()
        self.sqlite_path = Path(os.getenv("SQLITE_PATH", "./data/app.db"))
        self.json_path = Path(os.getenv("JSON_PATH", "./data/jsonstore.json"))
        self.auth_mode = os.getenv("AUTH_MODE", "static").lower()
        self.admin_username = os.getenv("ADMIN_USERNAME", "admin")
        self.admin_password = os.getenv("ADMIN_PASSWORD", "")
        self.session_secret = os.getenv("SESSION_SECRET") or secrets.token_urlsafe(32)
        self.session_max_age = _int_env("SESSION_MAX_AGE", 60 * 60 * 24 * 7)
        self.public_route_prefix = "/" + os.getenv("PUBLIC_ROUTE_PREFIX", "/public").strip("/")
        self.openai_api_key = os.getenv("OPENAI_API_KEY", "")
        self.openai_base_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
        self.openai_model = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = _int_env("PORT", 8000)


def ensure_dirs(settings: Settings) -> None:
    if settings.storage_backend == "json":
        settings.json_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
