"""Environment configuration for mail delivery and the HTTP layer.

Values are read once at import time, optionally from a ``.env`` file.
Database and token settings live next to the code that uses them in
:mod:`account_service.database` and :mod:`account_service.security`.
"""

from __future__ import annotations

import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

ROOT_PATH = os.getenv("ROOT_PATH", "")

CREATE_DB = os.getenv("CREATE_DB", "0") == "1"
"""Create missing tables on startup instead of relying on Alembic."""

SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
SMTP_PORT = int(os.getenv("SMTP_PORT", "25"))
SMTP_USERNAME: Optional[str] = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD: Optional[str] = os.getenv("SMTP_PASSWORD")
SMTP_STARTTLS = os.getenv("SMTP_STARTTLS", "0") == "1"
SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", "10"))

MAIL_FROM = os.getenv("MAIL_FROM", "noreply@bookproject.local")


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


CORS_ORIGINS = _split_origins(os.getenv("CORS_ORIGINS", "http://localhost:3000"))
