"""Runtime configuration loaded from .env files and the process environment."""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


BACKEND_DIR = Path(__file__).resolve().parent
DEFAULT_DB_PATH = BACKEND_DIR / "notioniq.db"
DEFAULT_GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-pro"
DEFAULT_SESSION_SECRET = "notioniq-secret-key-change-in-production"
DEFAULT_SESSION_LIFETIME = 60 * 60 * 24
DEFAULT_CORS_ORIGINS = "http://localhost:3000"
MIN_NOTES_CHARS = 50
MAX_KEY_POINTS = 7
MAX_QUIZ_QUESTIONS = 5

# Load env vars from project .env and user home .env if present.
load_dotenv(BACKEND_DIR / ".env")
load_dotenv(Path.home() / ".env")


def env_str(name: str, default: str = "") -> str:
    raw = os.environ.get(name, default)
    return raw.strip().strip('"').strip("'")


def env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = env_str(name)
    if not raw:
        return default
    return int(raw)


def env_bool(name: str, default: bool = False) -> bool:
    raw = env_str(name).lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


class Config:
    def __init__(
        self,
        *,
        database_path: Path = DEFAULT_DB_PATH,
        gemini_api_key: str = "",
        gemini_model: str = DEFAULT_GEMINI_MODEL,
        gemini_api_base: str = DEFAULT_GEMINI_API_BASE,
        session_secret: str = DEFAULT_SESSION_SECRET,
        session_lifetime: int = DEFAULT_SESSION_LIFETIME,
        cors_origins: Optional[List[str]] = None,
        ai_request_timeout: Optional[int] = None,
        quiz_require_answer_in_options: bool = False,
        port: int = 3000,
    ) -> None:
        self.database_path = Path(database_path)
        self.gemini_api_key = gemini_api_key
        self.gemini_model = gemini_model
        self.gemini_api_base = gemini_api_base.rstrip("/")
        self.session_secret = session_secret
        self.session_lifetime = session_lifetime
        self.cors_origins = cors_origins if cors_origins is not None else [DEFAULT_CORS_ORIGINS]
        self.ai_request_timeout = ai_request_timeout
        self.quiz_require_answer_in_options = quiz_require_answer_in_options
        self.port = port

    @classmethod
    def from_env(cls) -> "Config":
        origins = env_str("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
        return cls(
            database_path=Path(env_str("DATABASE_PATH") or DEFAULT_DB_PATH).expanduser(),
            gemini_api_key=env_str("GEMINI_API_KEY"),
            gemini_model=env_str("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            gemini_api_base=env_str("GEMINI_API_BASE") or DEFAULT_GEMINI_API_BASE,
            session_secret=env_str("SESSION_SECRET") or DEFAULT_SESSION_SECRET,
            session_lifetime=env_int("SESSION_LIFETIME_SECONDS", DEFAULT_SESSION_LIFETIME),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            ai_request_timeout=env_int("AI_REQUEST_TIMEOUT", None),
            quiz_require_answer_in_options=env_bool("QUIZ_REQUIRE_ANSWER_IN_OPTIONS"),
            port=env_int("PORT", 3000),
        )
