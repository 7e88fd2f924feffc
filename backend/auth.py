"""Account registration, sign-in and session lifecycle."""

import logging
import re
import sqlite3
from typing import Dict, MutableMapping

from werkzeug.security import check_password_hash, generate_password_hash

from errors import AuthError, ConflictError, InternalError, ValidationError
from sessions import SessionStore
from storage import CredentialStore

logger = logging.getLogger(__name__)

SESSION_KEY = "sid"
MIN_USERNAME_CHARS = 3
MIN_PASSWORD_CHARS = 6
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
INVALID_CREDENTIALS = "Invalid email or password"
# Unknown emails are checked against this so both failures cost one hash.
DUMMY_PASSWORD_HASH = generate_password_hash("not-a-real-password")


def normalize_email(email) -> str:
    return str(email or "").strip().lower()


def public_view(user: Dict) -> Dict:
    return {"username": user["username"], "email": user["email"]}


class AuthService:
    def __init__(self, users: CredentialStore, sessions: SessionStore) -> None:
        self.users = users
        self.sessions = sessions

    def register(self, username, email, password, session: MutableMapping) -> Dict:
        username = str(username or "").strip()
        email = normalize_email(email)
        password = str(password or "")
        if not username or not email or not password:
            raise ValidationError("All fields are required")
        if len(username) < MIN_USERNAME_CHARS:
            raise ValidationError(f"Username must be at least {MIN_USERNAME_CHARS} characters")
        if not EMAIL_RE.match(email):
            raise ValidationError("Please provide a valid email address")
        if len(password) < MIN_PASSWORD_CHARS:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_CHARS} characters")

        if self.users.exists(username, email):
            raise ConflictError("Username or email already exists")

        user = self.users.create_user(username, email, generate_password_hash(password))
        self._start_session(user, session)
        logger.info("registered user %s", user["username"])
        return public_view(user)

    def sign_in(self, email, password, session: MutableMapping) -> Dict:
        email = normalize_email(email)
        password = str(password or "")
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self.users.find_by_email(email)
        password_hash = user["password_hash"] if user else DUMMY_PASSWORD_HASH
        if not check_password_hash(password_hash, password) or user is None:
            raise AuthError(INVALID_CREDENTIALS)

        self._start_session(user, session)
        return public_view(user)

    def sign_out(self, session: MutableMapping) -> None:
        session_id = session.pop(SESSION_KEY, None)
        if not session_id:
            return
        try:
            self.sessions.destroy(session_id)
        except sqlite3.Error as exc:
            raise InternalError("Could not log out") from exc

    def check_auth(self, session: MutableMapping) -> Dict:
        session_id = session.get(SESSION_KEY)
        if not session_id:
            return {"authenticated": False}
        try:
            record = self.sessions.get(session_id)
        except sqlite3.Error:
            logger.exception("session lookup failed")
            return {"authenticated": False}
        if record is None:
            session.pop(SESSION_KEY, None)
            return {"authenticated": False}
        return {"authenticated": True, "username": record["username"]}

    def _start_session(self, user: Dict, session: MutableMapping) -> None:
        previous = session.get(SESSION_KEY)
        if previous:
            self.sessions.destroy(previous)
        session[SESSION_KEY] = self.sessions.create(user["id"], user["username"])
