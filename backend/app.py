"""Backend API for NotionIQ: accounts plus AI key points and quizzes from study notes."""

import logging
from datetime import timedelta
from functools import wraps
from typing import Dict, Optional, Tuple

from flask import Blueprint, Flask, current_app, jsonify, request, session
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from ai_gateway import GeminiGateway, build_key_points_prompt, build_quiz_prompt, validate_notes
from auth import AuthService
from config import Config
from errors import AppError, ValidationError
from normalizer import extract_key_points, extract_quiz
from notes import load_uploaded_notes
from sessions import SessionStore
from storage import CredentialStore

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
EXTENSION_KEY = "notioniq"

api = Blueprint("api", __name__, url_prefix="/api")


class AppContext:
    """Everything a request handler needs, built once per app."""

    def __init__(self, config: Config, users: CredentialStore, sessions: SessionStore, gateway) -> None:
        self.config = config
        self.users = users
        self.sessions = sessions
        self.gateway = gateway
        self.auth = AuthService(users, sessions)


def get_context() -> AppContext:
    return current_app.extensions[EXTENSION_KEY]


def create_app(
    config: Optional[Config] = None,
    *,
    user_store: Optional[CredentialStore] = None,
    session_store: Optional[SessionStore] = None,
    gateway=None,
) -> Flask:
    config = config or Config.from_env()
    users = user_store or CredentialStore(config.database_path)
    sessions = session_store or SessionStore(config.database_path, config.session_lifetime)
    users.init_db()
    sessions.init_db()
    purged = sessions.purge_expired()
    if purged:
        logger.info("purged %d expired sessions", purged)

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=config.session_secret,
        PERMANENT_SESSION_LIFETIME=timedelta(seconds=config.session_lifetime),
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        MAX_CONTENT_LENGTH=MAX_UPLOAD_BYTES,
    )
    CORS(app, origins=config.cors_origins, supports_credentials=True)
    app.extensions[EXTENSION_KEY] = AppContext(
        config,
        users,
        sessions,
        gateway or GeminiGateway.from_config(config),
    )
    app.register_blueprint(api)
    return app


def json_endpoint(failure_message: str):
    """Convert any failure inside a route into the ``{success: false, message}`` envelope.

    Client errors keep their own message. Server-side errors are logged and
    answered with ``failure_message`` so no internal detail reaches the client.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except AppError as exc:
                if exc.status_code >= 500:
                    logger.error("%s failed: %s", request.path, exc.message, exc_info=exc)
                    message = failure_message
                else:
                    logger.info("%s rejected: %s", request.path, exc.message)
                    message = exc.message
                return jsonify({"success": False, "message": message}), exc.status_code
            except HTTPException as exc:
                logger.info("%s rejected: %s", request.path, exc.description)
                return jsonify({"success": False, "message": exc.description}), exc.code
            except Exception:
                logger.exception("unexpected error on %s", request.path)
                return jsonify({"success": False, "message": failure_message}), 500

        return wrapper

    return decorator


def read_json_body() -> Dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Invalid request body")
    return body


def read_notes() -> str:
    upload = request.files.get("file")
    if upload is not None and upload.filename:
        notes = load_uploaded_notes(upload.filename, upload.read())
    else:
        notes = read_json_body().get("notes")
    return validate_notes(notes)


@api.route("/analyze", methods=["POST"])
@json_endpoint("Failed to analyze notes. Please try again.")
def analyze() -> Tuple[Dict, int]:
    ctx = get_context()
    notes = read_notes()
    raw_text = ctx.gateway.generate(build_key_points_prompt(notes))
    result = extract_key_points(raw_text)
    logger.info("extracted %d key points via %s stage", len(result.points), result.stage)
    return jsonify({"success": True, "points": result.points}), 200


@api.route("/generate-quiz", methods=["POST"])
@json_endpoint("Failed to generate quiz. Please try again.")
def generate_quiz() -> Tuple[Dict, int]:
    ctx = get_context()
    notes = read_notes()
    raw_text = ctx.gateway.generate(build_quiz_prompt(notes))
    questions = extract_quiz(
        raw_text,
        require_answer_in_options=ctx.config.quiz_require_answer_in_options,
    )
    return jsonify({"success": True, "questions": questions}), 200


@api.route("/signup", methods=["POST"])
@json_endpoint("Server error. Please try again.")
def signup() -> Tuple[Dict, int]:
    body = read_json_body()
    user = get_context().auth.register(
        body.get("username"),
        body.get("email"),
        body.get("password"),
        session,
    )
    session.permanent = True
    return (
        jsonify({"success": True, "message": "Account created successfully", "user": user}),
        201,
    )


@api.route("/signin", methods=["POST"])
@json_endpoint("Server error. Please try again.")
def signin() -> Tuple[Dict, int]:
    body = read_json_body()
    user = get_context().auth.sign_in(body.get("email"), body.get("password"), session)
    session.permanent = True
    return jsonify({"success": True, "message": "Signed in successfully", "user": user}), 200


@api.route("/logout", methods=["POST"])
@json_endpoint("Could not log out")
def logout() -> Tuple[Dict, int]:
    get_context().auth.sign_out(session)
    session.clear()
    return jsonify({"success": True, "message": "Logged out successfully"}), 200


@api.route("/auth/check", methods=["GET"])
def auth_check() -> Dict:
    return jsonify(get_context().auth.check_auth(session))


@api.route("/test", methods=["GET"])
def liveness() -> Dict:
    return jsonify({"success": True, "message": "Server is working!"})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app_config = Config.from_env()
    create_app(app_config).run(host="localhost", port=app_config.port, debug=True)
