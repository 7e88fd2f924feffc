"""Gemini generateContent client and the prompts sent through it."""

import logging
from typing import Dict, List, Optional

import requests

from config import MAX_KEY_POINTS, MAX_QUIZ_QUESTIONS, MIN_NOTES_CHARS, Config
from errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)


def validate_notes(notes) -> str:
    if not isinstance(notes, str) or len(notes) < MIN_NOTES_CHARS or not notes.strip():
        raise ValidationError(f"Please provide at least {MIN_NOTES_CHARS} characters of notes")
    return notes


def build_key_points_prompt(notes: str) -> str:
    return (
        f"Analyze these study notes and extract exactly {MAX_KEY_POINTS} important key points. "
        "Format as a JSON array of strings. "
        f"Notes: {notes}"
    )


def build_quiz_prompt(notes: str) -> str:
    return (
        f"Based on these study notes, generate exactly {MAX_QUIZ_QUESTIONS} multiple choice questions.\n"
        "Format as JSON array with this structure:\n"
        '[{"question": "question text", "options": ["A", "B", "C", "D"], '
        '"answer": "correct answer", "explanation": "why this is correct"}]\n'
        "- Every question must have exactly 4 options.\n"
        "- answer must be copied exactly from one of the options.\n\n"
        f"Notes: {notes}"
    )


def extract_text_from_response(response_json: Dict) -> str:
    texts: List[str] = []
    candidates = response_json.get("candidates") or []
    if candidates:
        for part in (candidates[0].get("content") or {}).get("parts", []):
            text = part.get("text")
            if isinstance(text, str):
                texts.append(text)
    return "".join(texts).strip()


class GeminiGateway:
    def __init__(
        self,
        api_key: str,
        model: str,
        api_base: str,
        timeout: Optional[int] = None,
        http=None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    @classmethod
    def from_config(cls, config: Config) -> "GeminiGateway":
        return cls(
            config.gemini_api_key,
            config.gemini_model,
            config.gemini_api_base,
            timeout=config.ai_request_timeout,
        )

    @property
    def url(self) -> str:
        model = self.model if self.model.startswith("models/") else f"models/{self.model}"
        return f"{self.api_base}/{model}:generateContent"

    def generate(self, prompt: str) -> str:
        """Send one prompt and return the model's raw text completion."""
        if not self.api_key:
            raise UpstreamError("GEMINI_API_KEY is not set.")

        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            response = self.http.post(
                self.url,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UpstreamError(f"Gemini API request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok:
            error = body.get("error") if isinstance(body, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            logger.warning("Gemini responded %s", response.status_code)
            raise UpstreamError(message or "AI API error")

        raw_text = extract_text_from_response(body) if isinstance(body, dict) else ""
        if not raw_text:
            raise UpstreamError("Model response did not include text output.")
        return raw_text
