"""Turn free-form model output into key points or quiz questions.

Model output format is not guaranteed, so key-point extraction degrades
from strict JSON to a line heuristic instead of failing. Quiz questions need
structured fields, so quiz extraction has no textual fallback.
"""

import json
import logging
import re
from typing import Dict, List, NamedTuple, Optional

from config import MAX_KEY_POINTS, MAX_QUIZ_QUESTIONS
from errors import ParseError

logger = logging.getLogger(__name__)

MIN_LINE_CHARS = 10
BULLET_RE = re.compile(r"^(?:[-•*]|\d+\.)+\s*")
QUIZ_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


class KeyPointsResult(NamedTuple):
    points: List[str]
    stage: str


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.startswith("json"):
            cleaned = cleaned[4:]
        cleaned = cleaned.strip()
    return cleaned


def key_points_from_json(raw_text: str) -> Optional[List[str]]:
    try:
        data = json.loads(strip_code_fence(raw_text))
    except (ValueError, RecursionError):
        return None
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        return None
    return [item.strip() for item in data if item.strip()]


def key_points_from_lines(raw_text: str) -> List[str]:
    points: List[str] = []
    for line in raw_text.splitlines():
        stripped = line.strip()
        if len(stripped) <= MIN_LINE_CHARS:
            continue
        point = BULLET_RE.sub("", stripped).strip()
        if point:
            points.append(point)
    return points


def extract_key_points(raw_text: str) -> KeyPointsResult:
    points = key_points_from_json(raw_text)
    if points is not None:
        return KeyPointsResult(points[:MAX_KEY_POINTS], "json")
    return KeyPointsResult(key_points_from_lines(raw_text)[:MAX_KEY_POINTS], "lines")


def answer_in_options(question: Dict) -> bool:
    options = question.get("options")
    return isinstance(options, list) and question.get("answer") in options


def extract_quiz(raw_text: str, require_answer_in_options: bool = False) -> List[Dict]:
    match = QUIZ_ARRAY_RE.search(raw_text or "")
    if match is None:
        raise ParseError("Failed to parse quiz questions")
    try:
        data = json.loads(match.group(0))
    except (ValueError, RecursionError) as exc:
        raise ParseError("Failed to parse quiz questions") from exc
    if not isinstance(data, list):
        raise ParseError("Failed to parse quiz questions")

    questions = [item for item in data if isinstance(item, dict)]
    mismatched = [q for q in questions if not answer_in_options(q)]
    if mismatched:
        logger.warning("%d quiz question(s) have an answer outside their options", len(mismatched))
        if require_answer_in_options:
            questions = [q for q in questions if answer_in_options(q)]
    return questions[:MAX_QUIZ_QUESTIONS]
