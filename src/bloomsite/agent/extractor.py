import json
import logging
import re
from collections.abc import Iterator

from ..errors import MalformedResponseError
from .content import GenerationResult

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

DEFAULT_DESCRIPTION = "Generated Next.js application"
DEFAULT_UPDATE_DESCRIPTION = "Updated Next.js application files"


def strip_fences(text: str) -> str:
    return FENCE_RE.sub("", text).strip()


def find_json_objects(text: str) -> Iterator[str]:
    """Yield every balanced top-level ``{...}`` span in text.

    Braces inside JSON string literals (including escaped quotes) do not count
    towards nesting, so code embedded in file contents cannot end an object early.
    """
    depth = 0
    start = 0
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            # Quotes in surrounding prose are not string delimiters
            if depth > 0:
                in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start : i + 1]


def validate_payload(payload: object) -> dict[str, str] | None:
    """Return the payload's files mapping if it is a str -> str mapping, else None."""
    if not isinstance(payload, dict):
        return None
    files = payload.get("files")
    if not isinstance(files, dict):
        return None
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in files.items()):
        return None
    return files


def extract_json_candidate(text: str) -> str | None:
    """Pick the JSON object in text most likely to be the generation payload.

    Preference order: the first balanced object carrying a ``files`` key, then
    the first balanced object, then the span from the first ``{`` to the last ``}``.
    """
    first = None
    for candidate in find_json_objects(text):
        if first is None:
            first = candidate
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict) and "files" in parsed:
            return candidate
    if first is not None:
        return first

    start = text.find("{")
    end = text.rfind("}")
    if start >= 0 and end > start:
        return text[start : end + 1]
    return None


def extract_generation(text: str, is_update: bool) -> GenerationResult:
    """Parse raw model output into a GenerationResult or raise MalformedResponseError."""
    candidate = extract_json_candidate(strip_fences(text))
    if candidate is None:
        logger.error("No JSON found in AI response: %s", text[:500])
        raise MalformedResponseError("No JSON object found in AI response")

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        logger.error("JSON parse error: %s", candidate[:500])
        raise MalformedResponseError("Invalid JSON format in AI response") from None

    files = validate_payload(payload)
    if files is None:
        raise MalformedResponseError("Response missing valid files object")

    description = payload.get("description")
    if not isinstance(description, str) or not description.strip():
        description = DEFAULT_UPDATE_DESCRIPTION if is_update else DEFAULT_DESCRIPTION

    return GenerationResult(description=description, files=files, is_update=is_update)
