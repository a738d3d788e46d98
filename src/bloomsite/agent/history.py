"""Encoding of assistant turns and recovery of the current codebase from stored messages.

Assistant message content is a version-tagged JSON document::

    {"version": 2, "kind": "generation", "description": ..., "files": {...}, "isUpdate": ...}

Older rows are still readable: untagged ``{description, files, isUpdate}``
documents (version 1) and free text with a JSON payload embedded somewhere in
it (the legacy shape, recovered with the same fence-stripping extraction used
on model output). Anything else is plain text with no recoverable file set.

Prompt recovery and display recovery both go through :func:`decode_content`,
so the codebase sent to the model is always the one the user is looking at.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .content import GenerationResult, MessageContent, PlainText, Role
from .extractor import extract_json_candidate, strip_fences, validate_payload

logger = logging.getLogger(__name__)

CONTENT_VERSION = 2
GENERATION_KIND = "generation"


def encode_generation(result: GenerationResult) -> str:
    return json.dumps(
        {
            "version": CONTENT_VERSION,
            "kind": GENERATION_KIND,
            "description": result.description,
            "files": result.files,
            "isUpdate": result.is_update,
        }
    )


def _from_payload(payload: dict, files: dict[str, str]) -> GenerationResult:
    description = payload.get("description")
    return GenerationResult(
        description=description if isinstance(description, str) else "",
        files=files,
        is_update=bool(payload.get("isUpdate", False)),
    )


def _decode_legacy(content: str) -> MessageContent:
    candidate = extract_json_candidate(strip_fences(content))
    if candidate is None:
        return PlainText(content)
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        return PlainText(content)
    files = validate_payload(payload)
    if files is None:
        return PlainText(content)
    result = _from_payload(payload, files)
    if not result.description:
        result.description = content
    return result


def decode_content(role: str, content: str) -> MessageContent:
    if Role.parse(role) is not Role.ASSISTANT or not content:
        return PlainText(content or "")

    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        return _decode_legacy(content)

    if not isinstance(payload, dict):
        return PlainText(content)

    version = payload.get("version")
    if version is not None and version != CONTENT_VERSION:
        logger.warning("Unknown assistant content version %r, treating as text", version)
        return PlainText(content)
    if version == CONTENT_VERSION and payload.get("kind") != GENERATION_KIND:
        return PlainText(content)

    files = validate_payload(payload)
    if files is None:
        return PlainText(content)
    return _from_payload(payload, files)


def recover_codebase(messages: Iterable[dict]) -> str | None:
    """Return the latest assistant file set as a JSON string, or None if there is none."""
    for msg in reversed(list(messages)):
        if Role.parse(msg["role"]) is not Role.ASSISTANT:
            continue
        decoded = decode_content(msg["role"], msg["content"])
        if isinstance(decoded, GenerationResult):
            return json.dumps(decoded.files)
    return None


@dataclass
class DisplayHistory:
    messages: list[dict] = field(default_factory=list)
    files: dict[str, str] | None = None


def recover_display(messages: Iterable[dict]) -> DisplayHistory:
    """Map stored messages to chat bubbles and surface the current file set."""
    history = DisplayHistory()
    for msg in messages:
        decoded = decode_content(msg["role"], msg["content"])
        turn = {
            "id": msg.get("id"),
            "role": msg["role"].lower(),
            "created_at": msg.get("created_at"),
        }
        if isinstance(decoded, GenerationResult):
            turn["content"] = decoded.description
            turn["is_update"] = decoded.is_update
            history.files = decoded.files
        else:
            turn["content"] = decoded.text
        history.messages.append(turn)
    return history
