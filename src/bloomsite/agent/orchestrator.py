import json
import logging
import time
from collections.abc import Awaitable, Callable

from ..config import DEFAULT_TITLE, TITLE_MAX_CHARS
from ..errors import (
    AuthenticationError,
    AuthorizationError,
    BloomsiteError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from .client import GenerationClient
from .content import GenerationResult, Role
from .extractor import extract_generation
from .history import encode_generation, recover_codebase
from .prompts import ConversationState, build_prompt, state_for

logger = logging.getLogger(__name__)

StatusHook = Callable[[str], Awaitable[None]]


def bootstrap_title(prompt: str) -> str:
    if len(prompt) > TITLE_MAX_CHARS:
        return prompt[:TITLE_MAX_CHARS] + "..."
    return prompt


def title_is_default(title: str | None) -> bool:
    return title is None or title == DEFAULT_TITLE


async def load_owned_conversation(store, conversation_id: str, user_id: str) -> dict:
    """Fetch a conversation, raising NotFoundError/AuthorizationError unless user_id owns it."""
    conv = await store.get_conversation(conversation_id)
    if not conv:
        raise NotFoundError("Conversation not found")
    if conv["user_id"] != user_id:
        raise AuthorizationError("Unauthorized access to conversation")
    return conv


class GenerationOrchestrator:
    """Runs one generate request: load, prompt, call the model, validate, persist."""

    def __init__(self, store, client: GenerationClient) -> None:
        self._store = store
        self._client = client

    async def prepare(
        self, user_id: str | None, prompt: str | None, conversation_id: str | None
    ) -> dict:
        """Validate a request and return the caller's conversation, raising on any failure."""
        if not user_id:
            raise AuthenticationError("Unauthorized")
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt is required")
        # Never create a conversation here: a double submit would fork the chat
        if not conversation_id:
            raise ValidationError("Conversation ID is required")
        return await load_owned_conversation(self._store, conversation_id, user_id)

    async def generate(
        self,
        user_id: str | None,
        prompt: str | None,
        conversation_id: str | None,
        on_status: StatusHook | None = None,
    ) -> GenerationResult:
        async def status(message: str) -> None:
            if on_status:
                await on_status(message)

        conv = await self.prepare(user_id, prompt, conversation_id)

        messages = await self._store.get_messages(conversation_id)
        codebase_json = recover_codebase(messages)
        state = state_for(codebase_json)
        is_update = state is ConversationState.IN_PROGRESS
        full_prompt = build_prompt(prompt, codebase_json)

        # Recorded before the model call so failed attempts stay in the history
        await self._store.add_message(conversation_id, Role.USER, prompt)

        if title_is_default(conv["title"]):
            await self._store.update_conversation_title(conversation_id, bootstrap_title(prompt))

        logger.info(
            "Generating for conversation %s (state=%s, prompt=%d chars)",
            conversation_id,
            state.value,
            len(full_prompt),
        )
        await status("Updating your app..." if is_update else "Generating your app...")

        async def on_retry(attempt: int, error: Exception) -> None:
            await status(f"Model call failed (attempt {attempt}), retrying...")

        t0 = time.time()
        try:
            raw = await self._client.generate(full_prompt, on_retry=on_retry)
            result = extract_generation(raw, is_update=is_update)
        except BloomsiteError as e:
            logger.exception("Generation failed for conversation %s", conversation_id)
            raise UpstreamError("Generation failed", details=e.message) from e
        except Exception as e:
            logger.exception("Generation failed for conversation %s", conversation_id)
            raise UpstreamError("Generation failed", details=str(e)) from e

        await status("Saving generated files...")
        snapshot = result
        if is_update:
            # Stored turns always hold the whole file set, responses only the changes
            prior = json.loads(codebase_json)
            snapshot = GenerationResult(
                description=result.description,
                files={**prior, **result.files},
                is_update=True,
            )
        await self._store.add_message(conversation_id, Role.ASSISTANT, encode_generation(snapshot))

        logger.info(
            "Generated %d files for conversation %s in %dms",
            len(result.files),
            conversation_id,
            round((time.time() - t0) * 1000),
        )
        return result
