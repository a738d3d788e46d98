import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ClaudeSDKClient,
    TextBlock,
)

from ..config import MAX_GENERATION_ATTEMPTS, MODEL, RETRY_BASE_DELAY_SECS

logger = logging.getLogger(__name__)

CompleteFn = Callable[[str], Awaitable[str]]
RetryHook = Callable[[int, Exception], Awaitable[None]]


async def claude_complete(prompt: str) -> str:
    """Send one prompt to Claude and return the concatenated text of its reply."""
    options = ClaudeAgentOptions(model=MODEL, max_turns=1, allowed_tools=[])
    parts = []
    async with ClaudeSDKClient(options=options) as client:
        await client.query(prompt)
        async for message in client.receive_response():
            if isinstance(message, AssistantMessage):
                for block in message.content:
                    if isinstance(block, TextBlock) and block.text:
                        parts.append(block.text)

    text = "".join(parts)
    if not text.strip():
        raise RuntimeError("Model returned an empty response")
    return text


class GenerationClient:
    """Calls the model with bounded retry and quadratic backoff.

    After failed attempt ``n`` (1-based) the client sleeps ``n**2 * base_delay``
    seconds before trying again. Once ``max_attempts`` calls have failed the
    last exception is re-raised unchanged.
    """

    def __init__(
        self,
        complete: CompleteFn | None = None,
        max_attempts: int = MAX_GENERATION_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY_SECS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._complete = complete or claude_complete
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._sleep = sleep

    async def generate(self, prompt: str, on_retry: RetryHook | None = None) -> str:
        attempt = 0
        while True:
            attempt += 1
            t0 = time.time()
            try:
                text = await self._complete(prompt)
            except Exception as e:
                logger.warning(
                    "Generation attempt %d/%d failed after %dms: %s",
                    attempt,
                    self._max_attempts,
                    round((time.time() - t0) * 1000),
                    e,
                )
                if attempt >= self._max_attempts:
                    raise
                if on_retry:
                    await on_retry(attempt, e)
                await self._sleep(attempt * attempt * self._base_delay)
                continue

            logger.info(
                "Generation attempt %d succeeded in %dms (%d chars)",
                attempt,
                round((time.time() - t0) * 1000),
                len(text),
            )
            return text

    async def close(self) -> None:
        pass
