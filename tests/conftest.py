import json

import httpx
import pytest
import pytest_asyncio

from bloomsite.agent.client import GenerationClient
from bloomsite.agent.orchestrator import GenerationOrchestrator
from bloomsite.auth import create_token
from bloomsite.data.sqlite_store import SQLiteStore


class ScriptedModel:
    """Stands in for the LLM: returns (or raises) queued responses in order."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def model_reply(files: dict, description: str | None = "A todo app") -> str:
    payload = {"files": files}
    if description is not None:
        payload["description"] = description
    return json.dumps(payload)


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    store = SQLiteStore(str(tmp_path / "test.db"))
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def model():
    return ScriptedModel()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def generation_client(model, sleeps):
    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    return GenerationClient(complete=model, sleep=fake_sleep)


@pytest.fixture
def orchestrator(sqlite_store, generation_client):
    return GenerationOrchestrator(sqlite_store, generation_client)


@pytest.fixture
def auth_headers():
    def _headers(user_id: str = "user-1") -> dict:
        return {"Authorization": f"Bearer {create_token(user_id)}"}

    return _headers


@pytest_asyncio.fixture
async def api_client(sqlite_store, orchestrator):
    from bloomsite.main import app

    app.state.sqlite_store = sqlite_store
    app.state.orchestrator = orchestrator
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
