import asyncio
import logging

from fastapi import APIRouter, Depends, Request, status
from sse_starlette.sse import EventSourceResponse

from ..agent.content import Role
from ..agent.history import recover_display
from ..agent.orchestrator import load_owned_conversation
from ..auth import Session, get_session
from ..errors import BloomsiteError, ValidationError
from .models import (
    ConversationCreate,
    ConversationDetail,
    ConversationOut,
    GenerateRequest,
    GenerateResponse,
    GeneratedApp,
    MessageCreate,
    MessageOut,
)
from .sse import sse_done, sse_error, sse_status

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.post("/api/generate", response_model=GenerateResponse)
async def generate_endpoint(
    req: GenerateRequest, request: Request, session: Session = Depends(get_session)
):
    orchestrator = request.app.state.orchestrator
    result = await orchestrator.generate(session.user.id, req.prompt, req.conversation_id)
    return GenerateResponse(data=GeneratedApp(**result.to_response()))


@router.post("/api/generate/stream")
async def generate_stream_endpoint(
    req: GenerateRequest, request: Request, session: Session = Depends(get_session)
):
    orchestrator = request.app.state.orchestrator
    # Reject bad requests with a proper status before the stream opens
    await orchestrator.prepare(session.user.id, req.prompt, req.conversation_id)

    queue: asyncio.Queue = asyncio.Queue()

    async def push_status(message: str) -> None:
        await queue.put(("status", message))

    async def run_generation():
        try:
            result = await orchestrator.generate(
                session.user.id, req.prompt, req.conversation_id, on_status=push_status
            )
            await queue.put(("done", {"success": True, "data": result.to_response()}))
        except BloomsiteError as e:
            await queue.put(("error", e))
        except Exception:
            logger.exception("Error in generation stream")
            await queue.put(("error", BloomsiteError("Internal server error")))
        finally:
            await queue.put(("_sentinel", None))

    async def event_generator():
        task = asyncio.create_task(run_generation())
        while True:
            event_type, event_data = await queue.get()
            if event_type == "_sentinel":
                break
            elif event_type == "status":
                yield sse_status(event_data)
            elif event_type == "done":
                yield sse_done(event_data)
            elif event_type == "error":
                yield sse_error(event_data.message)
                yield sse_done({"success": False, **event_data.to_dict()})
        await task

    return EventSourceResponse(event_generator(), ping=15)


@router.get("/api/conversations", response_model=list[ConversationOut])
async def list_conversations(request: Request, session: Session = Depends(get_session)):
    sqlite = request.app.state.sqlite_store
    return await sqlite.list_conversations(session.user.id)


@router.post(
    "/api/conversations",
    response_model=ConversationOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(
    request: Request,
    body: ConversationCreate | None = None,
    session: Session = Depends(get_session),
):
    sqlite = request.app.state.sqlite_store
    title = body.title if body else None
    return await sqlite.create_conversation(session.user.id, title)


@router.get("/api/conversations/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: str, request: Request, session: Session = Depends(get_session)
):
    sqlite = request.app.state.sqlite_store
    conv = await load_owned_conversation(sqlite, conversation_id, session.user.id)
    history = recover_display(await sqlite.get_messages(conversation_id))
    return {"conversation": conv, "messages": history.messages, "files": history.files}


@router.delete("/api/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: str, request: Request, session: Session = Depends(get_session)
):
    sqlite = request.app.state.sqlite_store
    await load_owned_conversation(sqlite, conversation_id, session.user.id)
    await sqlite.delete_conversation(conversation_id)
    logger.info("Deleted conversation %s", conversation_id)
    return {"success": True}


@router.post(
    "/api/conversations/{conversation_id}/messages",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_message(
    conversation_id: str,
    body: MessageCreate,
    request: Request,
    session: Session = Depends(get_session),
):
    sqlite = request.app.state.sqlite_store
    if not isinstance(body.role, str) or not isinstance(body.content, str):
        raise ValidationError("Both `role` and `content` strings are required")
    try:
        role = Role.parse(body.role)
    except ValueError:
        raise ValidationError(f"Unknown role: {body.role}") from None

    await load_owned_conversation(sqlite, conversation_id, session.user.id)
    return await sqlite.add_message(conversation_id, role, body.content)
