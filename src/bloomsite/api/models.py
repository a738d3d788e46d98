from pydantic import BaseModel, ConfigDict, Field


class HistoryTurn(BaseModel):
    role: str
    content: str


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = None
    conversation_id: str | None = Field(default=None, alias="conversationId")
    # Informational only: codebase context is recovered from stored messages
    history: list[HistoryTurn] | None = None


class GeneratedApp(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    files: dict[str, str]
    description: str
    is_update: bool = Field(default=False, alias="isUpdate")


class GenerateResponse(BaseModel):
    success: bool = True
    data: GeneratedApp


class ConversationCreate(BaseModel):
    title: str | None = None


class MessageCreate(BaseModel):
    role: str | None = None
    content: str | None = None


class ConversationOut(BaseModel):
    id: str
    user_id: str
    title: str | None
    created_at: str
    updated_at: str


class MessageOut(BaseModel):
    id: str
    conversation_id: str
    role: str
    content: str
    created_at: str


class DisplayMessageOut(BaseModel):
    id: str | None = None
    role: str
    content: str
    created_at: str | None = None
    is_update: bool | None = None


class ConversationDetail(BaseModel):
    conversation: ConversationOut
    messages: list[DisplayMessageOut]
    files: dict[str, str] | None = None
