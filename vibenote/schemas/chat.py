"""
Chat schemas.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal, Union
from datetime import datetime

Role = Literal["user", "assistant"]


class ContentItem(BaseModel):
    """One typed block of a structured message body."""
    model_config = ConfigDict(extra="allow")

    type: str
    text: Optional[str] = None
    image: Optional[str] = None


class Attachment(BaseModel):
    """An image reference attached to a turn. Never persisted on its own."""
    url: str
    content_type: str = "application/octet-stream"


class IncomingMessage(BaseModel):
    """A role-tagged message as sent by the chat client."""
    model_config = ConfigDict(extra="allow")

    role: Role
    content: Union[str, List[ContentItem]]

    def text(self) -> str:
        """Plain text of the message; text blocks are joined with spaces."""
        if isinstance(self.content, str):
            return self.content
        return " ".join(item.text or "" for item in self.content if item.type == "text")


class TurnData(BaseModel):
    """Extra per-turn data sent alongside the messages."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    use_library: bool = Field(default=False, alias="useLibrary")


class ChatTurnRequest(BaseModel):
    """Body of POST /api/chat (attachments are normalized separately)."""
    model_config = ConfigDict(extra="allow")

    messages: List[IncomingMessage] = Field(..., min_length=1)
    data: Optional[TurnData] = None


class ChatTurn(BaseModel):
    """Canonical, validated form of one user submission."""
    chat_id: str
    user_id: str
    messages: List[IncomingMessage]
    inline_image: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)
    use_library: bool = False

    @property
    def current(self) -> IncomingMessage:
        return self.messages[-1]


class Chat(BaseModel):
    """A persisted conversation."""
    chat_id: str
    user_id: str
    title: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ChatPreview(Chat):
    """Chat with its latest message, for the sidebar."""
    last_message: str = "No messages yet"
    last_message_time: datetime
    message_count: int = 0


class ChatMessage(BaseModel):
    """A single persisted message."""
    message_id: str
    chat_id: str
    user_id: str
    role: Role
    content: str
    image_url: Optional[str] = Field(default=None, description="External URL or storage reference id")
    related_images: List[str] = Field(default_factory=list, description="Library images shown with an answer")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ChatMessageResponse(ChatMessage):
    """Message with its storage reference resolved to a fetchable URL."""
    image_src: Optional[str] = None


class ChatCreate(BaseModel):
    """Request to create a chat, optionally with its first user message."""
    title: Optional[str] = None
    first_message: Optional[str] = None
    image_url: Optional[str] = None


class ChatCreateResponse(BaseModel):
    chat_id: str
    path: str
    message_id: Optional[str] = None


class ChatTitleUpdate(BaseModel):
    title: str = Field(..., min_length=1)


class MessageUpdate(BaseModel):
    content: str


class MessageCountResponse(BaseModel):
    chat_id: str
    count: int


class ClearHistoryResponse(BaseModel):
    deleted_count: int
