"""
Chat and message management router.

Thin router that delegates to ChatController.
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Union

from vibenote.controllers import ChatController
from vibenote.core.auth import require_user_id
from vibenote.core.dependencies import get_chat_controller
from vibenote.schemas import (
    Chat,
    ChatCreate,
    ChatCreateResponse,
    ChatMessageResponse,
    ChatPreview,
    ChatTitleUpdate,
    ClearHistoryResponse,
    MessageCountResponse,
    MessageUpdate,
)

router = APIRouter(prefix="/api", tags=["Chats"])


@router.post("/chats", response_model=ChatCreateResponse, status_code=201)
async def create_chat(
    request: ChatCreate,
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    """Create a chat, optionally with the first user message."""
    return await controller.create_chat(user_id, request)


@router.get("/chats", response_model=List[Union[ChatPreview, Chat]])
async def list_chats(
    preview: bool = Query(False, description="Include the latest message of each chat"),
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    """List the caller's chats, newest first."""
    if preview:
        return await controller.list_previews(user_id)
    return await controller.list_chats(user_id)


@router.get("/chats/recent", response_model=List[Chat])
async def recent_chats(
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    return await controller.recent_chats(user_id)


@router.get("/chats/search", response_model=List[Chat])
async def search_chats(
    q: str = Query("", description="Case-insensitive title substring"),
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    return await controller.search_chats(user_id, q)


@router.get("/chats/{chat_id}", response_model=Chat)
async def get_chat(
    chat_id: str,
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    return await controller.get_chat(chat_id, user_id)


@router.patch("/chats/{chat_id}", response_model=Chat)
async def rename_chat(
    chat_id: str,
    update: ChatTitleUpdate,
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    return await controller.rename_chat(chat_id, user_id, update.title)


@router.delete("/chats/{chat_id}")
async def delete_chat(
    chat_id: str,
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    """Delete a chat and all of its messages."""
    deleted = await controller.delete_chat(chat_id, user_id)
    return {"message": f"Chat {chat_id} deleted", "deleted_messages": deleted}


@router.get("/chats/{chat_id}/messages", response_model=List[ChatMessageResponse])
async def get_messages(
    chat_id: str,
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    """Messages in creation order, with stored images resolved to URLs."""
    return await controller.get_messages(chat_id, user_id)


@router.get("/chats/{chat_id}/messages/count", response_model=MessageCountResponse)
async def count_messages(
    chat_id: str,
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    count = await controller.count_messages(chat_id, user_id)
    return MessageCountResponse(chat_id=chat_id, count=count)


@router.delete("/chats/{chat_id}/messages", response_model=ClearHistoryResponse)
async def clear_history(
    chat_id: str,
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    deleted = await controller.clear_history(chat_id, user_id)
    return ClearHistoryResponse(deleted_count=deleted)


@router.patch("/messages/{message_id}", response_model=ChatMessageResponse)
async def update_message(
    message_id: str,
    update: MessageUpdate,
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    return await controller.update_message(message_id, user_id, update.content)


@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: str,
    user_id: str = Depends(require_user_id),
    controller: ChatController = Depends(get_chat_controller),
):
    await controller.delete_message(message_id, user_id)
    return {"message": f"Message {message_id} deleted"}
