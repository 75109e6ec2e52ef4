# gigboard/routers/chat_router.py

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from gigboard.core.database import get_db
from gigboard.core.security import get_current_user
from gigboard.models.user import User
from gigboard.services.chat_service import ChatService
from gigboard.services.message_service import MessageService
from gigboard.schemas.chat_schema import (
    ChatCreate, ChatHiddenOut, ChatOut, ChatWithUnreadOut, MarkReadOut, MessageOut
)

router = APIRouter(prefix="/chats", tags=["Chats"])

@router.get("", response_model=List[ChatWithUnreadOut], summary="獲取使用者的聊天室列表")
async def list_user_chats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    獲取當前登入使用者參與、且沒有隱藏的聊天室列表。
    依最後活動時間排序 (新 -> 舊)，每個聊天室附上未讀數。
    """
    service = ChatService(db)
    return await service.list_chats(user)

@router.post("", response_model=ChatOut, status_code=status.HTTP_201_CREATED, summary="開啟聊天室")
async def open_chat(
    chat_data: ChatCreate,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    發案者針對自己的案件聯絡一位接案者。
    聊天室已存在時回傳 200 與原本的聊天室。
    """
    service = ChatService(db)
    chat, created = await service.open_chat(chat_data, user)
    if not created:
        response.status_code = status.HTTP_200_OK
    return chat

@router.get("/{chat_id}/messages", response_model=List[MessageOut], summary="獲取聊天室的歷史訊息")
async def get_history_messages(
    chat_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    獲取聊天室的完整歷史訊息 (舊 -> 新)。
    不會自動標記已讀，請呼叫 PUT /chats/{chat_id}/read。
    """
    service = MessageService(db)
    return await service.list_messages(chat_id, user)

@router.put("/{chat_id}/read", response_model=MarkReadOut, summary="標記聊天室訊息為已讀")
async def mark_chat_as_read(
    chat_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    updated = await service.mark_as_read(chat_id, user)
    return MarkReadOut(updated=updated)

@router.delete("/{chat_id}", response_model=ChatHiddenOut, summary="刪除 (隱藏) 聊天室")
async def hide_chat(
    chat_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    只對自己隱藏聊天室，對方仍看得到。
    對方之後傳訊息不會讓聊天室重新出現；自己傳訊息才會。
    雙方都刪除後，聊天室與訊息會被永久刪除。
    """
    service = ChatService(db)
    deleted = await service.hide_chat(chat_id, user)
    return ChatHiddenOut(message="聊天室已刪除", deleted=deleted)
