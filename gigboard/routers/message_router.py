# gigboard/routers/message_router.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gigboard.core.database import get_db
from gigboard.core.security import get_current_user
from gigboard.models.user import User
from gigboard.services.message_service import MessageService
from gigboard.schemas.chat_schema import MessageCreate, MessageOut, UnreadCountOut

router = APIRouter(prefix="/messages", tags=["Messaging"])

@router.post("", response_model=MessageOut, status_code=status.HTTP_201_CREATED, summary="送出訊息")
async def send_message(
    message_data: MessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    在聊天室中送出一則訊息 (text / file / image)。
    """
    service = MessageService(db)
    return await service.send_message(message_data, user)

@router.get("/unread-count", response_model=UnreadCountOut, summary="未讀訊息總數")
async def get_unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    count = await service.unread_count(user)
    return UnreadCountOut(unread_count=count)
