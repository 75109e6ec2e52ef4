# gigboard/services/message_service.py

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gigboard.models.user import User
from gigboard.models.chat import Message, MessageTypeEnum
from gigboard.repositories.chat_repo import ChatRepository
from gigboard.schemas.chat_schema import MessageCreate
from gigboard.services.chat_service import get_chat_for_participant, is_hidden_for, set_hidden
from gigboard.core.database import utc_now
from gigboard.core.exceptions import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

# 使用者可以送出的訊息類型 (system 只由伺服器產生)
USER_MESSAGE_TYPES = {MessageTypeEnum.text, MessageTypeEnum.file, MessageTypeEnum.image}


class MessageService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)

    async def send_message(self, message_in: MessageCreate, sender: User) -> Message:
        """
        送出訊息。
        - 聊天室被自己隱藏時，送訊息會取消自己的隱藏 (不影響對方)
        - 聊天室的 last_activity_at 更新為這則訊息的時間 (列表排序用)
        """
        message_type = message_in.type or MessageTypeEnum.text
        if message_type not in USER_MESSAGE_TYPES:
            raise ValidationError("不支援的訊息類型")
        if not message_in.content.strip():
            raise ValidationError("訊息內容不可為空白")

        chat, side = await get_chat_for_participant(self.chat_repo, message_in.chat_id, sender)

        if is_hidden_for(chat, side):
            set_hidden(chat, side, False)

        now = utc_now()
        new_message = Message(
            chat_id=chat.chat_id,
            sender_id=sender.user_id,
            content=message_in.content,
            type=message_type,
            file_url=message_in.file_url,
            created_at=now
        )
        chat.last_activity_at = new_message.created_at

        try:
            await self.chat_repo.add_message(new_message)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"送出訊息失敗: {e}", exc_info=True)
            raise StorageError()

        # 重新查詢以帶出 sender
        return await self.chat_repo.get_message_by_id(new_message.message_id)

    async def list_messages(self, chat_id: str, user: User) -> List[Message]:
        """
        完整歷史訊息 (舊 -> 新)。
        被自己隱藏的聊天室視同不存在 (404)。
        不會改變已讀狀態，請另外呼叫 mark_as_read。
        """
        chat, side = await get_chat_for_participant(self.chat_repo, chat_id, user)
        if is_hidden_for(chat, side):
            raise NotFoundError("聊天室不存在")
        return await self.chat_repo.get_messages_by_chat_id(chat.chat_id)

    async def mark_as_read(self, chat_id: str, user: User) -> int:
        """
        把對方送出的未讀訊息全部標記為已讀 (同一個時間戳)。
        沒有未讀時什麼都不做，回傳 0。
        """
        chat, _ = await get_chat_for_participant(self.chat_repo, chat_id, user)
        try:
            updated = await self.chat_repo.mark_messages_as_read(chat.chat_id, user.user_id, utc_now())
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"標記已讀失敗: {e}", exc_info=True)
            raise StorageError()
        return updated

    async def unread_count(self, user: User) -> int:
        """
        所有未隱藏聊天室的未讀訊息總數
        """
        return await self.chat_repo.count_unread_for_user(user.user_id)
