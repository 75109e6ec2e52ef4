# gigboard/repositories/chat_repo.py

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import and_, or_, delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

from gigboard.models.chat import Chat, Message


def _visible_to(user_id: str):
    """
    使用者參與、且自己沒有隱藏的聊天室條件
    """
    return or_(
        and_(Chat.client_id == user_id, Chat.client_hidden == False),
        and_(Chat.freelancer_id == user_id, Chat.freelancer_hidden == False),
    )


class ChatRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Chat 相關操作 ---

    def _with_relations(self, stmt):
        # ChatOut 需要 project / client / freelancer
        return stmt.options(
            joinedload(Chat.project),
            joinedload(Chat.client),
            joinedload(Chat.freelancer),
        )

    async def get_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        stmt = select(Chat).where(Chat.chat_id == chat_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_chat_by_id_with_relations(self, chat_id: str) -> Optional[Chat]:
        stmt = self._with_relations(select(Chat).where(Chat.chat_id == chat_id))
        # 剛 commit 的物件還在 session 裡，強制重新載入關聯
        stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_chat(self, project_id: str, client_id: str, freelancer_id: str) -> Optional[Chat]:
        """
        (project, client, freelancer) 三者唯一對應一個聊天室
        """
        stmt = self._with_relations(
            select(Chat).where(
                Chat.project_id == project_id,
                Chat.client_id == client_id,
                Chat.freelancer_id == freelancer_id,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_chats_by_project_id(self, project_id: str) -> List[Chat]:
        stmt = select(Chat).where(Chat.project_id == project_id)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_visible_chats(self, user_id: str) -> List[Chat]:
        """
        使用者參與且未隱藏的聊天室，最近有訊息的在前
        """
        stmt = self._with_relations(
            select(Chat)
            .where(_visible_to(user_id))
            .order_by(Chat.last_activity_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def add_chat(self, chat: Chat) -> Chat:
        self.db.add(chat)
        await self.db.flush()
        return chat

    async def delete_chat_with_messages(self, chat_id: str) -> None:
        """
        實際刪除聊天室與其所有訊息 (不可復原)
        """
        await self.db.execute(delete(Message).where(Message.chat_id == chat_id))
        await self.db.execute(delete(Chat).where(Chat.chat_id == chat_id))

    # --- 未讀計數 ---

    async def count_unread_by_chat(self, user_id: str, chat_ids: List[str]) -> Dict[str, int]:
        """
        每個聊天室中「不是自己送出」且「未讀」的訊息數
        """
        if not chat_ids:
            return {}
        stmt = (
            select(Message.chat_id, func.count(Message.message_id))
            .where(
                Message.chat_id.in_(chat_ids),
                Message.sender_id != user_id,
                Message.read_at.is_(None),
            )
            .group_by(Message.chat_id)
        )
        rows = (await self.db.execute(stmt)).all()
        return {chat_id: count for chat_id, count in rows}

    async def count_unread_for_user(self, user_id: str) -> int:
        """
        所有未隱藏聊天室的未讀總數 (通知徽章用)
        """
        stmt = (
            select(func.count(Message.message_id))
            .join(Chat, Chat.chat_id == Message.chat_id)
            .where(
                _visible_to(user_id),
                Message.sender_id != user_id,
                Message.read_at.is_(None),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    # --- Message 相關操作 ---

    async def get_messages_by_chat_id(self, chat_id: str) -> List[Message]:
        """
        完整歷史訊息 (舊 -> 新)，不分頁
        """
        stmt = (
            select(Message)
            .where(Message.chat_id == chat_id)
            .options(joinedload(Message.sender))
            .order_by(Message.created_at.asc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_message_by_id(self, message_id: str) -> Optional[Message]:
        stmt = (
            select(Message)
            .where(Message.message_id == message_id)
            .options(joinedload(Message.sender))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def add_message(self, message: Message) -> Message:
        self.db.add(message)
        await self.db.flush()
        return message

    async def mark_messages_as_read(self, chat_id: str, user_id: str, read_at: datetime) -> int:
        """
        對方送出的未讀訊息一次全部標記已讀，共用同一個時間戳。
        回傳被更新的筆數。
        """
        update_stmt = (
            update(Message)
            .where(
                and_(
                    Message.chat_id == chat_id,
                    Message.sender_id != user_id,
                    Message.read_at.is_(None)
                )
            )
            .values(read_at=read_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(update_stmt)
        return result.rowcount
