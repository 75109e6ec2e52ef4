# gigboard/services/chat_service.py

import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gigboard.models.user import User, UserRoleEnum
from gigboard.models.chat import Chat
from gigboard.repositories.chat_repo import ChatRepository
from gigboard.repositories.project_repo import ProjectRepository
from gigboard.repositories.user_repo import UserRepository
from gigboard.schemas.chat_schema import ChatCreate, ChatWithUnreadOut
from gigboard.core.database import utc_now
from gigboard.core.exceptions import (
    AuthorizationError, NotFoundError, StorageError, ValidationError
)

logger = logging.getLogger(__name__)


# --- 參與者身分 (以 ID 判斷，不看使用者目前的角色) ---

def participant_side(chat: Chat, user: User) -> UserRoleEnum:
    """
    回傳使用者在這個聊天室中的身分；不是參與者則 403
    """
    if chat.client_id == user.user_id:
        return UserRoleEnum.client
    if chat.freelancer_id == user.user_id:
        return UserRoleEnum.freelancer
    raise AuthorizationError("你沒有權限存取此聊天室")

def is_hidden_for(chat: Chat, side: UserRoleEnum) -> bool:
    if side == UserRoleEnum.client:
        return chat.client_hidden
    elif side == UserRoleEnum.freelancer:
        return chat.freelancer_hidden
    raise ValueError(f"Unknown chat side: {side}")

def set_hidden(chat: Chat, side: UserRoleEnum, hidden: bool) -> None:
    """只改自己那一邊的旗標"""
    if side == UserRoleEnum.client:
        chat.client_hidden = hidden
    elif side == UserRoleEnum.freelancer:
        chat.freelancer_hidden = hidden
    else:
        raise ValueError(f"Unknown chat side: {side}")


async def get_chat_for_participant(chat_repo: ChatRepository, chat_id: str, user: User) -> Tuple[Chat, UserRoleEnum]:
    """
    取得聊天室並確認使用者是參與者 (404 / 403)
    """
    chat = await chat_repo.get_chat_by_id(chat_id)
    if not chat:
        raise NotFoundError("聊天室不存在")
    return chat, participant_side(chat, user)


class ChatService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)
        self.project_repo = ProjectRepository(db)
        self.user_repo = UserRepository(db)

    async def open_chat(self, chat_data: ChatCreate, creator: User) -> Tuple[Chat, bool]:
        """
        發案者針對自己的案件與某位接案者開啟聊天室。
        已存在就直接回傳 (get-or-create)。
        回傳 (chat, 是否為新建立)
        """
        if creator.role != UserRoleEnum.client:
            raise AuthorizationError("只有發案者可以建立聊天室")

        project = await self.project_repo.get_project_by_id(chat_data.project_id)
        if not project:
            raise NotFoundError("案件不存在")
        if project.client_id != creator.user_id:
            raise AuthorizationError("你只能為自己的案件建立聊天室")

        freelancer = await self.user_repo.get_user_by_id(chat_data.freelancer_id)
        if not freelancer:
            raise NotFoundError("接案者不存在")
        if freelancer.role != UserRoleEnum.freelancer:
            raise ValidationError("指定的使用者不是接案者")

        # rollback 之後 ORM 物件會過期，先把 id 取出來
        key = (project.project_id, creator.user_id, freelancer.user_id)

        # 檢查聊天室是否已存在
        existing = await self.chat_repo.find_chat(*key)
        if existing:
            return existing, False

        now = utc_now()
        new_chat = Chat(
            project_id=project.project_id,
            client_id=creator.user_id,
            freelancer_id=freelancer.user_id,
            client_hidden=False,
            freelancer_hidden=False,
            created_at=now,
            last_activity_at=now
        )
        try:
            await self.chat_repo.add_chat(new_chat)
            await self.db.commit()
        except IntegrityError:
            # 另一個請求搶先建立了同一個聊天室，回傳那一筆
            await self.db.rollback()
            existing = await self.chat_repo.find_chat(*key)
            if existing is None:
                logger.error("聊天室建立衝突後仍找不到既有聊天室", exc_info=True)
                raise StorageError()
            return existing, False
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"聊天室建立失敗: {e}", exc_info=True)
            raise StorageError()

        logger.info(f"Chat created: {new_chat.chat_id} (project={key[0]}, freelancer={key[2]})")
        chat = await self.chat_repo.get_chat_by_id_with_relations(new_chat.chat_id)
        return chat, True

    async def list_chats(self, user: User) -> List[ChatWithUnreadOut]:
        """
        使用者參與且沒有隱藏的聊天室，最近有活動的在前，附上各自的未讀數
        """
        chats = await self.chat_repo.list_visible_chats(user.user_id)
        unread = await self.chat_repo.count_unread_by_chat(user.user_id, [c.chat_id for c in chats])

        result = []
        for chat in chats:
            item = ChatWithUnreadOut.model_validate(chat)
            item.unread_count = unread.get(chat.chat_id, 0)
            result.append(item)
        return result

    async def hide_chat(self, chat_id: str, user: User) -> bool:
        """
        隱藏 (軟刪除) 聊天室，只影響自己這一邊。
        兩邊都隱藏後，聊天室與所有訊息會被實際刪除，無法復原。
        回傳是否觸發了實際刪除。
        """
        chat, side = await get_chat_for_participant(self.chat_repo, chat_id, user)
        set_hidden(chat, side, True)

        hard_delete = chat.client_hidden and chat.freelancer_hidden
        try:
            await self.db.flush()
            if hard_delete:
                await self.chat_repo.delete_chat_with_messages(chat.chat_id)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"隱藏聊天室失敗: {e}", exc_info=True)
            raise StorageError()

        if hard_delete:
            logger.info(f"Chat {chat_id} hidden by both sides, deleted with its messages")
        return hard_delete
