# gigboard/services/project_service.py
import logging
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# 匯入 Models
from gigboard.models.user import User, UserRoleEnum
from gigboard.models.project import Project, ProjectStatusEnum
from gigboard.models.chat import Message, MessageTypeEnum

# 匯入 Schemas
from gigboard.schemas.project_schema import ProjectCreate, ProjectUpdate, ProjectStatusUpdate, ProjectFilter

# 匯入 Repositories
from gigboard.repositories.project_repo import ProjectRepository
from gigboard.repositories.chat_repo import ChatRepository

from gigboard.core.database import utc_now
from gigboard.core.exceptions import (
    AuthenticationError, AuthorizationError, GoneError, NotFoundError, StorageError, ValidationError
)

logger = logging.getLogger(__name__)

# 案件被刪除時，寫進每個相關聊天室的系統訊息
PROJECT_DELETED_NOTICE = "此案件已被發案者刪除。"

class ProjectService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.project_repo = ProjectRepository(db)
        self.chat_repo = ChatRepository(db)

    @staticmethod
    def _check_budget(budget_min: int, budget_max: int) -> None:
        if budget_min >= budget_max:
            raise ValidationError("預算下限必須小於上限")

    async def _get_owned_project(self, project_id: str, user: User) -> Project:
        """
        獲取案件並檢查是否為擁有者 (不檢查狀態)
        """
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise NotFoundError("案件不存在")
        if project.client_id != user.user_id:
            raise AuthorizationError("你只能管理自己刊登的案件")
        return project

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{action}失敗: {e}", exc_info=True)
            raise StorageError()

    async def create_project(self, project_data: ProjectCreate, user: User) -> Project:
        """
        業務邏輯：建立案件
        """
        # 1. 權限驗證：必須是發案者
        if user.role != UserRoleEnum.client:
            raise AuthorizationError("只有發案者可以刊登案件")

        # 2. 資料校驗
        self._check_budget(project_data.budget_min, project_data.budget_max)

        data = project_data.model_dump()
        data["urgency"] = data.get("urgency") or "一般"
        new_project = Project(
            **data,
            client_id=user.user_id,
            currency="TWD",
            status=ProjectStatusEnum.open
        )
        await self.project_repo.add_project(new_project)
        await self._commit("建立案件")

        logger.info(f"Project created: {new_project.project_id} by {user.user_id}")
        return await self.project_repo.get_project_by_id(new_project.project_id, populate_existing=True)

    async def search_projects(
        self, filters: ProjectFilter, user: Optional[User] = None
    ) -> List[Project]:
        """
        業務邏輯：搜尋案件
        my_projects=true 時需要登入，回傳自己所有未刪除的案件
        """
        if filters.my_projects:
            if user is None:
                raise AuthenticationError()
            return await self.project_repo.list_projects(filters, client_id=user.user_id)
        return await self.project_repo.list_projects(filters)

    async def get_project_details(self, project_id: str) -> Project:
        """
        業務邏輯：獲取單一案件詳情 (包含提案)
        """
        project = await self.project_repo.get_project_by_id_with_bids(project_id)
        if not project:
            raise NotFoundError("案件不存在")
        if project.status == ProjectStatusEnum.deleted:
            raise GoneError("案件已被刪除")
        return project

    async def update_project(
        self, project_id: str, data: ProjectUpdate, user: User
    ) -> Project:
        """
        業務邏輯：更新案件內容 (整筆覆蓋)
        """
        project = await self._get_owned_project(project_id, user)
        if project.status == ProjectStatusEnum.deleted:
            raise GoneError("案件已被刪除")

        self._check_budget(data.budget_min, data.budget_max)

        update_data = data.model_dump()
        # 未指定急迫程度時保留原值
        if not update_data.get("urgency"):
            update_data.pop("urgency")
        for key, value in update_data.items():
            setattr(project, key, value)

        await self._commit("更新案件")
        return await self.project_repo.get_project_by_id(project_id, populate_existing=True)

    async def update_project_status(
        self, project_id: str, data: ProjectStatusUpdate, user: User
    ) -> Project:
        """
        業務邏輯：更新案件狀態 (open / in_progress / completed / cancelled)
        """
        if data.status == ProjectStatusEnum.deleted:
            raise ValidationError("刪除案件請使用 DELETE /projects/{id}")

        project = await self._get_owned_project(project_id, user)
        if project.status == ProjectStatusEnum.deleted:
            raise GoneError("案件已被刪除")

        project.status = data.status
        await self._commit("更新案件狀態")
        return await self.project_repo.get_project_by_id(project_id, populate_existing=True)

    async def archive_project(self, project_id: str, user: User) -> Project:
        """
        業務邏輯：軟刪除案件。
        狀態改為 deleted，並在每個相關聊天室留下系統訊息 (同一個 transaction)。
        聊天室本身保留。
        """
        project = await self._get_owned_project(project_id, user)
        if project.status == ProjectStatusEnum.deleted:
            raise ValidationError("案件已經被刪除")

        now = utc_now()
        chats = await self.chat_repo.get_chats_by_project_id(project_id)
        for chat in chats:
            await self.chat_repo.add_message(
                Message(
                    chat_id=chat.chat_id,
                    sender_id=user.user_id,  # 以發案者身分送出
                    content=PROJECT_DELETED_NOTICE,
                    type=MessageTypeEnum.system,
                    created_at=now
                )
            )
            chat.last_activity_at = now

        project.status = ProjectStatusEnum.deleted
        await self._commit("刪除案件")

        logger.info(f"Project archived: {project_id} ({len(chats)} chats notified)")
        return project
