# gigboard/repositories/project_repo.py

import logging
from typing import List, Optional
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload, joinedload

# 匯入 Models
from gigboard.models.project import Project, ProjectStatusEnum
from gigboard.models.bid import Bid

# 匯入 Schemas
from gigboard.schemas.project_schema import ProjectFilter

logger = logging.getLogger(__name__)

class ProjectRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_project(self, project: Project) -> Project:
        """
        新增案件 (flush，commit 由 Service 負責)
        """
        self.db.add(project)
        await self.db.flush()
        return project

    # 獲取單一案件 (包含發案者與指派的接案者)
    async def get_project_by_id(self, project_id: str, populate_existing: bool = False) -> Project | None:
        stmt = select(Project).where(Project.project_id == project_id).options(
            joinedload(Project.client),
            joinedload(Project.freelancer)
        )
        if populate_existing:
            # commit 後重新載入，覆蓋 session 內舊的關聯資料
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_project_by_id_with_bids(self, project_id: str) -> Project | None:
        """
        透過 ID 獲取單一案件，並 Eager Load 所有提案以及提案人
        (用於 ProjectDetailOut Schema)
        """
        stmt = select(Project).where(Project.project_id == project_id).options(
            joinedload(Project.client),
            joinedload(Project.freelancer),
            # 1. 載入案件的提案列表 (project.bids)
            # 2. 針對「每一個」提案，載入提案人 (bid.freelancer)
            selectinload(Project.bids).selectinload(Bid.freelancer)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_projects(
        self,
        filters: ProjectFilter,
        client_id: Optional[str] = None
    ) -> List[Project]:
        """
        依條件複合式搜尋案件
        - 有 client_id：列出該發案者自己「未刪除」的所有案件
        - 沒有 client_id：只列出「招募中」的案件
        """
        stmt = select(Project).options(
            joinedload(Project.client),
            joinedload(Project.freelancer)
        )

        if client_id:
            stmt = stmt.where(
                Project.client_id == client_id,
                Project.status != ProjectStatusEnum.deleted
            )
        else:
            stmt = stmt.where(Project.status == ProjectStatusEnum.open)

        if filters.category:
            stmt = stmt.where(Project.category == filters.category)

        if filters.location:
            stmt = stmt.where(Project.location == filters.location)

        if filters.urgency:
            stmt = stmt.where(Project.urgency == filters.urgency)

        # 預算區間有交集即符合
        if filters.min_budget is not None:
            stmt = stmt.where(Project.budget_max >= filters.min_budget)
        if filters.max_budget is not None:
            stmt = stmt.where(Project.budget_min <= filters.max_budget)

        if filters.search:
            # 不分大小寫，比對標題、描述、技能
            term = f"%{filters.search.lower()}%"
            logger.info(f"Applying search filter: {filters.search}")
            stmt = stmt.where(
                or_(
                    func.lower(Project.title).like(term),
                    func.lower(Project.description).like(term),
                    func.lower(Project.skills).like(term),
                )
            )

        stmt = (
            stmt.order_by(Project.created_at.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()
