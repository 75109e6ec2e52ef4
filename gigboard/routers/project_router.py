# gigboard/routers/project_router.py
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

# 匯入核心依賴
from gigboard.core.database import get_db
from gigboard.core.security import get_current_user, get_current_user_optional
from gigboard.models.user import User

# 匯入 Service 和 Schemas
from gigboard.services.project_service import ProjectService
from gigboard.services.bid_service import BidService
from gigboard.schemas.project_schema import (
    ProjectCreate, ProjectDetailOut, ProjectFilter, ProjectOut, ProjectStatusUpdate, ProjectUpdate
)
from gigboard.schemas.bid_schema import BidOutWithFreelancer

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
)

@router.get("", response_model=List[ProjectOut])
async def search_projects(
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
    my_projects: bool = False,
    category: Optional[str] = None,
    location: Optional[str] = None,
    urgency: Optional[str] = None,
    min_budget: Optional[int] = None,
    max_budget: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """
    搜尋/篩選案件 (公開)。

    - 預設只列出「招募中 (open)」的案件。
    - `my_projects=true` (需登入)：列出自己刊登、未刪除的所有案件。
    - 支援 類別、地點、急迫程度、預算區間、關鍵字 篩選，新的在前。
    """
    filters = ProjectFilter(
        my_projects=my_projects,
        category=category,
        location=location,
        urgency=urgency,
        min_budget=min_budget,
        max_budget=max_budget,
        search=search,
        page=page,
        limit=limit,
    )
    logger.info(f"Project search: {filters.model_dump(exclude_none=True)}")

    service = ProjectService(db)
    return await service.search_projects(filters, current_user)

@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_new_project(
    project_data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    刊登新案件。

    - (權限) 僅限「發案者 client」。
    - (資料) budget_min 必須小於 budget_max。
    """
    service = ProjectService(db)
    return await service.create_project(project_data=project_data, user=current_user)

# 拿到特定的案件詳情
@router.get("/{project_id}", response_model=ProjectDetailOut)
async def get_project_by_id(
    project_id: str,
    db: AsyncSession = Depends(get_db)
):
    """
    獲取單一案件的詳細資料 (公開，含出價列表)。
    已刪除的案件回傳 410。
    """
    service = ProjectService(db)
    return await service.get_project_details(project_id)

@router.put("/{project_id}", response_model=ProjectOut)
async def update_project_details(
    project_id: str,
    project_data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (發案者) 更新自己案件的內容。
    """
    service = ProjectService(db)
    return await service.update_project(
        project_id=project_id,
        data=project_data,
        user=current_user
    )

@router.patch("/{project_id}/status", response_model=ProjectOut)
async def update_project_status(
    project_id: str,
    status_data: ProjectStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (發案者) 更新案件狀態：open / in_progress / completed / cancelled。
    """
    service = ProjectService(db)
    return await service.update_project_status(
        project_id=project_id,
        data=status_data,
        user=current_user
    )

@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (發案者) 刪除案件 (軟刪除)。
    相關聊天室會收到一則系統訊息，聊天室本身保留。
    """
    service = ProjectService(db)
    await service.archive_project(project_id, current_user)
    return {"message": "案件已刪除"}

@router.get("/{project_id}/bids", response_model=List[BidOutWithFreelancer])
async def get_project_bids(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (發案者) 檢視自己案件收到的所有出價 (新的在前)。
    """
    service = BidService(db)
    return await service.get_project_bids(project_id, current_user)
