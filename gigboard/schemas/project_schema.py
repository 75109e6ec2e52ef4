# gigboard/schemas/project_schema.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Optional
from datetime import datetime
from gigboard.models.project import ProjectStatusEnum
from gigboard.schemas.user_schema import UserPublic
from gigboard.schemas.bid_schema import BidOutPublic

# 1. 基礎欄位 (對應 Model)
class ProjectBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    budget_min: int = Field(..., gt=0)
    budget_max: int = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=50)
    location: str = Field(..., min_length=1, max_length=50)
    skills: Optional[str] = None
    requirements: Optional[str] = None
    urgency: Optional[str] = Field(None, max_length=20)
    deadline: Optional[datetime] = None

# 2. 雇主刊登案件時的 Request Body (Input)
# (預算區間的 min < max 檢查放在 Service 層)
class ProjectCreate(ProjectBase):
    pass

# 3. 雇主更新案件時的 Request Body (整筆覆蓋)
class ProjectUpdate(ProjectBase):
    pass

# 4. 更新案件狀態 (不含 deleted，刪除請走 DELETE)
class ProjectStatusUpdate(BaseModel):
    status: ProjectStatusEnum

# 5. 回傳給前端的案件資料 (Output)
class ProjectOut(ProjectBase):
    model_config = ConfigDict(from_attributes=True)

    project_id: str
    client_id: str
    freelancer_id: Optional[str] = None
    currency: str
    status: ProjectStatusEnum
    created_at: datetime
    updated_at: datetime

    client: Optional[UserPublic] = None
    freelancer: Optional[UserPublic] = None

# 6. 案件詳情 (包含所有提案與提案人)
class ProjectDetailOut(ProjectOut):
    bids: List[BidOutPublic] = []

# 7. 案件列表查詢條件
class ProjectFilter(BaseModel):
    my_projects: bool = False
    category: Optional[str] = None
    location: Optional[str] = None
    urgency: Optional[str] = None
    min_budget: Optional[int] = None
    max_budget: Optional[int] = None
    search: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)

    @model_validator(mode="after")
    def drop_placeholder_values(self):
        # 前端下拉選單的「全部」選項等於不篩選
        if self.category == "全部類別":
            self.category = None
        if self.location == "全部地點":
            self.location = None
        return self
