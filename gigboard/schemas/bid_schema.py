# gigboard/schemas/bid_schema.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional
from gigboard.models.bid import BidStatusEnum
from gigboard.models.project import ProjectStatusEnum
from gigboard.schemas.user_schema import UserBrief, UserPublic

# --- 建立 (Create) ---
class BidCreate(BaseModel):
    project_id: str
    amount: int = Field(..., gt=0, description="出價金額 (TWD)")
    proposal: str = Field(..., min_length=1)
    timeline: str = Field(..., min_length=1, max_length=50)

# --- 雇主接受/拒絕 ---
class BidStatusUpdate(BaseModel):
    status: BidStatusEnum

# --- 讀取 (Read / Out) ---
class BidOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bid_id: str
    project_id: str
    freelancer_id: str
    amount: int
    proposal: Optional[str] = None
    timeline: Optional[str] = None
    status: BidStatusEnum
    created_at: datetime
    updated_at: datetime

# 提案列表 (雇主檢視用)
class BidOutWithFreelancer(BidOut):
    freelancer: Optional[UserBrief] = None

# 公開的案件詳情只顯示提案人的公開資訊
class BidOutPublic(BidOut):
    freelancer: Optional[UserPublic] = None

# 「我的提案」頁面只需要案件的摘要
class BidProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_id: str
    title: str
    budget_min: int
    budget_max: int
    status: ProjectStatusEnum

class BidOutWithProject(BidOut):
    project: Optional[BidProjectSummary] = None
