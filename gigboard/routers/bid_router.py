# gigboard/routers/bid_router.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from gigboard.core.database import get_db
from gigboard.core.security import get_current_user
from gigboard.models.user import User
from gigboard.services.bid_service import BidService
from gigboard.schemas.bid_schema import BidCreate, BidOut, BidOutWithProject, BidStatusUpdate

# 建立 API Router
router = APIRouter(
    prefix="/bids",
    tags=["Bids"],
    dependencies=[Depends(get_current_user)] # 此 router 下所有 API 都需要登入
)

@router.post("", response_model=BidOut, status_code=status.HTTP_201_CREATED)
async def submit_bid(
    bid_data: BidCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    接案者對案件出價。

    - 案件必須是「招募中」。
    - 同一案件只能出價一次 (重複回 409)。
    - 金額必須在案件預算區間內。
    """
    service = BidService(db)
    return await service.create_bid(bid_data, current_user)

@router.get("/my", response_model=List[BidOutWithProject])
async def get_my_bids(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    接案者檢視自己送出的所有出價。
    """
    service = BidService(db)
    return await service.get_my_bids(current_user)

@router.patch("/{bid_id}/status", response_model=BidOut)
async def update_bid_status(
    bid_id: str,
    update_data: BidStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    發案者接受或拒絕一個出價。

    - status 傳入 "accepted" 或 "rejected"。
    - 接受後案件進入 in_progress，其餘待審出價自動拒絕。
    """
    service = BidService(db)
    return await service.update_bid_status(bid_id, update_data.status, current_user)
