# gigboard/repositories/bid_repo.py

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload
from typing import List, Optional

from gigboard.models.bid import Bid, BidStatusEnum

class BidRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_bid_by_id_with_project(self, bid_id: str) -> Optional[Bid]:
        """
        透過 ID 獲取單一提案，並載入關聯的 Project (用於權限檢查)
        """
        stmt = select(Bid).where(Bid.bid_id == bid_id).options(
            joinedload(Bid.project),
            joinedload(Bid.freelancer)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def check_existing_bid(self, project_id: str, freelancer_id: str) -> Optional[Bid]:
        """
        檢查特定接案者是否已對特定案件出價 (唯一性檢查)
        """
        stmt = select(Bid).where(
            Bid.project_id == project_id,
            Bid.freelancer_id == freelancer_id
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_bids_by_project_id(self, project_id: str) -> List[Bid]:
        """
        獲取特定案件的所有提案 (雇主檢視用，新的在前)
        """
        stmt = select(Bid).where(Bid.project_id == project_id).options(
            joinedload(Bid.freelancer)
        ).order_by(Bid.created_at.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_bids_by_freelancer_id(self, freelancer_id: str) -> List[Bid]:
        """
        獲取特定接案者的所有提案 (「我的提案」用)
        """
        stmt = select(Bid).where(Bid.freelancer_id == freelancer_id).options(
            joinedload(Bid.project)
        ).order_by(Bid.created_at.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def add_bid(self, bid: Bid) -> Bid:
        self.db.add(bid)
        await self.db.flush()
        return bid

    async def reject_other_pending_bids(self, project_id: str, accepted_bid_id: str) -> None:
        """
        接受某個提案後，同案件其餘「待審」提案一律改為拒絕
        """
        stmt = (
            update(Bid)
            .where(
                Bid.project_id == project_id,
                Bid.bid_id != accepted_bid_id,
                Bid.status == BidStatusEnum.pending
            )
            .values(status=BidStatusEnum.rejected)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)
