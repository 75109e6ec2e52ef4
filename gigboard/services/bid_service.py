# gigboard/services/bid_service.py

import logging
from typing import List
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gigboard.models.user import User, UserRoleEnum
from gigboard.models.bid import Bid, BidStatusEnum
from gigboard.models.project import ProjectStatusEnum
from gigboard.repositories.bid_repo import BidRepository
from gigboard.repositories.project_repo import ProjectRepository
from gigboard.schemas.bid_schema import BidCreate
from gigboard.core.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, StorageError, ValidationError
)

logger = logging.getLogger(__name__)

class BidService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.bid_repo = BidRepository(db)
        self.project_repo = ProjectRepository(db)

    async def create_bid(self, bid_data: BidCreate, freelancer: User) -> Bid:
        """
        接案者對案件出價。檢查順序：
        角色 -> 案件存在 -> 招募中 -> 不是自己的案件 -> 沒有重複出價 -> 金額在預算內
        """
        if freelancer.role != UserRoleEnum.freelancer:
            raise AuthorizationError("只有接案者可以出價")

        project = await self.project_repo.get_project_by_id(bid_data.project_id)
        if not project:
            raise NotFoundError("案件不存在")
        if project.status != ProjectStatusEnum.open:
            raise ValidationError("此案件目前未開放出價")
        if project.client_id == freelancer.user_id:
            raise AuthorizationError("不能對自己的案件出價")

        existing = await self.bid_repo.check_existing_bid(project.project_id, freelancer.user_id)
        if existing:
            raise ConflictError("你已經對此案件出價")

        if not (project.budget_min <= bid_data.amount <= project.budget_max):
            raise ValidationError(
                f"出價金額必須介於 {project.budget_min} 與 {project.budget_max} 之間"
            )

        new_bid = Bid(
            project_id=project.project_id,
            freelancer_id=freelancer.user_id,
            amount=bid_data.amount,
            proposal=bid_data.proposal,
            timeline=bid_data.timeline,
            status=BidStatusEnum.pending
        )

        try:
            await self.bid_repo.add_bid(new_bid)
            await self.db.commit()
        except IntegrityError:
            # 同時送出兩次，被 unique constraint 擋下
            await self.db.rollback()
            raise ConflictError("你已經對此案件出價")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"建立出價失敗: {e}", exc_info=True)
            raise StorageError()

        logger.info(f"Bid created: {new_bid.bid_id} on project {project.project_id} ({bid_data.amount} TWD)")
        return new_bid

    async def get_project_bids(self, project_id: str, client: User) -> List[Bid]:
        """
        (發案者) 檢視自己案件的所有出價
        """
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise NotFoundError("案件不存在")
        if project.client_id != client.user_id:
            raise AuthorizationError("你只能檢視自己案件的出價")
        return await self.bid_repo.get_bids_by_project_id(project_id)

    async def get_my_bids(self, freelancer: User) -> List[Bid]:
        if freelancer.role != UserRoleEnum.freelancer:
            raise AuthorizationError("只有接案者可以檢視『我的出價』")
        return await self.bid_repo.get_bids_by_freelancer_id(freelancer.user_id)

    async def update_bid_status(self, bid_id: str, new_status: BidStatusEnum, client: User) -> Bid:
        """
        (發案者) 接受或拒絕一個待審出價。
        接受時：指派接案者、案件進入 in_progress、其餘待審出價全部拒絕。
        """
        if new_status == BidStatusEnum.pending:
            raise ValidationError("狀態只能是 accepted 或 rejected")

        bid = await self.bid_repo.get_bid_by_id_with_project(bid_id)
        if not bid:
            raise NotFoundError("出價不存在")

        project = bid.project
        if project.client_id != client.user_id:
            raise AuthorizationError("你沒有權限處理此出價")
        if bid.status != BidStatusEnum.pending:
            raise ValidationError("此出價已被處理")
        if project.status != ProjectStatusEnum.open:
            raise ValidationError("此案件目前未開放出價")

        bid.status = new_status
        if new_status == BidStatusEnum.accepted:
            project.freelancer_id = bid.freelancer_id
            project.status = ProjectStatusEnum.in_progress
            await self.bid_repo.reject_other_pending_bids(project.project_id, bid.bid_id)

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"更新出價狀態失敗: {e}", exc_info=True)
            raise StorageError()

        logger.info(f"Bid {bid.bid_id} -> {new_status.value}")
        return bid
