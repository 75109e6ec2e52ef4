# gigboard/models/bid.py
import enum
import uuid
from sqlalchemy import Column, String, Text, Integer, ForeignKey, Enum, CHAR, UniqueConstraint
from sqlalchemy.orm import relationship
from gigboard.core.database import Base, PreciseDateTime, utc_now

class BidStatusEnum(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"

class Bid(Base):
    __tablename__ = "bids"
    # 同一個接案者對同一個案件只能出價一次
    __table_args__ = (
        UniqueConstraint("project_id", "freelancer_id", name="uq_bids_project_freelancer"),
    )

    bid_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(CHAR(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    freelancer_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Integer, nullable=False) # TWD
    proposal = Column(Text) # 詳細提案內容
    timeline = Column(String(50)) # e.g. "2週", "1個月"
    status = Column(
        Enum(BidStatusEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=BidStatusEnum.pending,
    )

    created_at = Column(PreciseDateTime, default=utc_now)
    updated_at = Column(PreciseDateTime, default=utc_now, onupdate=utc_now)

    project = relationship("Project", back_populates="bids")
    freelancer = relationship("User", back_populates="bids")
