# models/project.py
import enum
import uuid
from sqlalchemy import Column, String, Text, Integer, ForeignKey, Enum, CHAR
from sqlalchemy.orm import relationship
from gigboard.core.database import Base, PreciseDateTime, utc_now

class ProjectStatusEnum(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    # 軟刪除標記，不是實際刪除
    deleted = "deleted"

class Project(Base):
    __tablename__ = "projects"

    project_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    # 指派的接案者 (接受提案前為 NULL)
    freelancer_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text)
    budget_min = Column(Integer, nullable=False)
    budget_max = Column(Integer, nullable=False)
    currency = Column(String(10), default="TWD")
    category = Column(String(50), nullable=False)  # 商業設計, 程式開發 ...
    location = Column(String(50), nullable=False)  # 遠端, 台北市 ...
    skills = Column(Text)
    requirements = Column(Text)
    urgency = Column(String(20), default="一般")  # 急件, 一般
    status = Column(
        Enum(ProjectStatusEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=ProjectStatusEnum.open,
        index=True,
    )
    deadline = Column(PreciseDateTime, nullable=True)
    created_at = Column(PreciseDateTime, default=utc_now)
    updated_at = Column(PreciseDateTime, default=utc_now, onupdate=utc_now)

    client = relationship(
        "User",
        back_populates="projects_owned",
        foreign_keys=[client_id]
    )
    freelancer = relationship(
        "User",
        foreign_keys=[freelancer_id]
    )

    bids = relationship(
        "Bid",
        back_populates="project",
        cascade="all, delete-orphan"
    )

    # 案件下的所有聊天室 (案件只會軟刪除，聊天室保留)
    chats = relationship(
        "Chat",
        back_populates="project"
    )
