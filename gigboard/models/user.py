# models/user.py
import enum
import uuid
from sqlalchemy import Column, String, Text, Boolean, Enum, Integer, Float, CHAR
from sqlalchemy.orm import relationship
from gigboard.core.database import Base, PreciseDateTime, utc_now

# 使用者角色 (client = 發案者, freelancer = 接案者)
class UserRoleEnum(str, enum.Enum):
    client = "client"
    freelancer = "freelancer"

class User(Base):
    __tablename__ = "users"

    # 基本欄位
    user_id = Column(CHAR(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False, default="")
    role = Column(
        Enum(UserRoleEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=UserRoleEnum.freelancer,
    )
    is_active = Column(Boolean, default=True)

    # 個人檔案
    avatar = Column(String(500))
    bio = Column(Text)
    skills = Column(Text) # 前端送來的 JSON 字串
    profession = Column(String(100))
    experience = Column(Text)
    portfolio = Column(Text)
    hourly_rate = Column(Integer, default=0) # TWD
    available = Column(Boolean, default=True)
    city = Column(String(50))
    website = Column(String(255))
    linkedin = Column(String(255))
    github = Column(String(255))
    rating = Column(Float, default=0)
    completed_projects = Column(Integer, default=0)

    created_at = Column(PreciseDateTime, default=utc_now)
    updated_at = Column(PreciseDateTime, default=utc_now, onupdate=utc_now)

    # 關聯設定
    projects_owned = relationship(
        "Project",
        back_populates="client",
        foreign_keys="[Project.client_id]"
    )

    bids = relationship(
        "Bid",
        back_populates="freelancer",
    )
