# gigboard/models/chat.py

import enum
import uuid
from sqlalchemy import Column, String, Text, ForeignKey, Boolean, Enum, CHAR, UniqueConstraint
from sqlalchemy.orm import relationship
from gigboard.core.database import Base, PreciseDateTime, utc_now

class MessageTypeEnum(str, enum.Enum):
    text = "text"
    file = "file"
    image = "image"
    # 伺服器產生的訊息 (例如案件刪除公告)
    system = "system"

class Chat(Base):
    """
    一個案件 + 一位發案者 + 一位接案者 = 一個聊天室。
    兩邊各自有隱藏旗標，兩邊都隱藏時聊天室與訊息會被實際刪除。
    """
    __tablename__ = "chats"
    # 資料庫層級保證 get-or-create 不會建出兩筆
    __table_args__ = (
        UniqueConstraint("project_id", "client_id", "freelancer_id", name="uq_chats_project_client_freelancer"),
    )

    chat_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(CHAR(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    freelancer_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)

    client_hidden = Column(Boolean, nullable=False, default=False)
    freelancer_hidden = Column(Boolean, nullable=False, default=False)

    created_at = Column(PreciseDateTime, default=utc_now)
    # 最後一則訊息的時間 (列表排序用)，只在送出訊息時更新
    last_activity_at = Column(PreciseDateTime, default=utc_now, index=True)

    project = relationship("Project", back_populates="chats")
    client = relationship("User", foreign_keys=[client_id])
    freelancer = relationship("User", foreign_keys=[freelancer_id])

    # 刪除聊天室時一併刪除訊息
    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Message.created_at"
    )

class Message(Base):
    __tablename__ = "messages"

    message_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    chat_id = Column(CHAR(36), ForeignKey("chats.chat_id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=False)
    type = Column(
        Enum(MessageTypeEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=MessageTypeEnum.text,
    )
    file_url = Column(String(500))
    # NULL = 未讀
    read_at = Column(PreciseDateTime, nullable=True)
    created_at = Column(PreciseDateTime, default=utc_now, index=True)

    chat = relationship("Chat", back_populates="messages")
    sender = relationship("User")
