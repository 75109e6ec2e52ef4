# gigboard/schemas/chat_schema.py

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from gigboard.models.chat import MessageTypeEnum
from gigboard.models.project import ProjectStatusEnum
from gigboard.schemas.user_schema import UserBrief

class ChatCreate(BaseModel):
    """
    建立聊天室的請求體 (只有發案者可以發起)
    """
    project_id: str = Field(..., description="關聯的案件 ID")
    freelancer_id: str = Field(..., description="要聯絡的接案者 ID")

class ChatProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    project_id: str
    title: str
    status: ProjectStatusEnum

class ChatOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    chat_id: str
    project_id: str
    client_id: str
    freelancer_id: str
    client_hidden: bool
    freelancer_hidden: bool
    created_at: datetime
    last_activity_at: datetime
    # (注意: 不包含 messages，messages 通過單獨的 API 獲取)
    project: Optional[ChatProjectOut] = None
    client: Optional[UserBrief] = None
    freelancer: Optional[UserBrief] = None

class ChatWithUnreadOut(ChatOut):
    unread_count: int = 0

class MessageCreate(BaseModel):
    chat_id: str
    content: str = Field(..., min_length=1, description="訊息內容")
    # 未指定時為 text；system 保留給伺服器使用
    type: Optional[MessageTypeEnum] = None
    file_url: Optional[str] = Field(None, max_length=500)

class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    message_id: str
    chat_id: str
    sender_id: str
    content: str
    type: MessageTypeEnum
    file_url: Optional[str] = None
    read_at: Optional[datetime] = None
    created_at: datetime
    # 為了顯示 Sender Name，巢狀 User
    sender: Optional[UserBrief] = None

class UnreadCountOut(BaseModel):
    unread_count: int

class MarkReadOut(BaseModel):
    success: bool = True
    updated: int = 0

class ChatHiddenOut(BaseModel):
    message: str
    # 兩邊都隱藏時聊天室會被實際刪除
    deleted: bool = False
