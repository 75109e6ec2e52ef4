# gigboard/schemas/user_schema.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from gigboard.models.user import UserRoleEnum

# 登入請求的格式
class UserLogin(BaseModel):
    email: EmailStr
    password: str

# Token 內的資料
class TokenData(BaseModel):
    user_id: str
    role: str


# 註冊請求 Body
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field("", max_length=100)
    # 未指定時預設為接案者
    role: UserRoleEnum = UserRoleEnum.freelancer

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


# 公開頁面顯示的使用者資訊 (不含 Email)
class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    name: str
    role: UserRoleEnum
    avatar: Optional[str] = None


# 使用者精簡資訊 (聊天室、訊息、發案者檢視提案時使用)
class UserBrief(UserPublic):
    email: EmailStr


# 註冊/查詢使用者的安全回應 (不含密碼)
class UserOut(UserBrief):
    is_active: bool
    bio: Optional[str] = None
    skills: Optional[str] = None
    profession: Optional[str] = None
    experience: Optional[str] = None
    portfolio: Optional[str] = None
    hourly_rate: Optional[int] = None
    available: Optional[bool] = None
    city: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    rating: Optional[float] = None
    completed_projects: Optional[int] = None
    created_at: Optional[datetime] = None


# 登入/註冊成功的回應
class AuthOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


# 更新個人檔案 (所有欄位皆可選)
class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = None
    skills: Optional[str] = None
    # 角色可以在這裡切換
    role: Optional[UserRoleEnum] = None
    profession: Optional[str] = Field(None, max_length=100)
    experience: Optional[str] = None
    portfolio: Optional[str] = None
    hourly_rate: Optional[int] = Field(None, ge=0)
    available: Optional[bool] = None
    city: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=255)
    linkedin: Optional[str] = Field(None, max_length=255)
    github: Optional[str] = Field(None, max_length=255)
