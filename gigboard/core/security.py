# gigboard/core/security.py
# 負責密碼雜湊與 JWT 權杖的產生與驗證
from datetime import datetime, timedelta, timezone
from typing import Optional
from passlib.context import CryptContext
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from gigboard.core.config import settings
from gigboard.core.database import get_db
from gigboard.core.exceptions import AuthenticationError
from gigboard.schemas.user_schema import TokenData
from gigboard.repositories.user_repo import UserRepository
from gigboard.models.user import User

# 1. 密碼雜湊設定 (Bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# 2. 定義 Token 從哪裡來 (Authorization: Bearer ...)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
# 公開 API 用：沒帶 Token 不報錯，回傳 None
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """驗證明文密碼是否與雜湊值相符"""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """產生密碼的雜湊值"""
    return pwd_context.hash(password)

def create_access_token(data: dict) -> str:
    """
    根據傳入的 data (e.g., user_id) 產生 JWT access token
    """
    to_encode = data.copy() # 避免修改原始資料
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )

def verify_access_token(token: str) -> TokenData | None:
    """
    驗證 JWT，回傳 TokenData 或 None
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None

    user_id = payload.get("user_id")
    role = payload.get("role")
    if user_id is None or role is None:
        return None

    return TokenData(user_id=user_id, role=role)

async def _resolve_user(token: str, db: AsyncSession) -> User:
    token_data = verify_access_token(token)
    if token_data is None:
        raise AuthenticationError()

    user = await UserRepository(db).get_user_by_id(user_id=token_data.user_id)
    if user is None:
        raise AuthenticationError()

    if not user.is_active:
        raise AuthenticationError("此帳號已被停權")

    return user

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI 依賴項：驗證 Token 並回傳 User Model
    (角色以資料庫為準，Token 內的 role 只是參考)
    """
    return await _resolve_user(token, db)

async def get_current_user_optional(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    公開 API 用：沒帶 Token 回傳 None；帶了但無效仍然回 401
    """
    if token is None:
        return None
    return await _resolve_user(token, db)
