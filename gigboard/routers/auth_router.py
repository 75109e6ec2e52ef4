import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from gigboard.core.database import get_db
from gigboard.core.security import get_current_user
from gigboard.models.user import User
from gigboard.services.auth_service import AuthService
from gigboard.schemas.user_schema import AuthOut, UserCreate, UserLogin, UserOut, ProfileUpdate


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth", # 路由前綴
    tags=["Auth"]    # API 文件分類標籤
)


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register_new_user(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    註冊新使用者 (發案者 client / 接案者 freelancer)，成功後直接回傳 Token。

    - 密碼至少 6 碼。
    - 未指定角色時預設為 freelancer。
    """
    auth_service = AuthService(db)
    new_user = await auth_service.register_user(user_data)
    return AuthOut(
        access_token=auth_service.create_login_token(new_user),
        user=UserOut.model_validate(new_user)
    )


@router.post("/login", response_model=AuthOut)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    以 Email / 密碼 (JSON) 登入並取得 Access Token
    """
    auth_service = AuthService(db)
    user = await auth_service.authenticate_user(
        email=credentials.email,
        password=credentials.password
    )
    logger.info(f"User logged in: {user.user_id}")

    return AuthOut(
        access_token=auth_service.create_login_token(user),
        user=UserOut.model_validate(user)
    )


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """
    JWT 為無狀態，前端自行丟棄 Token 即可
    """
    logger.info(f"User logged out: {current_user.user_id}")
    return {"message": "已成功登出"}


@router.get("/me", response_model=UserOut)
async def read_users_me(
    current_user: User = Depends(get_current_user)
):
    """
    獲取當前登入使用者的基本資料 (不含密碼)
    """
    return current_user


@router.put("/profile", response_model=UserOut)
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    更新個人檔案 (只更新有傳入的欄位，也可切換角色)
    """
    auth_service = AuthService(db)
    return await auth_service.update_profile(current_user, profile_data)
