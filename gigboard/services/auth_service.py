import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from gigboard.repositories.user_repo import UserRepository
from gigboard.core.security import verify_password, create_access_token, get_password_hash
from gigboard.core.exceptions import AuthenticationError, ConflictError, StorageError
from gigboard.models.user import User
from gigboard.schemas.user_schema import UserCreate, ProfileUpdate

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        驗證使用者帳號密碼。
        失敗一律回 401，不透露是帳號還是密碼錯。
        """
        user = await self.user_repo.get_user_by_email(email)

        if not user or not verify_password(plain_password=password, hashed_password=user.password_hash):
            raise AuthenticationError("不正確的帳號或密碼")

        if not user.is_active:
            raise AuthenticationError("此帳號已被停權")

        return user

    async def register_user(self, user_create: UserCreate) -> User:
        """
        處理使用者註冊
        """
        # 1. 檢查 Email 是否已被註冊
        if await self.user_repo.get_user_by_email(user_create.email):
            raise ConflictError("此 Email 已經被註冊")

        # 2. 建立 User ORM 模型 (密碼雜湊)
        new_user = User(
            email=user_create.email,
            password_hash=get_password_hash(user_create.password),
            name=user_create.name,
            role=user_create.role
        )

        # 3. 儲存 (unique index 擋下同時註冊的情況)
        try:
            await self.user_repo.add_user(new_user)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("此 Email 已經被註冊")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"使用者註冊失敗: {e}", exc_info=True)
            raise StorageError()

        logger.info(f"User registered: {new_user.user_id} ({new_user.role.value})")
        return new_user

    async def update_profile(self, user: User, data: ProfileUpdate) -> User:
        """
        部分更新個人檔案 (只更新有傳入的欄位)
        """
        update_data = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            # name / role 不允許設為 null
            if value is None and key in ("name", "role"):
                continue
            setattr(user, key, value)

        try:
            await self.db.commit()
            await self.db.refresh(user)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"更新個人檔案失敗: {e}", exc_info=True)
            raise StorageError()
        return user

    def create_login_token(self, user: User) -> str:
        """
        為指定使用者建立 access token
        """
        return create_access_token(
            data={
                "sub": user.email,
                "user_id": str(user.user_id),
                "role": user.role.value # 確保存入的是字串
            }
        )
