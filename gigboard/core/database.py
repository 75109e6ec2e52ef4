from datetime import datetime, timezone
from sqlalchemy import DateTime
from sqlalchemy.dialects import mysql
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from gigboard.core.config import settings

# 建立非同步引擎
engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True, # 每次從連線池取連線前，先 PING 一次，確保連線有效
    echo=settings.DB_ECHO,
)

# 建立非同步 Session
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# 建立 ORM Model 基底類別
Base = declarative_base()

# 微秒精度的時間欄位 (MySQL 預設 DATETIME 只到秒，訊息排序會打結)
PreciseDateTime = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")


def utc_now() -> datetime:
    """回傳 naive 的 UTC 現在時間 (資料庫一律存 UTC)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# (重要) 取得 DB Session 的 Dependency
async def get_db() -> AsyncSession:
    """FastAPI Dependency: 取得非同步資料庫 session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables() -> None:
    """依 ORM metadata 建立資料表 (啟動時呼叫)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
