"""数据库连接和会话管理"""
import os
from pathlib import Path
from typing import Optional

from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .models import Base

# 默认使用项目 data 目录下的 SQLite 数据库
DB_PATH = Path(__file__).resolve().parents[3] / "data" / "newsbot.db"
DEFAULT_DATABASE_URL = f"sqlite+aiosqlite:///{DB_PATH}"

engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None


def configure_engine(database_url: Optional[str] = None) -> async_sessionmaker:
    """
    创建异步引擎和会话工厂

    Args:
        database_url: SQLAlchemy 异步连接串，默认读取 DATABASE_URL 环境变量

    Returns:
        会话工厂
    """
    global engine, AsyncSessionLocal

    url = database_url or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(url, echo=False, future=True)
    AsyncSessionLocal = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    logger.info(f"[数据库] 已连接: {parsed.render_as_string(hide_password=True)}")
    return AsyncSessionLocal


def get_session_factory() -> async_sessionmaker:
    """获取会话工厂"""
    if AsyncSessionLocal is None:
        raise RuntimeError("数据库未初始化，请先调用 configure_engine()")
    return AsyncSessionLocal


async def init_db() -> None:
    """初始化数据库表"""
    if engine is None:
        raise RuntimeError("数据库未初始化，请先调用 configure_engine()")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """释放连接池"""
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None
