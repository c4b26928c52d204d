"""基于 SQLAlchemy 的已发送记录与订阅存储"""
from typing import List, Set

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ...domain import DirectoryError, LedgerReadError, LedgerWriteError, Subscription
from .models import SentArticle, User, UserSubscription


class SentArticleLedger:
    """已发送文章记录"""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def exists(self, url: str) -> bool:
        try:
            async with self._session_factory() as session:
                found = await session.scalar(
                    select(SentArticle.id).where(SentArticle.url == url).limit(1)
                )
        except SQLAlchemyError as e:
            raise LedgerReadError(f"查询已发送记录失败: {url}: {e}") from e
        return found is not None

    async def record(self, url: str, category: str) -> None:
        """写入已发送记录，URL 已存在时不做任何修改"""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    found = await session.scalar(
                        select(SentArticle.id).where(SentArticle.url == url).limit(1)
                    )
                    if found is None:
                        session.add(SentArticle(url=url, category=category))
        except IntegrityError:
            # 并发写入了同一 URL
            logger.debug(f"[数据库] 已发送记录已存在: {url}")
        except SQLAlchemyError as e:
            raise LedgerWriteError(f"写入已发送记录失败: {url}: {e}") from e


class SubscriptionDirectory:
    """订阅目录"""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def save(self, user_id: int, category: str) -> None:
        """登记用户并保存订阅，重复订阅不报错"""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    if await session.get(User, user_id) is None:
                        session.add(User(id=user_id))
                        await session.flush()
                    found = await session.scalar(
                        select(UserSubscription.id).where(
                            UserSubscription.user_id == user_id,
                            UserSubscription.category == category,
                        )
                    )
                    if found is None:
                        session.add(UserSubscription(user_id=user_id, category=category))
        except IntegrityError:
            logger.debug(f"[数据库] 订阅已存在: user={user_id}, category={category}")
        except SQLAlchemyError as e:
            raise DirectoryError(f"保存订阅失败: {e}") from e

    async def by_user(self, user_id: int) -> Set[str]:
        try:
            async with self._session_factory() as session:
                rows = await session.scalars(
                    select(UserSubscription.category).where(UserSubscription.user_id == user_id)
                )
                return set(rows)
        except SQLAlchemyError as e:
            raise DirectoryError(f"查询用户订阅失败: {e}") from e

    async def all(self) -> List[Subscription]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(UserSubscription.user_id, UserSubscription.category).order_by(
                        UserSubscription.id
                    )
                )
                return [Subscription(user_id=row.user_id, category=row.category) for row in result]
        except SQLAlchemyError as e:
            raise DirectoryError(f"读取订阅列表失败: {e}") from e
