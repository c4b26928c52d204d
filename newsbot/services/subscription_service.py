"""订阅服务"""

from typing import List, Sequence, Set

from loguru import logger

from ..domain import Directory, Subscription, UnknownCategoryError


class SubscriptionService:
    """订阅服务，分类合法性只在这里校验"""

    def __init__(self, directory: Directory, categories: Sequence[str]):
        self._directory = directory
        self.categories = list(categories)

    @staticmethod
    def normalize_category(raw: str) -> str:
        return raw.strip().lower()

    def is_supported(self, category: str) -> bool:
        return category in self.categories

    async def save_subscription(self, user_id: int, category: str) -> str:
        """
        为用户订阅分类

        Args:
            user_id: 用户ID
            category: 用户输入的分类名

        Returns:
            规范化后的分类名

        Raises:
            UnknownCategoryError: 分类不在允许列表中
            DirectoryError: 存储失败
        """
        normalized = self.normalize_category(category)
        if not self.is_supported(normalized):
            raise UnknownCategoryError(normalized, self.categories)

        await self._directory.save(user_id, normalized)
        logger.info(f"[命令] 用户 {user_id} 订阅了分类 {normalized}")
        return normalized

    async def subscriptions_for(self, user_id: int) -> Set[str]:
        return await self._directory.by_user(user_id)

    async def all_subscriptions(self) -> List[Subscription]:
        return await self._directory.all()
