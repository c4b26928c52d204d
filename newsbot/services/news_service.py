"""新闻服务：按需获取与去重"""

import asyncio
from collections import defaultdict
from typing import Dict, List, Set

from loguru import logger

from ..domain import Article, ArticleSource, Ledger, LedgerReadError, LedgerWriteError


class NewsService:
    """新闻服务"""

    def __init__(self, source: ArticleSource, ledger: Ledger):
        self._source = source
        self._ledger = ledger
        # 同一分类的去重流程串行执行
        self._category_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get_news_by_category(self, category: str) -> List[Article]:
        """按需获取分类下的新闻，不经过去重也不写已发送记录"""
        return await self._source.fetch(category)

    async def get_new_articles(self, category: str, max_count: int) -> List[Article]:
        """
        获取分类下尚未发送过的文章，并记录为已发送

        1. 从新闻源获取文章（失败时抛出 FetchError，不写任何记录）
        2. 逐篇查询已发送记录，查询失败的文章直接排除；同一 URL 只保留首次出现的一篇
        3. 按发布时间倒序排序（时间相同保持原顺序），截取前 max_count 篇
        4. 逐篇写入已发送记录，写入失败只记日志，文章仍然返回

        Args:
            category: 分类
            max_count: 本次最多返回的文章数量

        Returns:
            按发布时间倒序排列的新文章，可能为空
        """
        if max_count <= 0:
            raise ValueError(f"max_count 必须为正整数: {max_count}")

        async with self._category_locks[category]:
            articles = await self._source.fetch(category)

            fresh: List[Article] = []
            seen: Set[str] = set()
            for article in articles:
                # 同一次拉取中重复的 URL 只保留第一篇
                if not article.url or article.url in seen:
                    continue
                seen.add(article.url)
                try:
                    if await self._ledger.exists(article.url):
                        continue
                except LedgerReadError as e:
                    logger.warning(f"[去重] 查询已发送记录失败，跳过该文章: {e}")
                    continue
                fresh.append(article)

            # sorted 是稳定排序，reverse=True 时相同时间仍保持原顺序
            batch = sorted(fresh, key=lambda a: a.published, reverse=True)[:max_count]

            for article in batch:
                try:
                    await self._ledger.record(article.url, category)
                except LedgerWriteError as e:
                    logger.error(f"[去重] 写入已发送记录失败，文章仍会推送: {e}")

            logger.info(
                f"[去重] 分类 {category}: 获取 {len(articles)} 篇，新文章 {len(fresh)} 篇，"
                f"本次推送 {len(batch)} 篇"
            )
            return batch
