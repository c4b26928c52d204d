"""NewsAPI 新闻源客户端"""
from typing import List, Optional

import httpx
from loguru import logger

from ..domain import Article, FetchError

NEWS_API_URL = "https://newsapi.org/v2/top-headlines"


class NewsAPIClient:
    """
    通过 NewsAPI top-headlines 接口按分类获取头条新闻

    每次调用只请求一次，不做重试；任何失败都以 FetchError 抛出。
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = NEWS_API_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch(self, category: str) -> List[Article]:
        # API Key 放在请求头里，避免出现在日志和异常信息的 URL 中
        try:
            resp = await self._client.get(
                self.base_url,
                params={"category": category},
                headers={"X-Api-Key": self.api_key},
            )
        except httpx.HTTPError as e:
            raise FetchError(f"failed to fetch news: {e}") from e
        except RuntimeError as e:
            # 客户端已关闭
            raise FetchError(f"failed to fetch news: {e}") from e

        if resp.status_code != 200:
            raise FetchError(f"unexpected status code: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise FetchError(f"failed to decode response: {e}") from e

        if not isinstance(data, dict) or data.get("status") != "ok":
            status = data.get("status") if isinstance(data, dict) else None
            message = data.get("message") if isinstance(data, dict) else None
            raise FetchError(f"API error: status {status}" + (f" ({message})" if message else ""))

        articles = []
        for raw in data.get("articles") or []:
            if not isinstance(raw, dict):
                continue
            articles.append(
                Article(
                    title=raw.get("title") or "",
                    description=raw.get("description") or "",
                    url=raw.get("url") or "",
                    published_at=raw.get("publishedAt") or "",
                )
            )

        logger.info(f"从 NewsAPI 分类 {category} 获取到 {len(articles)} 篇文章")
        return articles

    async def aclose(self) -> None:
        await self._client.aclose()
