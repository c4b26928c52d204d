"""
外部协作方接口

生产实现位于 infrastructure 层，测试中使用内存实现替换。
"""

from typing import List, Optional, Protocol, Set

from .models import Article, Subscription


class ArticleSource(Protocol):
    async def fetch(self, category: str) -> List[Article]:
        """获取分类下的最新文章，失败时抛出 FetchError"""
        ...


class Ledger(Protocol):
    async def exists(self, url: str) -> bool:
        """URL 是否已发送过，查询失败时抛出 LedgerReadError"""
        ...

    async def record(self, url: str, category: str) -> None:
        """记录已发送的 URL（重复记录不报错），失败时抛出 LedgerWriteError"""
        ...


class Directory(Protocol):
    async def save(self, user_id: int, category: str) -> None:
        ...

    async def by_user(self, user_id: int) -> Set[str]:
        ...

    async def all(self) -> List[Subscription]:
        ...


class MessageSink(Protocol):
    async def send(self, recipient_id: int, text: str, parse_mode: Optional[str] = None) -> None:
        """发送一条消息，失败时抛出 SendError"""
        ...
