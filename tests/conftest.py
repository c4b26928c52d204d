"""测试用内存实现"""
from typing import Dict, List, Optional, Set, Tuple

import pytest

from newsbot.domain import (
    Article,
    DirectoryError,
    FetchError,
    LedgerReadError,
    LedgerWriteError,
    SendError,
    Subscription,
)


class FakeSource:
    """按分类返回预置文章的新闻源"""

    def __init__(self, feeds: Optional[Dict[str, List[Article]]] = None):
        self.feeds = feeds or {}
        self.failing: Set[str] = set()
        self.calls: List[str] = []

    async def fetch(self, category: str) -> List[Article]:
        self.calls.append(category)
        if category in self.failing:
            raise FetchError("unexpected status code: 500")
        return list(self.feeds.get(category, []))


class InMemoryLedger:
    def __init__(self):
        self.records: Dict[str, str] = {}
        self.record_calls: List[Tuple[str, str]] = []
        self.read_failures: Set[str] = set()
        self.write_failures: Set[str] = set()

    async def exists(self, url: str) -> bool:
        if url in self.read_failures:
            raise LedgerReadError(f"查询已发送记录失败: {url}")
        return url in self.records

    async def record(self, url: str, category: str) -> None:
        self.record_calls.append((url, category))
        if url in self.write_failures:
            raise LedgerWriteError(f"写入已发送记录失败: {url}")
        self.records.setdefault(url, category)


class InMemoryDirectory:
    def __init__(self, subscriptions: Optional[List[Subscription]] = None):
        self.subscriptions: List[Subscription] = list(subscriptions or [])
        self.users: Set[int] = set()
        self.fail = False

    async def save(self, user_id: int, category: str) -> None:
        if self.fail:
            raise DirectoryError("database is locked")
        self.users.add(user_id)
        sub = Subscription(user_id=user_id, category=category)
        if sub not in self.subscriptions:
            self.subscriptions.append(sub)

    async def by_user(self, user_id: int) -> Set[str]:
        if self.fail:
            raise DirectoryError("database is locked")
        return {s.category for s in self.subscriptions if s.user_id == user_id}

    async def all(self) -> List[Subscription]:
        if self.fail:
            raise DirectoryError("database is locked")
        return list(self.subscriptions)


class RecordingSink:
    """记录发送的消息，可指定发送失败的用户"""

    def __init__(self):
        self.sent: List[Tuple[int, str, Optional[str]]] = []
        self.failing_recipients: Set[int] = set()

    async def send(self, recipient_id: int, text: str, parse_mode: Optional[str] = None) -> None:
        if recipient_id in self.failing_recipients:
            raise SendError(f"failed to send message to {recipient_id}")
        self.sent.append((recipient_id, text, parse_mode))

    def texts_for(self, recipient_id: int) -> List[str]:
        return [text for rid, text, _ in self.sent if rid == recipient_id]


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def directory():
    return InMemoryDirectory()


@pytest.fixture
def sink():
    return RecordingSink()
