"""领域层：实体、错误类型与外部协作方接口"""

from .models import Article, Subscription, parse_published_at
from .errors import (
    NewsBotError,
    ConfigError,
    FetchError,
    LedgerReadError,
    LedgerWriteError,
    DirectoryError,
    SendError,
    UnknownCategoryError,
)
from .contracts import ArticleSource, Ledger, Directory, MessageSink

__all__ = [
    "Article",
    "Subscription",
    "parse_published_at",
    "NewsBotError",
    "ConfigError",
    "FetchError",
    "LedgerReadError",
    "LedgerWriteError",
    "DirectoryError",
    "SendError",
    "UnknownCategoryError",
    "ArticleSource",
    "Ledger",
    "Directory",
    "MessageSink",
]
