"""基础设施层：日志、调度器、数据库与外部 API 客户端"""

from .logging import setup_logging
from .scheduler import SchedulerManager
from .news_api import NewsAPIClient
from .telegram import TelegramClient, TelegramAPIError

__all__ = [
    "setup_logging",
    "SchedulerManager",
    "NewsAPIClient",
    "TelegramClient",
    "TelegramAPIError",
]
