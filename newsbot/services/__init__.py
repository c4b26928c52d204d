"""服务层：业务逻辑服务"""

from .news_service import NewsService
from .digest_service import DigestService, CycleReport
from .subscription_service import SubscriptionService
from .bot_service import BotService, Command, parse_command

__all__ = [
    "NewsService",
    "DigestService",
    "CycleReport",
    "SubscriptionService",
    "BotService",
    "Command",
    "parse_command",
]
