"""数据库模块"""
from .database import configure_engine, get_session_factory, init_db, close_db
from .models import Base, User, UserSubscription, SentArticle
from .repositories import SentArticleLedger, SubscriptionDirectory

__all__ = [
    "configure_engine",
    "get_session_factory",
    "init_db",
    "close_db",
    "Base",
    "User",
    "UserSubscription",
    "SentArticle",
    "SentArticleLedger",
    "SubscriptionDirectory",
]
