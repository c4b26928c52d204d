"""数据库模型"""
from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class User(Base):
    """用户表"""
    __tablename__ = "users"

    id = Column(BigInteger, primary_key=True, autoincrement=False)  # Telegram 用户ID
    created_at = Column(DateTime, default=func.now())


class UserSubscription(Base):
    """订阅表，每个用户对每个分类至多一条"""
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_subscriptions_user_category"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())


class SentArticle(Base):
    """已发送文章表（只追加），URL 全局唯一，与分类无关"""
    __tablename__ = "sent_articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(String(2000), unique=True, nullable=False)
    category = Column(String(50), nullable=False)
    sent_at = Column(DateTime, default=func.now())
