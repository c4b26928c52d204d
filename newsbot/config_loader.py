import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .domain import ConfigError

DEFAULT_CATEGORIES = ["technology", "business", "science", "health", "entertainment"]


def _project_root() -> Path:
    # newsbot/config_loader.py -> project_root
    return Path(__file__).resolve().parents[1]


@dataclass
class BotSettings:
    """
    机器人配置。

    - 密钥和数据库地址来自环境变量（可写在 .env 中）
    - 业务参数来自 config/bot_config.json，缺失或非法时使用默认值
    """

    telegram_bot_token: str = ""
    news_api_key: str = ""
    database_url: Optional[str] = None  # 为空时使用默认 SQLite 数据库
    categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    check_interval_minutes: float = 5
    batch_size: int = 5  # 每个分类每轮最多推送的文章数
    news_limit: int = 5  # /news 命令最多返回的文章数
    poll_timeout: int = 60  # 长轮询超时（秒）
    timezone: str = "UTC"

    def require_secrets(self) -> None:
        """检查启动必需的密钥"""
        missing = []
        if not self.telegram_bot_token:
            missing.append("TELEGRAM_BOT_TOKEN")
        if not self.news_api_key:
            missing.append("NEWS_API_KEY")
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")


def _bot_config_path() -> Path:
    env_path = os.getenv("NEWSBOT_CONFIG")
    if env_path:
        return Path(env_path)
    return _project_root() / "config" / "bot_config.json"


def load_bot_settings(path: Optional[Path] = None) -> BotSettings:
    """
    Load bot settings from environment and config/bot_config.json.

    {
      "categories": ["technology", "business", "science", "health", "entertainment"],
      "check_interval_minutes": 5,
      "batch_size": 5,
      "news_limit": 5,
      "poll_timeout": 60,
      "timezone": "UTC"
    }
    """
    default = BotSettings()
    settings = BotSettings(
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", "").strip(),
        news_api_key=os.getenv("NEWS_API_KEY", "").strip(),
        database_url=os.getenv("DATABASE_URL") or None,
    )

    path = path or _bot_config_path()
    if not path.exists():
        logger.warning(f"Bot config not found at {path}, using defaults.")
        return settings

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("bot config file must be a JSON object")
    except Exception as exc:  # noqa: BLE001
        logger.error(f"Failed to load bot config: {exc}, using defaults.")
        return settings

    def _get_positive(name: str, fallback, cast):
        raw = data.get(name)
        if raw is None:
            return fallback
        # JSON 的 true/false 不是数字；整数字段不接受带小数的值
        if isinstance(raw, bool) or (cast is int and isinstance(raw, float) and not raw.is_integer()):
            logger.warning(f"Invalid value for bot config {name}={raw!r}, fallback to {fallback}.")
            return fallback
        try:
            value = cast(raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid value for bot config {name}={raw!r}, fallback to {fallback}.")
            return fallback
        if value <= 0:
            logger.warning(f"Non-positive value for bot config {name}={raw!r}, fallback to {fallback}.")
            return fallback
        return value

    raw_categories = data.get("categories")
    categories: List[str] = []
    if isinstance(raw_categories, list):
        for item in raw_categories:
            name = str(item).strip().lower()
            if name and name not in categories:
                categories.append(name)
    elif raw_categories is not None:
        logger.warning(f"Invalid categories in bot config: {raw_categories!r}, using defaults.")
    if not categories:
        categories = list(default.categories)

    timezone = data.get("timezone")
    settings.categories = categories
    settings.check_interval_minutes = _get_positive(
        "check_interval_minutes", default.check_interval_minutes, float
    )
    settings.batch_size = _get_positive("batch_size", default.batch_size, int)
    settings.news_limit = _get_positive("news_limit", default.news_limit, int)
    settings.poll_timeout = _get_positive("poll_timeout", default.poll_timeout, int)
    settings.timezone = timezone.strip() if isinstance(timezone, str) and timezone.strip() else default.timezone
    return settings
