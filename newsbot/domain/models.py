import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

# 无法解析发布时间的文章排在最后
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

# 秒的小数部分，fromisoformat 在 3.11 之前只接受 3 位或 6 位
_FRACTION = re.compile(r"(?<=\d{2}:\d{2}:\d{2})\.(\d+)")


def parse_published_at(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    解析文章发布时间

    支持 ISO-8601 字符串（含 "Z" 后缀、仅日期）或 datetime 对象；
    不带时区的时间按 UTC 处理。

    Returns:
        带时区的 datetime，无法解析时返回 None
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = (value or "").strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Article:
    title: str
    url: str  # 文章的全局唯一标识
    description: str = ""
    published_at: Union[str, datetime] = ""  # 源数据中的发布时间

    @property
    def published(self) -> datetime:
        """用于排序的发布时间"""
        return parse_published_at(self.published_at) or _OLDEST


@dataclass(frozen=True)
class Subscription:
    user_id: int
    category: str
