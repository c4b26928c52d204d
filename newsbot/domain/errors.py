"""错误类型定义"""

from typing import Sequence


class NewsBotError(Exception):
    """所有业务错误的基类"""


class ConfigError(NewsBotError):
    """启动配置缺失或非法"""


class FetchError(NewsBotError):
    """新闻源不可达、返回非成功状态或响应无法解析"""


class LedgerReadError(NewsBotError):
    """查询已发送记录失败"""


class LedgerWriteError(NewsBotError):
    """写入已发送记录失败"""


class DirectoryError(NewsBotError):
    """订阅数据读写失败"""


class SendError(NewsBotError):
    """向单个用户发送消息失败"""


class UnknownCategoryError(NewsBotError):
    """订阅了不在允许列表中的分类"""

    def __init__(self, category: str, allowed: Sequence[str]):
        self.category = category
        self.allowed = list(allowed)
        super().__init__(
            f"Category '{category}' is not supported. "
            f"Available categories: {', '.join(self.allowed)}"
        )
