"""命令处理服务：长轮询接收消息，逐条处理用户命令"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

from loguru import logger

from ..digest.render import PARSE_MODE, format_news_reply
from ..domain import DirectoryError, FetchError, SendError, UnknownCategoryError
from .news_service import NewsService
from .subscription_service import SubscriptionService

START_TEXT = (
    "Hello! This bot delivers news. Use /add <category> to subscribe, "
    "/news <category> to get the latest news, /mysubs to list your subscriptions, "
    "/help for help."
)
HELP_TEXT = (
    "Available commands:\n"
    "/start - Start using the bot\n"
    "/add <category> - Subscribe to a category\n"
    "/news <category> - Get the latest news\n"
    "/mysubs - Show your subscriptions\n"
    "/help - Help"
)
UNKNOWN_TEXT = "Unknown command. Use /help to see the list of commands."


class UpdateClient(Protocol):
    async def get_updates(self, offset: Optional[int] = None, timeout: int = 60) -> List[Dict[str, Any]]:
        ...

    async def send(self, recipient_id: int, text: str, parse_mode: Optional[str] = None) -> None:
        ...


@dataclass(frozen=True)
class Command:
    name: str
    args: str
    chat_id: int
    user_id: int


def parse_command(message: Dict[str, Any]) -> Optional[Command]:
    """
    从消息中解析命令，非命令消息返回 None

    "/add@NewsBot technology" -> Command(name="add", args="technology", ...)
    """
    text = (message.get("text") or "").strip()
    if not text.startswith("/"):
        return None
    chat = message.get("chat") or {}
    if "id" not in chat:
        return None

    parts = text.split(maxsplit=1)
    name = parts[0][1:].split("@", 1)[0].lower()
    if not name:
        return None
    args = parts[1].strip() if len(parts) > 1 else ""
    sender = message.get("from") or {}
    return Command(
        name=name,
        args=args,
        chat_id=chat["id"],
        user_id=sender.get("id", chat["id"]),
    )


class BotService:
    """命令处理服务"""

    def __init__(
        self,
        client: UpdateClient,
        subscription_service: SubscriptionService,
        news_service: NewsService,
        *,
        news_limit: int = 5,
        poll_timeout: int = 60,
        retry_delay: float = 5.0,
    ):
        self._client = client
        self._subscriptions = subscription_service
        self._news = news_service
        self.news_limit = news_limit
        self.poll_timeout = poll_timeout
        self.retry_delay = retry_delay

    async def run_polling(self, stop_event: asyncio.Event) -> None:
        """按到达顺序逐条处理更新，直到 stop_event 被设置"""
        offset: Optional[int] = None
        logger.info("[命令] 开始监听用户命令")
        while not stop_event.is_set():
            try:
                updates = await self._client.get_updates(offset=offset, timeout=self.poll_timeout)
            except Exception as e:  # noqa: BLE001 - 网络抖动时等待后重试
                logger.warning(f"[命令] 拉取更新失败，{self.retry_delay} 秒后重试: {e}")
                await self._wait(stop_event, self.retry_delay)
                continue

            for update in updates:
                offset = update["update_id"] + 1
                await self.handle_update(update)
        logger.info("[命令] 命令监听已停止")

    @staticmethod
    async def _wait(stop_event: asyncio.Event, seconds: float) -> None:
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def handle_update(self, update: Dict[str, Any]) -> None:
        message = update.get("message")
        if not message:
            return
        command = parse_command(message)
        if command is None:
            return
        await self.handle_command(command)

    async def handle_command(self, command: Command) -> None:
        logger.info(f"[命令] 收到命令 /{command.name} 来自用户 {command.user_id}")
        text, parse_mode = await self.reply_for(command)
        if not text:
            return
        try:
            await self._client.send(command.chat_id, text, parse_mode=parse_mode)
        except SendError as e:
            logger.error(f"[命令] 回复用户 {command.chat_id} 失败: {e}")

    async def reply_for(self, command: Command) -> Tuple[str, Optional[str]]:
        """生成命令的回复文本和格式"""
        if command.name == "start":
            return START_TEXT, None
        if command.name == "add":
            return await self._add(command), None
        if command.name == "news":
            return await self._news_reply(command)
        if command.name == "mysubs":
            return await self._mysubs(command), None
        if command.name == "help":
            return HELP_TEXT, None
        return UNKNOWN_TEXT, None

    async def _add(self, command: Command) -> str:
        if not command.args:
            return "Please specify a category (e.g. /add technology)."
        try:
            category = await self._subscriptions.save_subscription(command.user_id, command.args)
        except UnknownCategoryError as e:
            return str(e)
        except DirectoryError as e:
            logger.error(f"[命令] 保存订阅失败: {e}")
            return f"Failed to add subscription: {e}"
        return f"You have subscribed to '{category}'!"

    async def _news_reply(self, command: Command) -> Tuple[str, Optional[str]]:
        if not command.args:
            return "Please specify a category (e.g. /news technology).", None
        category = SubscriptionService.normalize_category(command.args)
        try:
            articles = await self._news.get_news_by_category(category)
        except FetchError as e:
            logger.warning(f"[命令] 获取分类 {category} 新闻失败: {e}")
            return f"Failed to fetch news: {e}", None
        if not articles:
            return f"No news for category '{category}'.", None
        return format_news_reply(articles[: self.news_limit]), PARSE_MODE

    async def _mysubs(self, command: Command) -> str:
        try:
            categories = await self._subscriptions.subscriptions_for(command.user_id)
        except DirectoryError as e:
            logger.error(f"[命令] 查询订阅失败: {e}")
            return f"Failed to load subscriptions: {e}"
        if not categories:
            return "You have no active subscriptions."
        return "Your subscriptions:\n" + "\n".join(sorted(categories))
