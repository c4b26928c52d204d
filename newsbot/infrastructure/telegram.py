"""
Telegram Bot API 客户端

Docs: https://core.telegram.org/bots/api
"""
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from ..domain import SendError

TELEGRAM_API_BASE = "https://api.telegram.org"

# Telegram 单条消息长度上限
TELEGRAM_MAX_MESSAGE_LENGTH = 4096


class TelegramAPIError(Exception):
    """Bot API 返回 ok=false 或请求失败"""

    def __init__(self, description: str, error_code: Optional[int] = None):
        self.description = description
        self.error_code = error_code
        super().__init__(f"{error_code}: {description}" if error_code else description)

    @property
    def is_parse_error(self) -> bool:
        return self.error_code == 400 and "parse entities" in self.description.lower()


class TelegramClient:
    """Telegram 机器人客户端，实现消息发送与长轮询拉取更新"""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = TELEGRAM_API_BASE,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _call(self, method: str, payload: Dict[str, Any], *, timeout: Optional[float] = None) -> Any:
        url = f"{self.base_url}/bot{self.token}/{method}"
        try:
            resp = await self._client.post(url, json=payload, timeout=timeout or self.timeout)
        except httpx.HTTPError as e:
            # 异常信息中可能带有含 token 的 URL，只保留异常类型
            raise TelegramAPIError(f"{method} request failed: {type(e).__name__}") from e
        except RuntimeError as e:
            # 客户端已关闭
            raise TelegramAPIError(f"{method} request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise TelegramAPIError(f"{method} returned invalid JSON", resp.status_code) from e

        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description", "unknown error") if isinstance(data, dict) else "unknown error"
            error_code = data.get("error_code", resp.status_code) if isinstance(data, dict) else resp.status_code
            raise TelegramAPIError(description, error_code)
        return data.get("result")

    async def get_me(self) -> Dict[str, Any]:
        return await self._call("getMe", {})

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 60) -> List[Dict[str, Any]]:
        """长轮询拉取更新，HTTP 超时比轮询超时多留 10 秒"""
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        result = await self._call("getUpdates", payload, timeout=timeout + 10)
        return result or []

    async def send(self, recipient_id: int, text: str, parse_mode: Optional[str] = None) -> None:
        """
        发送文本消息

        Markdown 解析失败时（标题中含未闭合的 * 或 _ 等），去掉格式重发一次。

        Raises:
            SendError: 发送失败
        """
        if len(text) > TELEGRAM_MAX_MESSAGE_LENGTH:
            logger.warning(f"消息过长（{len(text)} 字符），截断后发送")
            text = text[: TELEGRAM_MAX_MESSAGE_LENGTH - 3] + "..."

        payload: Dict[str, Any] = {"chat_id": recipient_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode

        try:
            await self._call("sendMessage", payload)
            return
        except TelegramAPIError as e:
            if not (parse_mode and e.is_parse_error):
                raise SendError(f"failed to send message to {recipient_id}: {e}") from e
            logger.warning(f"Telegram Markdown 解析失败，去掉格式重发: {e}")

        payload.pop("parse_mode", None)
        try:
            await self._call("sendMessage", payload)
        except TelegramAPIError as e:
            raise SendError(f"failed to send message to {recipient_id}: {e}") from e

    async def aclose(self) -> None:
        await self._client.aclose()
