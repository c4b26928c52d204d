"""入口与组件组装测试"""
import asyncio
from unittest.mock import patch

import pytest

from newsbot import main as main_module
from newsbot.config_loader import BotSettings
from newsbot.domain import Article


class FakeTelegram:
    instances = []
    stop_event = None

    def __init__(self, token, **kwargs):
        self.token = token
        self.sent = []
        self.closed = False
        FakeTelegram.instances.append(self)

    async def get_me(self):
        return {"username": "test_news_bot"}

    async def get_updates(self, offset=None, timeout=60):
        if offset is None:
            return [{"update_id": 1, "message": {"text": "/help", "chat": {"id": 5}, "from": {"id": 5}}}]
        self.stop_event.set()
        return []

    async def send(self, recipient_id, text, parse_mode=None):
        self.sent.append((recipient_id, text))

    async def aclose(self):
        self.closed = True


class FakeNewsClient:
    def __init__(self, api_key, **kwargs):
        self.closed = False

    async def fetch(self, category):
        return []

    async def aclose(self):
        self.closed = True


@pytest.mark.asyncio
async def test_run_bot_wires_components_and_shuts_down(tmp_path):
    FakeTelegram.instances.clear()
    settings = BotSettings(
        telegram_bot_token="123:abc",
        news_api_key="key",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'bot.db'}",
    )
    stop_event = asyncio.Event()
    FakeTelegram.stop_event = stop_event

    with patch.object(main_module, "TelegramClient", FakeTelegram), \
            patch.object(main_module, "NewsAPIClient", FakeNewsClient):
        await asyncio.wait_for(main_module.run_bot(settings, stop_event), timeout=10)

    telegram = FakeTelegram.instances[0]
    assert telegram.closed is True
    assert telegram.sent and telegram.sent[0][0] == 5
    assert (tmp_path / "bot.db").exists()


def test_main_fails_without_secrets(monkeypatch):
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
    monkeypatch.delenv("NEWS_API_KEY", raising=False)

    with patch.object(main_module, "load_dotenv"), patch.object(main_module, "setup_logging"), \
            patch.object(main_module, "load_bot_settings", return_value=BotSettings()):
        assert main_module.main() == 1


class RecordingDigestService(main_module.DigestService):
    instances = []

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        RecordingDigestService.instances.append(self)


class SlowDigestTelegram(FakeTelegram):
    """订阅后在推送进行中触发退出，推送消息发送较慢"""

    def __init__(self, token, **kwargs):
        super().__init__(token, **kwargs)
        self.digest_sending = asyncio.Event()
        self.sent_after_close = []
        self.cycle = None

    async def get_updates(self, offset=None, timeout=60):
        if offset is None:
            return [{"update_id": 1, "message": {"text": "/add technology", "chat": {"id": 5}, "from": {"id": 5}}}]
        self.cycle = asyncio.create_task(RecordingDigestService.instances[0].run_cycle())
        await self.digest_sending.wait()
        self.stop_event.set()
        return []

    async def send(self, recipient_id, text, parse_mode=None):
        if parse_mode == "Markdown":
            self.digest_sending.set()
            await asyncio.sleep(0.05)
        if self.closed:
            self.sent_after_close.append(text)
        self.sent.append((recipient_id, text))


class OneArticleNewsClient(FakeNewsClient):
    async def fetch(self, category):
        return [Article(title="Headline", url="https://example.com/a", published_at="2025-01-01T00:00:00Z")]


@pytest.mark.asyncio
async def test_shutdown_waits_for_running_digest_cycle(tmp_path):
    FakeTelegram.instances.clear()
    RecordingDigestService.instances.clear()
    settings = BotSettings(
        telegram_bot_token="123:abc",
        news_api_key="key",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'bot.db'}",
    )
    stop_event = asyncio.Event()
    FakeTelegram.stop_event = stop_event

    with patch.object(main_module, "TelegramClient", SlowDigestTelegram), \
            patch.object(main_module, "NewsAPIClient", OneArticleNewsClient), \
            patch.object(main_module, "DigestService", RecordingDigestService):
        await asyncio.wait_for(main_module.run_bot(settings, stop_event), timeout=10)

    telegram = FakeTelegram.instances[0]
    assert telegram.cycle.done()
    report = telegram.cycle.result()
    assert report.sent == 1
    assert report.aborted is False
    assert telegram.sent_after_close == []
    assert any("Headline" in text for _, text in telegram.sent)
