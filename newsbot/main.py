"""应用主入口"""

import asyncio
import signal
from typing import List, Optional

from dotenv import load_dotenv
from loguru import logger

from .config_loader import BotSettings, load_bot_settings
from .domain import ConfigError
from .infrastructure import NewsAPIClient, SchedulerManager, TelegramClient, setup_logging
from .infrastructure.db import (
    SentArticleLedger,
    SubscriptionDirectory,
    close_db,
    configure_engine,
    init_db,
)
from .services import BotService, DigestService, NewsService, SubscriptionService

DIGEST_JOB_ID = "news_digest_cycle"
STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _install_signal_handlers(stop_event: asyncio.Event) -> List[signal.Signals]:
    loop = asyncio.get_running_loop()
    installed = []
    for sig in STOP_SIGNALS:
        try:
            loop.add_signal_handler(sig, stop_event.set)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows 事件循环不支持 add_signal_handler，依赖 KeyboardInterrupt
            pass
    return installed


async def run_bot(settings: BotSettings, stop_event: Optional[asyncio.Event] = None) -> None:
    """组装各组件并运行，直到收到退出信号"""
    if stop_event is None:
        stop_event = asyncio.Event()

    session_factory = configure_engine(settings.database_url)
    await init_db()
    logger.info("[数据库] 数据库初始化完成")

    news_client = NewsAPIClient(settings.news_api_key)
    telegram = TelegramClient(settings.telegram_bot_token)
    scheduler_manager = SchedulerManager(timezone=settings.timezone)
    listener: Optional[asyncio.Task] = None
    digest_service: Optional[DigestService] = None
    installed_signals: List[signal.Signals] = []

    try:
        me = await telegram.get_me()
        logger.info(f"机器人 @{me.get('username')} 已启动")

        ledger = SentArticleLedger(session_factory)
        directory = SubscriptionDirectory(session_factory)
        news_service = NewsService(news_client, ledger)
        subscription_service = SubscriptionService(directory, settings.categories)
        digest_service = DigestService(
            directory,
            news_service,
            telegram,
            batch_size=settings.batch_size,
            stop_event=stop_event,
        )
        bot_service = BotService(
            telegram,
            subscription_service,
            news_service,
            news_limit=settings.news_limit,
            poll_timeout=settings.poll_timeout,
        )

        scheduler_manager.create_scheduler()
        scheduler_manager.add_interval_job(
            digest_service.run_cycle,
            minutes=settings.check_interval_minutes,
            job_id=DIGEST_JOB_ID,
        )
        scheduler_manager.start()

        installed_signals = _install_signal_handlers(stop_event)
        listener = asyncio.create_task(bot_service.run_polling(stop_event))
        stopper = asyncio.create_task(stop_event.wait())
        done, _ = await asyncio.wait({listener, stopper}, return_when=asyncio.FIRST_COMPLETED)
        stopper.cancel()
        if listener in done:
            # 监听任务异常退出时把异常抛给调用方
            listener.result()
        logger.info("收到退出信号，正在关闭...")
    finally:
        stop_event.set()
        for sig in installed_signals:
            asyncio.get_running_loop().remove_signal_handler(sig)
        if listener is not None and not listener.done():
            listener.cancel()
            await asyncio.gather(listener, return_exceptions=True)
        if digest_service is not None:
            # 调度器关闭时会取消正在执行的任务，先等当前分类发完
            await digest_service.wait_idle()
        scheduler_manager.shutdown(wait=False)
        await telegram.aclose()
        await news_client.aclose()
        await close_db()
        logger.info("已关闭")


def main() -> int:
    # 从 .env 文件加载环境变量
    try:
        load_dotenv()
    except Exception as e:  # noqa: BLE001
        print(f"Warning: Failed to load .env file: {e}. Continuing with environment variables...")

    setup_logging()
    settings = load_bot_settings()
    try:
        settings.require_secrets()
    except ConfigError as e:
        logger.error(f"配置错误: {e}")
        return 1

    try:
        asyncio.run(run_bot(settings))
    except KeyboardInterrupt:
        logger.info("已中断")
    except Exception as e:  # noqa: BLE001 - 启动阶段的致命错误
        logger.opt(exception=True).error(f"机器人运行失败: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
