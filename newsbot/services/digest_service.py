"""推送服务模块"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from ..digest.render import PARSE_MODE, format_article, format_no_news
from ..domain import Directory, DirectoryError, FetchError, MessageSink, SendError
from .news_service import NewsService

# 每个分类每轮最多推送的文章数
DEFAULT_BATCH_SIZE = 5


@dataclass
class CycleReport:
    """一轮推送的统计结果"""

    categories: List[str] = field(default_factory=list)
    skipped_categories: List[str] = field(default_factory=list)
    articles: int = 0
    sent: int = 0
    failed: int = 0
    aborted: bool = False  # 订阅数据读取失败，整轮放弃
    overlapped: bool = False  # 上一轮仍在执行，本次未运行
    stopped: bool = False  # 收到退出信号，剩余分类未处理


class DigestService:
    """推送服务"""

    def __init__(
        self,
        directory: Directory,
        news_service: NewsService,
        sink: MessageSink,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        stop_event: Optional[asyncio.Event] = None,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size 必须为正整数: {batch_size}")
        self._directory = directory
        self._news_service = news_service
        self._sink = sink
        self.batch_size = batch_size
        self._stop_event = stop_event
        self._lock = asyncio.Lock()

    async def run_cycle(self) -> CycleReport:
        """
        执行一轮推送

        每个分类只调用一次去重流程，结果发给该分类的全部订阅者；
        单个分类或单个用户失败不影响其他分类和用户。
        """
        report = CycleReport()
        if self._lock.locked():
            logger.warning("[定时推送] 检测到上一轮推送仍在执行，跳过本次触发")
            report.overlapped = True
            return report

        async with self._lock:
            logger.info(f"[定时推送] 开始检查新文章，时间: {datetime.now():%Y-%m-%d %H:%M:%S}")
            try:
                await self._run(report)
            except Exception as e:  # noqa: BLE001 - 后台任务不能让异常终止调度
                logger.opt(exception=True).error(f"[定时推送] 推送任务执行失败: {e}")
                report.aborted = True
            else:
                logger.info(
                    f"[定时推送] 本轮完成: 分类 {len(report.categories)} 个，"
                    f"跳过 {len(report.skipped_categories)} 个，发送成功 {report.sent} 条，失败 {report.failed} 条"
                )
        return report

    async def _run(self, report: CycleReport) -> None:
        try:
            subscriptions = await self._directory.all()
        except DirectoryError as e:
            logger.error(f"[定时推送] 读取订阅失败，放弃本轮推送: {e}")
            report.aborted = True
            return

        for category, user_ids in self.group_by_category(subscriptions).items():
            if self._stop_event is not None and self._stop_event.is_set():
                logger.info(f"[定时推送] 收到退出信号，停止处理剩余分类（从 {category} 开始）")
                report.stopped = True
                break
            report.categories.append(category)
            try:
                articles = await self._news_service.get_new_articles(category, self.batch_size)
            except FetchError as e:
                logger.warning(f"[定时推送] 分类 {category} 获取新闻失败，本轮跳过: {e}")
                report.skipped_categories.append(category)
                continue
            except Exception as e:  # noqa: BLE001
                logger.opt(exception=True).error(f"[定时推送] 分类 {category} 处理失败，本轮跳过: {e}")
                report.skipped_categories.append(category)
                continue

            report.articles += len(articles)
            if articles:
                messages = [format_article(a) for a in articles]
            else:
                messages = [format_no_news(category)]

            for user_id in user_ids:
                for text in messages:
                    try:
                        await self._sink.send(user_id, text, parse_mode=PARSE_MODE)
                        report.sent += 1
                    except SendError as e:
                        logger.error(f"[定时推送] 发送给用户 {user_id} 失败: {e}")
                        report.failed += 1

    async def wait_idle(self) -> None:
        """等待正在执行的一轮推送结束"""
        async with self._lock:
            pass

    @staticmethod
    def group_by_category(subscriptions) -> Dict[str, List[int]]:
        """分类 -> 订阅用户列表，保持首次出现顺序，同一用户在同一分类下只出现一次"""
        groups: Dict[str, List[int]] = {}
        for sub in subscriptions:
            users = groups.setdefault(sub.category, [])
            if sub.user_id not in users:
                users.append(sub.user_id)
        return groups
