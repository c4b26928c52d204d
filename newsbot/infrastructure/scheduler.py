"""调度器管理模块"""

from typing import Any, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger


class SchedulerManager:
    """调度器管理器"""

    def __init__(self, timezone: str = "UTC"):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.timezone = timezone

    def create_scheduler(self) -> AsyncIOScheduler:
        """创建调度器实例"""
        if self.scheduler is not None and self.scheduler.running:
            logger.warning("[调度器] 检测到已有调度器在运行，正在关闭...")
            self.shutdown(wait=False)

        self.scheduler = AsyncIOScheduler(timezone=self.timezone)
        logger.info("[调度器] 调度器实例已创建")
        return self.scheduler

    def add_interval_job(
        self,
        func: Callable,
        minutes: float,
        job_id: str,
        **kwargs: Any,
    ) -> None:
        """
        添加固定间隔任务

        同一任务同时只允许一个实例运行，错过的触发合并为一次。

        Args:
            func: 要执行的函数（可以是协程函数）
            minutes: 间隔分钟数
            job_id: 任务ID
            **kwargs: 传递给 add_job 的其他参数
        """
        if self.scheduler is None:
            raise RuntimeError("调度器未初始化，请先调用 create_scheduler()")
        if minutes <= 0:
            raise ValueError(f"任务间隔必须为正数: {minutes}")

        self.scheduler.add_job(
            func,
            "interval",
            minutes=minutes,
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **kwargs,
        )
        logger.info(f"[调度器] 已添加任务: {job_id}, 执行间隔: {minutes} 分钟")

    def start(self) -> None:
        """启动调度器，需在事件循环内调用"""
        if self.scheduler is None:
            raise RuntimeError("调度器未初始化，请先调用 create_scheduler()")

        self.scheduler.start()
        logger.info("[调度器] 调度器已启动，等待触发定时任务...")
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            logger.info(f"[调度器]   - {job.id}: 下次执行时间 = {next_run}")

    def shutdown(self, wait: bool = False) -> None:
        """关闭调度器，不等待下一次触发"""
        if self.scheduler is None:
            return
        try:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=wait)
                logger.info("[调度器] 调度器已关闭")
        except Exception as e:  # noqa: BLE001
            logger.error(f"[调度器] 关闭调度器时出错: {e}")
        finally:
            self.scheduler = None

    def get_job(self, job_id: str) -> Optional[Any]:
        """获取任务"""
        if self.scheduler is None:
            return None
        return self.scheduler.get_job(job_id)

    @property
    def running(self) -> bool:
        """检查调度器是否运行中"""
        return self.scheduler is not None and self.scheduler.running
