"""日志配置模块"""

import os
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"

# 后台任务日志前缀，写入单独的调度日志文件
SCHEDULER_PREFIXES = ("[定时推送]", "[去重]", "[调度器]")


def scheduler_filter(record) -> bool:
    """过滤定时任务相关的日志"""
    message = record["message"]
    return any(prefix in message for prefix in SCHEDULER_PREFIXES)


def setup_logging(log_dir: Optional[Path] = None, level: Optional[str] = None) -> Path:
    """
    配置日志系统，将日志保存到文件

    Args:
        log_dir: 日志目录，默认读取 LOG_DIR 环境变量，否则为项目根目录下的 logs/
        level: 文件日志级别，默认读取 LOG_LEVEL 环境变量，否则为 INFO

    Returns:
        实际使用的日志目录
    """
    if log_dir is None:
        env_dir = os.getenv("LOG_DIR")
        project_root = Path(__file__).resolve().parent.parent.parent
        log_dir = Path(env_dir) if env_dir else project_root / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()

    # 所有文件日志每天零点轮转，旧文件压缩保存
    def add_daily_sink(name: str, retention: str, **options) -> None:
        logger.add(
            log_dir / f"{name}_{{time:YYYY-MM-DD}}.log",
            rotation="00:00",
            retention=retention,
            compression="zip",
            encoding="utf-8",
            enqueue=True,
            **options,
        )

    add_daily_sink("bot", "30 days", level=level, format=LOG_FORMAT)
    # 只记录 ERROR 及以上级别
    add_daily_sink("error", "90 days", level="ERROR", format=LOG_FORMAT)
    add_daily_sink(
        "scheduler",
        "90 days",
        level="INFO",
        filter=scheduler_filter,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message}",
    )

    logger.info(f"日志系统已配置，日志文件保存在 {log_dir}")
    return log_dir
