import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

LOG_ROOT = Path.home() / ".jarscan" / "logs"


def setup_logger(app_name="jarscan", log_root=None, console_output=True, verbose=False, log_file=False):
    """配置 Loguru 日志系统

    Args:
        app_name: 应用名称，用于日志目录
        log_root: 日志根目录，默认为 ~/.jarscan/logs
        console_output: 是否输出到控制台（stderr，避免污染 JSON 输出）
        verbose: 控制台输出 DEBUG 级别
        log_file: 是否同时写入日志文件

    Returns:
        tuple: (logger, config_info)
            - logger: 配置好的 logger 实例
            - config_info: 包含日志配置信息的字典
    """
    # 清除默认处理器
    logger.remove()

    if console_output:
        logger.add(
            sys.stderr,
            level="DEBUG" if verbose else "INFO",
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level.icon} {level: <8}</level> | <level>{message}</level>",
        )

    config_info = {"log_file": None}
    if log_file:
        current_time = datetime.now()
        log_dir = Path(log_root or LOG_ROOT) / app_name / current_time.strftime("%Y-%m-%d")
        log_dir.mkdir(parents=True, exist_ok=True)
        path = log_dir / f"{current_time.strftime('%H%M%S')}.log"

        logger.add(
            str(path),
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            encoding="utf-8",
            format="{time:YYYY-MM-DD HH:mm:ss} | {elapsed} | {level.icon} {level: <8} | {name}:{function}:{line} - {message}",
            enqueue=True,
        )
        config_info["log_file"] = str(path)

    logger.debug(f"日志系统已初始化，应用名称: {app_name}")
    return logger, config_info
