"""日志模块

提供日志配置与日志器获取：

使用示例:
    from ytree.log import setup_logger, get_logger

    setup_logger("ytree", level="DEBUG", log_file="logs/ytree.log")
    logger = get_logger()
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    setup_sql_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "setup_sql_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "logger",
    "get_logger",
]
