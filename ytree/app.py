"""
应用工厂

组装配置、日志、数据库、异常处理、中间件和路由。

使用示例:
    from ytree.app import create_app

    app = create_app()
"""

from typing import Optional

from fastapi import FastAPI

from ytree import __version__
from ytree.config import AppSettings, load_settings
from ytree.exceptions import register_exception_handlers
from ytree.log import get_logger, setup_root_logger
from ytree.middleware import PerformanceMonitoringMiddleware, RequestIDMiddleware
from ytree.orm import create_all_tables, init_database
from ytree.tree import TreeService
from ytree.tree.api import create_tree_html_router, create_tree_json_router

logger = get_logger()


def create_app(settings: Optional[AppSettings] = None, service: Optional[TreeService] = None) -> FastAPI:
    """创建 FastAPI 应用

    Args:
        settings: 应用配置，为空时从 YTREE_CONFIG 指定的 YAML 文件和环境变量加载
        service: 树管理服务，为空时使用数据库仓储
    """
    if settings is None:
        settings = load_settings(AppSettings)

    setup_root_logger(config=settings.logging)

    init_database(config=settings.database, logging_config=settings.logging)
    create_all_tables()

    app = FastAPI(
        title=settings.app_name,
        description="树结构管理：树的增删恢复、节点的添加删除移动和排序",
        version=__version__,
        debug=settings.debug,
    )

    register_exception_handlers(app)

    # 后添加的中间件在外层
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        PerformanceMonitoringMiddleware,
        slow_request_threshold=settings.tree.slow_request_threshold,
    )

    service = service or TreeService()
    app.include_router(create_tree_json_router(service))
    app.include_router(create_tree_html_router(service))

    logger.info(f"{settings.app_name} 已启动, 数据库: {settings.database.url}")
    return app
