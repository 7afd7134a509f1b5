"""
数据库会话管理模块

提供数据库引擎创建、会话管理等功能。

公开 API:
- db_manager: 数据库管理器单例
- init_database(): 初始化数据库连接
- on_request_end(): 请求结束清理
- create_all_tables(): 创建所有表
"""

import logging
import os
import time
from contextvars import ContextVar
from typing import Any, Callable
from uuid import uuid4

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ytree.log import get_logger

_logger = get_logger("ytree.orm.session")

__all__ = [
    'db_manager',
    'init_database',
    'on_request_end',
    'create_all_tables',
]


class DatabaseManager:
    """数据库管理器（单例）

    封装数据库连接状态和会话管理。session 按请求ID划分作用域，
    同一请求内的所有数据库操作共享一个 session。

    使用示例:
        from ytree.orm import db_manager

        db_manager.init(database_url="sqlite:///./ytree.db")
        engine = db_manager.engine
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._engine = None
        self._session_scope = None
        self._session_maker = None
        self._request_id_var: ContextVar[str] = ContextVar('request_id', default='')
        # request_id 锁定标记：设置后或创建 session 后不允许覆盖，防止 session 泄漏
        self._request_id_explicit: ContextVar[bool] = ContextVar('request_id_explicit', default=False)
        self._initialized = True

    # ==================== 属性访问 ====================

    @property
    def engine(self):
        """获取数据库引擎（只读）

        Raises:
            RuntimeError: 数据库未初始化时
        """
        if self._engine is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._engine

    # ==================== 核心方法 ====================

    def init(
        self,
        database_url: str = None,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True,
        sql_log_enabled: bool = False,
        logger: logging.Logger = None,
        scopefunc: Callable = None,
        config: Any = None,
        logging_config: Any = None,
        auto_setup_query: bool = True
    ):
        """初始化数据库连接

        Args:
            database_url: 数据库连接URL（如果提供 config 则忽略）
            echo: 是否输出SQL语句
            pool_size: 连接池大小
            max_overflow: 最大溢出连接数
            pool_timeout: 连接超时时间
            pool_recycle: 连接回收时间
            pool_pre_ping: 连接前是否ping
            sql_log_enabled: 是否启用SQL日志（如果提供 logging_config 则忽略）
            logger: 日志记录器
            scopefunc: session作用域函数，默认使用请求ID
            config: 数据库配置对象（DatabaseSettings）
            logging_config: 日志配置对象（LoggingSettings）
            auto_setup_query: 是否自动设置 CoreModel.query 属性

        Returns:
            tuple: (engine, session_scope)
        """
        if config is not None:
            database_url = getattr(config, "url", database_url)
            echo = getattr(config, "echo", echo)
            pool_size = getattr(config, "pool_size", pool_size)
            max_overflow = getattr(config, "max_overflow", max_overflow)
            pool_timeout = getattr(config, "pool_timeout", pool_timeout)
            pool_recycle = getattr(config, "pool_recycle", pool_recycle)
            pool_pre_ping = getattr(config, "pool_pre_ping", pool_pre_ping)

        if logging_config is not None:
            sql_log_enabled = getattr(logging_config, "sql_log_enabled", sql_log_enabled)

        if not database_url:
            raise ValueError("database_url 是必需的，请通过参数或 config 提供")

        if logger is None:
            logger = _logger

        logger.info(f"数据库配置URL: {database_url}")

        engine_echo = "debug" if sql_log_enabled else echo

        if database_url.startswith("sqlite:///"):
            db_path = database_url[len("sqlite:///"):]
            is_memory_db = db_path in (":memory:", "")

            try:
                if is_memory_db:
                    # 内存数据库：StaticPool 单连接，保证所有 session 看到同一个库
                    self._engine = create_engine(
                        database_url,
                        echo=engine_echo,
                        connect_args={"check_same_thread": False},
                        poolclass=StaticPool,
                    )
                    logger.info("SQLite内存数据库引擎创建成功（StaticPool）")
                else:
                    logger.info(f"SQLite文件数据库路径: {os.path.abspath(db_path)}")
                    self._engine = create_engine(
                        database_url,
                        echo=engine_echo,
                        connect_args={
                            "check_same_thread": False,
                            "timeout": pool_timeout
                        },
                        poolclass=QueuePool,
                        pool_size=pool_size,
                        max_overflow=max_overflow,
                        pool_timeout=pool_timeout,
                        pool_pre_ping=pool_pre_ping,
                        pool_recycle=pool_recycle
                    )
                    logger.info(f"SQLite文件数据库引擎创建成功（QueuePool, pool_size={pool_size}）")
            except Exception as e:
                logger.error(f"创建SQLite数据库引擎失败: {str(e)}")
                raise
        else:
            try:
                self._engine = create_engine(
                    database_url,
                    echo=engine_echo,
                    pool_pre_ping=pool_pre_ping,
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    pool_timeout=pool_timeout,
                    pool_recycle=pool_recycle
                )
                logger.info("数据库引擎创建成功")
            except Exception as e:
                logger.error(f"创建数据库引擎失败: {str(e)}")
                raise

        if sql_log_enabled:
            sql_logger = logging.getLogger("sqlalchemy.engine")

            @event.listens_for(self._engine, "before_cursor_execute")
            def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
                conn.info.setdefault('query_start_time', []).append(time.time())

            @event.listens_for(self._engine, "after_cursor_execute")
            def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
                total_time = time.time() - conn.info['query_start_time'].pop()
                sql_logger.debug(f"[执行耗时: {total_time*1000:.2f}ms]")

            logger.info("SQL执行时间记录已启用")

        self._session_maker = sessionmaker(
            autocommit=False,
            autoflush=True,
            bind=self._engine,
        )

        if scopefunc is None:
            scopefunc = self._get_request_id

        self._session_scope = scoped_session(self._session_maker, scopefunc=scopefunc)

        if auto_setup_query:
            from .core_model import CoreModel
            CoreModel.query = self._session_scope.query_property()
            logger.info("CoreModel.query 属性已自动设置")

        logger.info("数据库session创建成功")

        return self._engine, self._session_scope

    def get_session(self) -> Session:
        """获取 scoped session（低级 API）

        使用后需要调用 on_request_end() 清理，HTTP 请求由 RequestIDMiddleware 负责。
        """
        if self._session_scope is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")

        session = self._session_scope()

        if not self._request_id_explicit.get():
            self._request_id_explicit.set(True)
            _logger.debug(f"[request_id={self._request_id_var.get()}] session 已创建，request_id 已锁定")

        return session

    def cleanup(self):
        """请求结束时自动提交并清理 session（幂等，多次调用安全）

        1. session 中有未提交的更改（dirty/new/deleted）时自动提交，失败则回滚
        2. 移除 session，归还连接到连接池
        3. 重置 request_id 状态
        """
        request_id = self._get_request_id()

        if self._session_scope and self._session_scope.registry.has():
            session = self._session_scope()

            if session.dirty or session.new or session.deleted:
                try:
                    session.commit()
                    _logger.debug(f"[request_id={request_id}] 自动提交成功")
                except Exception as e:
                    _logger.warning(f"[request_id={request_id}] 自动提交失败，回滚: {e}")
                    session.rollback()

            self._session_scope.remove()
            _logger.debug(f"[request_id={request_id}] session_scope 移除完成")

        self._request_id_var.set('')
        self._request_id_explicit.set(False)

    def dispose(self):
        """释放引擎和连接池（应用关闭时调用）"""
        if self._session_scope is not None:
            self._session_scope.remove()
        if self._engine is not None:
            self._engine.dispose()
            _logger.info("数据库引擎已释放")
        self._engine = None
        self._session_scope = None
        self._session_maker = None

    # ==================== 请求ID管理（内部使用） ====================

    def _set_request_id(self, request_id: str = None) -> str:
        """设置当前请求ID（已锁定时返回已有的值）"""
        if self._request_id_explicit.get():
            existing = self._request_id_var.get()
            _logger.debug(f"request_id 已锁定为 {existing}，忽略设置 {request_id}")
            return existing

        if not request_id:
            request_id = uuid4().hex[:8]

        self._request_id_var.set(request_id)
        self._request_id_explicit.set(True)
        return request_id

    def _get_request_id(self) -> str:
        """获取当前请求ID，未设置时自动生成"""
        value = self._request_id_var.get()
        if not value:
            value = uuid4().hex[:8]
            self._request_id_var.set(value)
            _logger.debug(f"request_id 未设置，自动生成: {value}")
        return value


# ==================== 全局单例 ====================

db_manager = DatabaseManager()


# ==================== 公开 API 函数 ====================

def init_database(
    database_url: str = None,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 3600,
    pool_pre_ping: bool = True,
    sql_log_enabled: bool = False,
    logger: logging.Logger = None,
    scopefunc: Callable = None,
    config: Any = None,
    logging_config: Any = None,
    auto_setup_query: bool = True
):
    """初始化数据库连接

    db_manager.init() 的便捷包装函数。

    使用示例:
        engine, session_scope = init_database(
            config=settings.database,
            logging_config=settings.logging,
        )
    """
    return db_manager.init(
        database_url=database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=pool_pre_ping,
        sql_log_enabled=sql_log_enabled,
        logger=logger,
        scopefunc=scopefunc,
        config=config,
        logging_config=logging_config,
        auto_setup_query=auto_setup_query
    )


def on_request_end():
    """请求结束时自动提交并清理 session

    db_manager.cleanup() 的便捷包装函数，幂等操作。
    """
    db_manager.cleanup()


def create_all_tables(engine=None):
    """创建所有已注册模型的表"""
    from .core_model import Base
    Base.metadata.create_all(bind=engine or db_manager.engine)

