"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 临时目录 / 临时文件
- 内存数据库引擎与会话
- 绑定到内存数据库的 TreeService
- FastAPI 应用和测试客户端
"""

import os
import tempfile
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


# ==================== 基础 Fixtures ====================

@pytest.fixture(scope="session")
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_file(temp_dir):
    """创建临时文件的工厂函数"""
    created_files = []

    def _create_file(filename: str, content: str = "") -> str:
        filepath = os.path.join(temp_dir, filename)
        if os.path.dirname(filepath):
            os.makedirs(os.path.dirname(filepath), exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        created_files.append(filepath)
        return filepath

    yield _create_file

    for f in created_files:
        if os.path.exists(f):
            os.remove(f)


# ==================== 数据库 Fixtures ====================

@pytest.fixture(scope="function")
def memory_engine():
    """创建内存数据库引擎

    StaticPool 保证所有操作使用同一个连接，check_same_thread=False 允许跨线程访问。
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(memory_engine) -> Generator[Session, None, None]:
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def managed_db():
    """通过 db_manager 初始化的内存数据库

    事务管理器从 db_manager 获取 session，服务层测试需要使用这个 fixture。
    """
    from ytree.orm import create_all_tables, db_manager, init_database, on_request_end

    init_database("sqlite:///:memory:")
    create_all_tables()
    yield db_manager
    on_request_end()
    db_manager.dispose()


@pytest.fixture
def tree_service(managed_db):
    """使用数据库仓储的树管理服务"""
    from ytree.tree import TreeService
    return TreeService()


# ==================== FastAPI Fixtures ====================

@pytest.fixture
def app_settings():
    """测试用应用配置（内存数据库，不输出日志到控制台）"""
    from ytree.config import AppSettings, DatabaseSettings, LoggingSettings, TreeSettings
    return AppSettings(
        app_name="Tree Test",
        database=DatabaseSettings(url="sqlite:///:memory:"),
        logging=LoggingSettings(level="WARNING", enable_console=False),
        tree=TreeSettings(slow_request_threshold=5.0),
    )


@pytest.fixture
def app(app_settings):
    """创建测试用 FastAPI 应用"""
    from ytree.app import create_app
    from ytree.orm import db_manager

    test_app = create_app(app_settings)
    yield test_app
    db_manager.dispose()


@pytest.fixture
def client(app):
    """创建测试客户端"""
    return TestClient(app)
