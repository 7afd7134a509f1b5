"""事务管理

提供事务上下文和事务管理器：
- TransactionContext: 管理单个事务的生命周期（开始/提交/回滚、嵌套层级、提交抑制）
- TransactionManager: 事务统一入口，支持上下文管理器和装饰器两种方式
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from functools import wraps
from typing import Callable, Generator, Optional, TypeVar

from sqlalchemy.orm import Session

from ytree.log import get_logger

logger = get_logger("ytree.orm.transaction")

T = TypeVar('T')


class TransactionState(str, Enum):
    """事务状态

        INACTIVE → ACTIVE → COMMITTED
                      ↓
                  ROLLED_BACK / FAILED
    """

    INACTIVE = "inactive"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        """判断是否为终态"""
        return self in (
            TransactionState.COMMITTED,
            TransactionState.ROLLED_BACK,
            TransactionState.FAILED
        )


class TransactionError(Exception):
    """事务状态错误"""


class TransactionContext:
    """事务上下文

    管理单个事务的完整生命周期，包括状态跟踪、嵌套层级和提交抑制。
    嵌套进入同一事务时只增加层级，只有最外层退出时才真正提交。

    使用示例:
        with TransactionContext(session) as tx:
            tree = Tree(name="组织架构")
            tree.save(commit=True)  # 被抑制，只 flush
        # 退出时统一提交
    """

    def __init__(
        self,
        session: Session,
        auto_commit: bool = True,
        suppress_commit: bool = True
    ):
        self._session = session
        self._auto_commit = auto_commit
        self._suppress_commit = suppress_commit
        self._state = TransactionState.INACTIVE
        self._nesting_level = 0

    # ==================== 属性 ====================

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == TransactionState.ACTIVE

    @property
    def nesting_level(self) -> int:
        return self._nesting_level

    @property
    def suppress_commit(self) -> bool:
        """是否抑制内部的 commit=True 调用"""
        return self._suppress_commit

    # ==================== 事务生命周期方法 ====================

    def begin(self) -> 'TransactionContext':
        """开始事务（已激活时增加嵌套层级）"""
        if self._state == TransactionState.ACTIVE:
            self._nesting_level += 1
            logger.debug(f"加入现有事务 (level={self._nesting_level})")
            return self

        self._state = TransactionState.ACTIVE
        self._nesting_level = 1
        logger.debug(f"事务开始 (level={self._nesting_level})")
        return self

    def commit(self) -> None:
        """提交事务（嵌套层级大于 1 时只减少层级）"""
        if self._state != TransactionState.ACTIVE:
            raise TransactionError(f"无法提交：事务状态为 {self._state.value}")

        if self._nesting_level > 1:
            self._nesting_level -= 1
            logger.debug(f"嵌套事务退出 (level={self._nesting_level})")
            return

        try:
            self._session.commit()
            self._state = TransactionState.COMMITTED
            self._nesting_level = 0
            logger.debug("事务提交成功")
        except Exception:
            self._state = TransactionState.FAILED
            raise

    def rollback(self) -> None:
        """回滚事务（幂等）"""
        if self._state == TransactionState.COMMITTED:
            raise TransactionError("无法回滚：事务已提交")
        if self._state not in (TransactionState.ACTIVE, TransactionState.FAILED):
            return

        try:
            self._session.rollback()
            self._state = TransactionState.ROLLED_BACK
            self._nesting_level = 0
            logger.debug("事务回滚成功")
        except Exception as e:
            self._state = TransactionState.FAILED
            logger.error(f"事务回滚失败: {e}")
            raise

    # ==================== 提交抑制控制 ====================

    def should_suppress_commit(self) -> bool:
        """CoreModel 据此判断 commit=True 是否应该被忽略"""
        return self.is_active and self.suppress_commit

    # ==================== 上下文管理器 ====================

    def __enter__(self) -> 'TransactionContext':
        return self.begin()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.rollback()
            return False

        if self._auto_commit and self._nesting_level == 1:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        elif self._nesting_level > 1:
            self._nesting_level -= 1

        return False

    def __repr__(self) -> str:
        return (
            f"TransactionContext("
            f"state={self._state.value}, "
            f"nesting_level={self._nesting_level}, "
            f"suppress_commit={self.suppress_commit})"
        )


# 当前事务上下文（线程/协程安全）
_current_transaction: ContextVar[Optional[TransactionContext]] = ContextVar(
    '_current_transaction', default=None
)


def get_current_transaction() -> Optional[TransactionContext]:
    """获取当前事务上下文，不在事务中返回 None"""
    return _current_transaction.get()


class TransactionManager:
    """事务管理器（单例）

    使用示例:
        from ytree.orm import transaction_manager as tm

        with tm.transaction() as tx:
            tree.save()

        @tm.transactional()
        def create_tree(data):
            ...
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
        self._default_suppress_commit = True
        self._initialized = True

    def get_session(self) -> Session:
        """获取数据库 session"""
        from .db_session import db_manager
        return db_manager.get_session()

    @property
    def current_transaction(self) -> Optional[TransactionContext]:
        return _current_transaction.get()

    @contextmanager
    def transaction(
        self,
        session: Session = None,
        auto_commit: bool = True,
        suppress_commit: bool = None
    ) -> Generator[TransactionContext, None, None]:
        """创建事务上下文

        已存在活跃事务时加入该事务（只增加嵌套层级），由最外层负责提交或回滚。
        内层捕获异常后应重新抛出，否则外层可能提交不一致的数据。

        Args:
            session: 数据库会话，不传则自动获取
            auto_commit: 是否自动提交
            suppress_commit: 是否抑制内部提交，None 则使用默认配置
        """
        current = self.current_transaction
        if current and current.is_active:
            current._nesting_level += 1
            logger.debug(f"加入现有事务 (level={current._nesting_level})")
            try:
                yield current
            finally:
                if current._nesting_level > 0:
                    current._nesting_level -= 1
            return

        if session is None:
            session = self.get_session()
        if suppress_commit is None:
            suppress_commit = self._default_suppress_commit

        ctx = TransactionContext(
            session=session,
            auto_commit=auto_commit,
            suppress_commit=suppress_commit
        )

        token = _current_transaction.set(ctx)
        try:
            with ctx:
                yield ctx
        finally:
            _current_transaction.reset(token)

    def transactional(self, suppress_commit: bool = None):
        """事务装饰器

        使用示例:
            @transaction_manager.transactional()
            def delete_node(self, tree_id, node_id):
                ...
        """
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            @wraps(func)
            def wrapper(*args, **kwargs) -> T:
                with self.transaction(suppress_commit=suppress_commit):
                    return func(*args, **kwargs)
            return wrapper
        return decorator


transaction_manager = TransactionManager()
