"""
ORM基础模型

提供主键、时间戳、常用 CRUD 操作和序列化方法
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional, ClassVar, TYPE_CHECKING

from sqlalchemy import Integer, DateTime, inspect
from sqlalchemy.orm import Mapped, mapped_column, declared_attr, declarative_base, Session, Query

from ytree.log import get_logger

if TYPE_CHECKING:
    from typing_extensions import Self


# 声明基类
Base = declarative_base()

_logger = get_logger("ytree.orm.core_model")


def to_snake_case(name: str) -> str:
    """驼峰命名转下划线：TreeNode -> tree_node"""
    name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


class CoreModel(Base):
    """ORM基础模型类

    提供功能：
    - 自增主键 id
    - 自动表名生成（驼峰转下划线）
    - created_at / updated_at 时间戳（应用侧赋值，每次更新自动刷新）
    - 常用 CRUD 操作方法（save / delete / get）
    - 数据序列化方法（to_dict）

    使用示例:
        from ytree.orm import BaseModel, init_database

        init_database("sqlite:///./test.db")

        class Tree(BaseModel):
            name: Mapped[str] = mapped_column(String(255))

        tree = Tree(name="组织架构")
        tree.save(commit=True)

    单表继承的子类需要显式声明 ``__tablename__ = None``，否则会生成独立的表。
    """
    __abstract__ = True

    # query 属性在 init_database() 中通过 scoped_session.query_property() 设置
    if TYPE_CHECKING:
        query: ClassVar[Query[Self]]
    else:
        query = None

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """驼峰命名转下划线"""
        return to_snake_case(cls.__name__)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="主键")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        default=datetime.now,
        comment="创建时间"
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False),
        default=datetime.now,
        onupdate=datetime.now,
        nullable=True,
        comment="更新时间"
    )

    # 系统字段列表（构造时自动忽略这些字段）
    _system_fields: ClassVar[set] = {'id', 'created_at', 'updated_at'}

    def __init__(self, **kwargs):
        """初始化模型实例

        自动忽略系统字段（id, created_at, updated_at），这些字段由系统自动管理。
        """
        for field in self._system_fields:
            kwargs.pop(field, None)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.id}>"

    @property
    def session(self) -> Session:
        """获取当前 session

        优先从 query 属性获取 session（支持测试环境），否则从全局 scoped_session 获取
        """
        if self.__class__.query is not None:
            return self.__class__.query.session
        from .db_session import db_manager
        return db_manager.get_session()

    # ==================== CRUD 操作方法 ====================

    def save(self, commit: bool = False) -> Self:
        """保存对象（自动判断新增或更新）

        Args:
            commit: 是否立即提交，默认 False
                   - 无事务时：执行 session.commit()
                   - 有事务时：commit 被抑制，但会自动 flush 以获取自增主键

        Returns:
            self: 返回自身，支持链式调用
        """
        self.session.add(self)
        self._commit(commit)
        return self

    def delete(self, commit: bool = False):
        """删除对象（物理删除）"""
        self.session.delete(self)
        self._commit(commit)

    def touch(self) -> Self:
        """刷新更新时间"""
        self.updated_at = datetime.now()
        return self

    @classmethod
    def get(cls, id: int):
        """根据ID获取对象，不存在返回None"""
        if id is None:
            return None
        return cls.query.filter_by(id=id).first()

    # ==================== 序列化方法 ====================

    def to_dict(self, exclude: set = None) -> dict:
        """转换为字典

        Args:
            exclude: 需要排除的字段集合

        Returns:
            字典格式的对象数据
        """
        exclude = exclude or set()
        return {
            c.key: getattr(self, c.key)
            for c in inspect(self).mapper.column_attrs
            if c.key not in exclude
        }

    # ==================== 提交控制 ====================

    def _commit(self, commit: bool) -> None:
        """按需提交

        当在事务上下文中且启用了提交抑制时，commit=True 只会 flush。
        """
        if not commit:
            return
        if self._should_suppress_commit():
            self.session.flush()
            return
        self.session.commit()

    @staticmethod
    def _should_suppress_commit() -> bool:
        """检查是否应该抑制提交"""
        from .transaction import get_current_transaction
        tx = get_current_transaction()
        if tx is not None and tx.should_suppress_commit():
            _logger.debug("commit=True 被事务上下文抑制")
            return True
        return False


# 别名
BaseModel = CoreModel
