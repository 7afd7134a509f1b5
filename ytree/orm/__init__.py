"""ORM 模块

提供模型基类、数据库会话管理、事务管理、排序 Mixin 和 DTO 基类。

使用示例:
    from ytree.orm import BaseModel, init_database, transaction_manager

    init_database("sqlite:///./ytree.db")

    with transaction_manager.transaction():
        tree = Tree(name="组织架构")
        tree.save(commit=True)
"""

from .core_model import Base, CoreModel, BaseModel, to_snake_case
from .db_session import (
    DatabaseManager,
    db_manager,
    init_database,
    on_request_end,
    create_all_tables,
)
from .transaction import (
    TransactionState,
    TransactionError,
    TransactionContext,
    TransactionManager,
    transaction_manager,
    get_current_transaction,
)
from .sortable import SortFieldMixin, SortableMixin
from .base_dto import DTO

__all__ = [
    "Base",
    "CoreModel",
    "BaseModel",
    "to_snake_case",
    "DatabaseManager",
    "db_manager",
    "init_database",
    "on_request_end",
    "create_all_tables",
    "TransactionState",
    "TransactionError",
    "TransactionContext",
    "TransactionManager",
    "transaction_manager",
    "get_current_transaction",
    "SortFieldMixin",
    "SortableMixin",
    "DTO",
]
