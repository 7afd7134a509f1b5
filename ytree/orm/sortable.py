"""排序管理 Mixin

提供标准的排序字段定义和同组记录之间的排序操作。

使用示例:
    from ytree.orm import BaseModel, SortFieldMixin, SortableMixin

    class TreeNode(BaseModel, SortFieldMixin, SortableMixin):
        __sort_group_by__ = ["tree_id", "parent_id"]  # 同一父节点下排序

    node = TreeNode.get(1)
    previous = node.get_previous()
    if previous is not None:
        node.swap_with(previous)
"""

from typing import List, Optional, Union

from sqlalchemy import Integer, func, inspect
from sqlalchemy.orm import Mapped, mapped_column


class SortFieldMixin:
    """排序字段 Mixin

    字段说明:
        - sort_order: 排序序号，默认为0，值越小越靠前
    """

    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        index=True,
        comment="排序序号"
    )


class SortableMixin:
    """排序管理 Mixin

    可配置属性（子类可覆盖）:
        - __sort_field__: 排序字段名，默认 "sort_order"
        - __sort_group_by__: 分组字段，默认 None（不分组）
            - 字符串: 单字段分组
            - 列表: 多字段分组，如 ["tree_id", "parent_id"]
            分组值为 None 时按 IS NULL 匹配。

    多态模型的同组查询始终在继承体系的基类上执行，不同子类型的记录互为同组。
    """

    __sort_field__: str = "sort_order"
    __sort_group_by__: Union[str, List[str], None] = None

    # ==================== 内部方法 ====================

    @classmethod
    def _sort_base_class(cls):
        """继承体系的基类（单表继承时子类的 query 会按类型过滤）"""
        return inspect(cls).base_mapper.class_

    @classmethod
    def _get_sort_field_column(cls):
        field_name = getattr(cls, '__sort_field__', 'sort_order')
        return getattr(cls._sort_base_class(), field_name)

    def _get_sort_value(self) -> int:
        field_name = getattr(self.__class__, '__sort_field__', 'sort_order')
        return getattr(self, field_name, 0) or 0

    def _set_sort_value(self, value: int) -> None:
        field_name = getattr(self.__class__, '__sort_field__', 'sort_order')
        setattr(self, field_name, value)

    @classmethod
    def _get_group_fields(cls) -> List[str]:
        group_by = getattr(cls, '__sort_group_by__', None)
        if not group_by:
            return []
        if isinstance(group_by, str):
            return [group_by]
        return list(group_by)

    def _get_group_filters(self) -> dict:
        """获取分组过滤条件（基于当前实例的值）"""
        return {field: getattr(self, field) for field in self._get_group_fields()}

    @classmethod
    def _build_group_query(cls, query, group_filters: dict):
        """为查询添加分组过滤条件"""
        base = cls._sort_base_class()
        for field, value in group_filters.items():
            column = getattr(base, field)
            if value is None:
                query = query.filter(column.is_(None))
            else:
                query = query.filter(column == value)
        return query

    def _get_siblings_query(self, include_self: bool = False):
        """获取同组记录的查询"""
        base = self._sort_base_class()
        query = self._build_group_query(base.query, self._get_group_filters())
        if not include_self and self.id is not None:
            query = query.filter(base.id != self.id)
        return query

    # ==================== 实例方法 ====================

    def get_previous(self) -> Optional["SortableMixin"]:
        """获取前一个对象（排序值严格更小的最近记录），没有返回 None"""
        column = self._get_sort_field_column()
        base = self._sort_base_class()
        return self._get_siblings_query().filter(
            column < self._get_sort_value()
        ).order_by(column.desc(), base.id.desc()).first()

    def get_next(self) -> Optional["SortableMixin"]:
        """获取后一个对象（排序值严格更大的最近记录），没有返回 None"""
        column = self._get_sort_field_column()
        base = self._sort_base_class()
        return self._get_siblings_query().filter(
            column > self._get_sort_value()
        ).order_by(column, base.id).first()

    def swap_with(self, other: "SortableMixin") -> None:
        """与另一个对象交换排序值"""
        if other is None:
            return

        my_order = self._get_sort_value()
        other_order = other._get_sort_value()

        self._set_sort_value(other_order)
        other._set_sort_value(my_order)

    # ==================== 类方法 ====================

    @classmethod
    def get_max_sort_order(cls, group_filters: dict = None) -> Optional[int]:
        """获取最大排序号

        Args:
            group_filters: 分组过滤条件，None 表示不过滤

        Returns:
            最大排序号，同组无记录返回 None
        """
        base = cls._sort_base_class()
        query = cls._build_group_query(base.query, group_filters or {})
        return query.with_entities(func.max(cls._get_sort_field_column())).scalar()


__all__ = [
    "SortFieldMixin",
    "SortableMixin",
]
