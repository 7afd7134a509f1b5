"""树管理领域模型

- Tree: 树（支持软删除）
- TreeNode: 节点基类（单表继承，按 node_type 区分子类型）
- SimpleNode / ButtonNode: 节点子类型

节点类型集合是封闭的，新增类型需要同时扩展 NodeType 和 create_node。
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ytree.exceptions import ValidationException
from ytree.orm import BaseModel, SortFieldMixin, SortableMixin


class NodeType(str, Enum):
    """节点类型（封闭集合）"""

    SIMPLE = "SimpleNode"
    BUTTON = "ButtonNode"

    @classmethod
    def values(cls) -> list:
        return [item.value for item in cls]


class Tree(BaseModel):
    """树

    名称只在未删除的树之间唯一（不区分大小写），由服务层校验。
    树不会被物理删除，删除只把 is_active 置为 False。
    """

    name: Mapped[str] = mapped_column(String(255), nullable=False, comment="树名称")
    description: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True, comment="描述")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True, comment="是否有效")

    def __init__(self, **kwargs):
        kwargs.setdefault("is_active", True)
        super().__init__(**kwargs)

    @property
    def is_deleted(self) -> bool:
        return not self.is_active

    def soft_delete(self) -> "Tree":
        self.is_active = False
        self.updated_at = datetime.now()
        return self

    def restore(self) -> "Tree":
        self.is_active = True
        self.updated_at = datetime.now()
        return self


class TreeNode(BaseModel, SortFieldMixin, SortableMixin):
    """树节点基类

    parent_id 为空表示根节点。parent_id 不设外键，子孙节点可以按任意顺序物理删除；
    父节点必须属于同一棵树，由服务层在写入前校验。

    同一棵树、同一父节点下的节点互为兄弟，按 sort_order 升序排列。
    """

    __sort_group_by__ = ["tree_id", "parent_id"]

    tree_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tree.id"), nullable=False, index=True, comment="所属树"
    )
    parent_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True, comment="父节点")
    name: Mapped[str] = mapped_column(String(255), nullable=False, comment="节点名称")
    node_type: Mapped[str] = mapped_column(String(50), nullable=False, comment="节点类型")

    __mapper_args__ = {
        "polymorphic_on": "node_type",
        "polymorphic_abstract": True,
    }

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def type_data(self) -> Dict[str, Any]:
        """子类型的附加字段"""
        return {}

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.id} name={self.name!r} parent_id={self.parent_id}>"


class SimpleNode(TreeNode):
    """普通节点，没有附加字段"""

    __tablename__ = None
    __mapper_args__ = {"polymorphic_identity": NodeType.SIMPLE.value}


class ButtonNode(TreeNode):
    """按钮节点

    button_text 默认 "Test Btn"，button_action 默认空字符串。
    """

    __tablename__ = None
    __mapper_args__ = {"polymorphic_identity": NodeType.BUTTON.value}

    DEFAULT_BUTTON_TEXT = "Test Btn"

    # 单表继承，其他类型的行这两列为空
    button_text: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True, default=DEFAULT_BUTTON_TEXT, comment="按钮文字"
    )
    button_action: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, default="", comment="按钮动作"
    )

    def __init__(self, **kwargs):
        if not kwargs.get("button_text"):
            kwargs["button_text"] = self.DEFAULT_BUTTON_TEXT
        if kwargs.get("button_action") is None:
            kwargs["button_action"] = ""
        super().__init__(**kwargs)

    def type_data(self) -> Dict[str, Any]:
        return {
            "button_text": self.button_text,
            "button_action": self.button_action,
        }


_NODE_CLASSES = {
    NodeType.SIMPLE: SimpleNode,
    NodeType.BUTTON: ButtonNode,
}


def node_class_for(node_type: Union[NodeType, str]):
    """根据节点类型获取模型类

    Raises:
        ValidationException: 不支持的节点类型
    """
    try:
        return _NODE_CLASSES[NodeType(node_type)]
    except ValueError:
        raise ValidationException(
            f"不支持的节点类型: {node_type}",
            details=[f"node_type 必须是以下之一: {', '.join(NodeType.values())}"],
        )


def create_node(node_type: Union[NodeType, str] = NodeType.SIMPLE, **fields) -> TreeNode:
    """节点工厂

    使用示例:
        node = create_node(NodeType.BUTTON, name="提交", tree_id=1, button_text="OK")

    SimpleNode 会忽略按钮字段。
    """
    cls = node_class_for(node_type)
    if cls is SimpleNode:
        fields.pop("button_text", None)
        fields.pop("button_action", None)
    if fields.get("sort_order") is None:
        fields["sort_order"] = 0
    return cls(**fields)
