"""
树管理 - 请求与响应 Schema

请求模型负责输入校验（校验失败由全局处理器转换为 422），响应模型继承 DTO。
"""

import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ytree.orm import DTO
from .builder import ForestNode
from .models import NodeType

_HTML_TAG_PATTERN = re.compile(r"<[^>]+>")

# 按钮动作中禁止出现的脚本片段（小写、去空白后匹配）
UNSAFE_ACTION_PATTERNS = (
    "javascript:",
    "eval(",
    "document.write(",
    "innerhtml=",
    "outerhtml=",
)


def check_button_action(value: Optional[str]) -> Optional[str]:
    """校验按钮动作，包含脚本片段时抛出 ValueError"""
    if not value:
        return value
    compact = re.sub(r"\s+", "", value).lower()
    for pattern in UNSAFE_ACTION_PATTERNS:
        if pattern in compact:
            raise ValueError(f"按钮动作包含不允许的内容: {pattern}")
    return value


# ==================== 请求 Schema ====================

class TreeCreate(BaseModel):
    """创建树请求"""
    name: str = Field(..., min_length=1, max_length=255, description="树名称")
    description: Optional[str] = Field(None, max_length=1000, description="描述")

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "name": "组织架构",
                "description": "公司部门结构"
            }
        },
    )

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if _HTML_TAG_PATTERN.search(value):
            raise ValueError("描述不能包含 HTML 标签")
        return value


class NodeCreate(BaseModel):
    """添加节点请求"""
    name: str = Field(..., min_length=1, max_length=255, description="节点名称")
    node_type: NodeType = Field(NodeType.SIMPLE, description="节点类型")
    parent_id: Optional[int] = Field(None, gt=0, description="父节点ID，为空表示根节点")
    sort_order: Optional[int] = Field(None, ge=0, description="排序序号，为空时排在最后")
    button_text: Optional[str] = Field(None, max_length=100, description="按钮文字（按钮节点必填）")
    button_action: Optional[str] = Field(None, max_length=255, description="按钮动作")

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "name": "提交",
                "node_type": "ButtonNode",
                "parent_id": 1,
                "button_text": "提交",
                "button_action": "alert('ok')"
            }
        },
    )

    @field_validator("button_action")
    @classmethod
    def validate_button_action(cls, value: Optional[str]) -> Optional[str]:
        return check_button_action(value)

    @model_validator(mode="after")
    def validate_button_fields(self):
        if self.node_type == NodeType.BUTTON and not self.button_text:
            raise ValueError("按钮节点必须提供 button_text")
        return self

    def node_fields(self) -> Dict[str, Any]:
        """写入节点的字段（不含 tree_id）"""
        fields = {
            "name": self.name,
            "parent_id": self.parent_id,
            "sort_order": self.sort_order,
        }
        if self.node_type == NodeType.BUTTON:
            fields["button_text"] = self.button_text
            fields["button_action"] = self.button_action or ""
        return fields


class NodeMoveRequest(BaseModel):
    """移动节点请求"""
    parent_id: Optional[int] = Field(None, gt=0, description="新的父节点ID，为空表示移动为根节点")

    model_config = ConfigDict(populate_by_name=True)


class NodeSortRequest(BaseModel):
    """单节点排序请求：direction 与 sortOrder 二选一"""
    direction: Optional[Literal["left", "right"]] = Field(None, description="移动方向")
    sort_order: Optional[int] = Field(None, ge=0, alias="sortOrder", description="新的排序序号")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def validate_exactly_one(self):
        if (self.direction is None) == (self.sort_order is None):
            raise ValueError("direction 和 sortOrder 必须且只能提供一个")
        return self


class BulkSortItem(BaseModel):
    """批量排序条目"""
    node_id: int = Field(..., gt=0, alias="nodeId", description="节点ID")
    sort_order: int = Field(..., ge=0, alias="sortOrder", description="排序序号")

    model_config = ConfigDict(populate_by_name=True)


class BulkSortRequest(BaseModel):
    """批量排序请求"""
    updates: List[BulkSortItem] = Field(..., min_length=1, description="排序条目")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "updates": [
                    {"nodeId": 2, "sortOrder": 0},
                    {"nodeId": 3, "sortOrder": 1}
                ]
            }
        }
    )


# ==================== 响应 Schema ====================

class TreeResponse(DTO):
    """树响应"""
    id: int = Field(..., description="树ID")
    name: str = Field(..., description="树名称")
    description: Optional[str] = Field(None, description="描述")
    is_active: bool = Field(True, description="是否有效")
    created_at: Optional[str] = Field(None, description="创建时间")
    updated_at: Optional[str] = Field(None, description="更新时间")


class NodeResponse(DTO):
    """节点响应"""
    id: int = Field(..., description="节点ID")
    name: str = Field(..., description="节点名称")
    node_type: str = Field(..., description="节点类型")
    tree_id: int = Field(..., description="所属树")
    parent_id: Optional[int] = Field(None, description="父节点ID")
    sort_order: int = Field(0, description="排序序号")
    type_data: Dict[str, Any] = Field(default_factory=dict, description="类型附加数据")

    _value_processors = {
        "type_data": lambda v: v() if callable(v) else (v or {}),
    }


class TreeStructureNode(DTO):
    """树结构中的节点（递归）"""
    id: int = Field(..., description="节点ID")
    name: str = Field(..., description="节点名称")
    type: str = Field(..., description="节点类型")
    tree_id: int = Field(..., description="所属树")
    parent_id: Optional[int] = Field(None, description="父节点ID")
    sort_order: int = Field(0, description="排序序号")
    has_children: bool = Field(False, description="是否有子节点")
    children_count: int = Field(0, description="子节点数量")
    type_data: Dict[str, Any] = Field(default_factory=dict, description="类型附加数据")
    button: Optional[Dict[str, str]] = Field(None, description="按钮（仅按钮节点）")
    children: List["TreeStructureNode"] = Field(default_factory=list, description="子节点")

    @classmethod
    def from_forest(cls, item: ForestNode) -> "TreeStructureNode":
        node = item.node
        type_data = node.type_data()
        button = None
        if node.node_type == NodeType.BUTTON.value:
            button = {
                "text": type_data.get("button_text") or "",
                "action": type_data.get("button_action") or "",
            }
        return cls(
            id=node.id,
            name=node.name,
            type=node.node_type,
            tree_id=node.tree_id,
            parent_id=node.parent_id,
            sort_order=node.sort_order or 0,
            has_children=item.has_children,
            children_count=len(item.children),
            type_data=type_data,
            button=button,
            children=[cls.from_forest(child) for child in item.children],
        )


TreeStructureNode.model_rebuild()


__all__ = [
    "UNSAFE_ACTION_PATTERNS",
    "check_button_action",
    "TreeCreate",
    "NodeCreate",
    "NodeMoveRequest",
    "NodeSortRequest",
    "BulkSortItem",
    "BulkSortRequest",
    "TreeResponse",
    "NodeResponse",
    "TreeStructureNode",
]
