"""树管理模块

- models: Tree / TreeNode（SimpleNode, ButtonNode 单表多态）
- builder: 平铺节点构建为森林
- cascade: 子孙收集与级联删除
- sorting: 兄弟节点排序
- services: TreeService 应用服务
- renderer: HTML 渲染
- api: JSON 与 HTML 路由

使用示例:
    from ytree.tree import TreeService, NodeCreate

    service = TreeService()
    tree = service.create_tree("组织架构")
    service.add_node(tree.id, NodeCreate(name="总部"))
"""

from .models import (
    NodeType,
    Tree,
    TreeNode,
    SimpleNode,
    ButtonNode,
    node_class_for,
    create_node,
)
from .builder import (
    ForestNode,
    build_forest,
    iter_forest,
    count_nodes,
    max_depth,
    ensure_roots,
)
from .cascade import collect_descendants, delete_subtree
from .repository import TreeRepository, TreeNodeRepository
from .db_repository import DatabaseTreeRepository, DatabaseTreeNodeRepository
from .sorting import NodeSortService
from .schemas import (
    TreeCreate,
    NodeCreate,
    NodeMoveRequest,
    NodeSortRequest,
    BulkSortItem,
    BulkSortRequest,
    TreeResponse,
    NodeResponse,
    TreeStructureNode,
)
from .renderer import HtmlTreeRenderer
from .services import TreeService, demo_forest

__all__ = [
    "NodeType",
    "Tree",
    "TreeNode",
    "SimpleNode",
    "ButtonNode",
    "node_class_for",
    "create_node",
    "ForestNode",
    "build_forest",
    "iter_forest",
    "count_nodes",
    "max_depth",
    "ensure_roots",
    "collect_descendants",
    "delete_subtree",
    "TreeRepository",
    "TreeNodeRepository",
    "DatabaseTreeRepository",
    "DatabaseTreeNodeRepository",
    "NodeSortService",
    "TreeCreate",
    "NodeCreate",
    "NodeMoveRequest",
    "NodeSortRequest",
    "BulkSortItem",
    "BulkSortRequest",
    "TreeResponse",
    "NodeResponse",
    "TreeStructureNode",
    "HtmlTreeRenderer",
    "TreeService",
    "demo_forest",
]
