"""树结构构建

把平铺的节点列表组装成以父子关系连接的森林。

- 只依赖节点的 id 和 parent_id 属性，不关心节点类型
- 不修改输入的节点对象，结果是不可变的 ForestNode 视图
- 子节点保持输入顺序（不按 sort_order 重新排序）
- 父节点不在输入中的节点被静默丢弃；父链成环的节点无法从根到达，同样不会出现在结果中

使用示例:
    nodes = node_repository.find_by_tree_id(tree_id)
    forest = build_forest(nodes)
    for node, depth in iter_forest(forest):
        print("  " * depth + node.name)
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Sequence, Tuple

from ytree.exceptions import MalformedHierarchyException


@dataclass(frozen=True)
class ForestNode:
    """森林中的一个节点：原始节点对象 + 有序子节点"""

    node: Any
    children: Tuple["ForestNode", ...] = ()

    @property
    def id(self):
        return self.node.id

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0


def build_forest(nodes: Sequence[Any]) -> List[ForestNode]:
    """由平铺节点构建森林

    Args:
        nodes: 节点序列，每个节点需要 id 和 parent_id 属性（parent_id 为 None 表示根）

    Returns:
        根节点列表（按输入顺序）
    """
    position_by_id: Dict[Any, int] = {node.id: index for index, node in enumerate(nodes)}
    child_positions: Dict[int, List[int]] = {}
    root_positions: List[int] = []

    for index, node in enumerate(nodes):
        if node.parent_id is None:
            root_positions.append(index)
            continue
        parent_position = position_by_id.get(node.parent_id)
        if parent_position is None:
            # 悬空的父引用
            continue
        child_positions.setdefault(parent_position, []).append(index)

    def materialize(position: int) -> ForestNode:
        children = tuple(materialize(child) for child in child_positions.get(position, ()))
        return ForestNode(node=nodes[position], children=children)

    return [materialize(position) for position in root_positions]


def iter_forest(forest: Sequence[ForestNode], depth: int = 0) -> Iterator[Tuple[Any, int]]:
    """先序遍历森林，产出 (节点, 深度)，根节点深度为 0"""
    for item in forest:
        yield item.node, depth
        yield from iter_forest(item.children, depth + 1)


def count_nodes(forest: Sequence[ForestNode]) -> int:
    """森林中可到达的节点总数"""
    return sum(1 + count_nodes(item.children) for item in forest)


def max_depth(forest: Sequence[ForestNode]) -> int:
    """最长的根到叶子路径的边数；单个根节点或空森林为 0"""
    if not forest:
        return 0
    return max(_depth_of(item) for item in forest)


def _depth_of(item: ForestNode) -> int:
    if not item.children:
        return 0
    return 1 + max(_depth_of(child) for child in item.children)


def ensure_roots(nodes: Sequence[Any], forest: Sequence[ForestNode], tree_id: Any = None) -> List[ForestNode]:
    """校验森林至少有一个根

    Raises:
        MalformedHierarchyException: 输入节点非空但没有构建出任何根
    """
    if nodes and not forest:
        raise MalformedHierarchyException(tree_id=tree_id, node_count=len(nodes))
    return list(forest)
