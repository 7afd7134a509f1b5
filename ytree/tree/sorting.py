"""兄弟节点排序

兄弟节点：tree_id 相同且 parent_id 相同（None 也算一个值）的节点。
左移/右移与相邻兄弟交换 sort_order；显式赋值不做冲突检测，sort_order 相同的节点按 id 排列。
不处理事务，由调用方决定提交边界。
"""

from typing import Iterable, List, Mapping, Optional, Union

from ytree.exceptions import Err, TreeNodeNotFoundException
from ytree.log import get_logger

from .models import TreeNode
from .repository import TreeNodeRepository

logger = get_logger()


class NodeSortService:
    """兄弟节点排序服务

    相邻兄弟按 sort_order 严格小于或大于查找，sort_order 相同的兄弟不互为相邻，左移右移对它们不生效。

    使用示例:
        sorter = NodeSortService(DatabaseTreeNodeRepository())
        if not sorter.sort_node_left(node_id):
            print("已经是第一个")
    """

    def __init__(self, node_repository: TreeNodeRepository):
        self.node_repository = node_repository

    def _get_node(self, node_id: int, tree_id: Optional[int] = None) -> TreeNode:
        node = self.node_repository.find_by_id(node_id)
        if node is None or (tree_id is not None and node.tree_id != tree_id):
            raise TreeNodeNotFoundException(node_id, tree_id=tree_id)
        return node

    def _swap(self, node: TreeNode, other: TreeNode) -> None:
        node.swap_with(other)
        self.node_repository.save(node)
        self.node_repository.save(other)

    def sort_node_left(self, node_id: int, tree_id: Optional[int] = None) -> bool:
        """与前一个兄弟交换位置

        Returns:
            是否发生了交换（已经是第一个时返回 False）
        """
        node = self._get_node(node_id, tree_id)
        previous = self.node_repository.find_previous_sibling(node)
        if previous is None:
            return False
        self._swap(node, previous)
        return True

    def sort_node_right(self, node_id: int, tree_id: Optional[int] = None) -> bool:
        """与后一个兄弟交换位置

        Returns:
            是否发生了交换（已经是最后一个时返回 False）
        """
        node = self._get_node(node_id, tree_id)
        following = self.node_repository.find_next_sibling(node)
        if following is None:
            return False
        self._swap(node, following)
        return True

    def update_node_sort_order(self, node_id: int, sort_order: int, tree_id: Optional[int] = None) -> TreeNode:
        """直接设置一个节点的 sort_order，不调整其他兄弟"""
        if sort_order is None or sort_order < 0:
            raise Err.invalid(
                "排序值无效",
                details=[f"sort_order 不能为负数: {sort_order}"],
            )
        node = self._get_node(node_id, tree_id)
        node.sort_order = sort_order
        return self.node_repository.save(node)

    def bulk_update_sort_orders(
        self,
        updates: Iterable[Union[Mapping, object]],
        tree_id: Optional[int] = None,
    ) -> List[TreeNode]:
        """批量设置 sort_order

        先校验全部条目（sort_order 非负、节点存在、属于 tree_id），任何一条失败都不写入。

        Args:
            updates: 条目序列，每个条目为 {"node_id", "sort_order"} 字典或带同名属性的对象
            tree_id: 限定节点所属的树
        """
        entries = [self._read_entry(item) for item in updates]
        if not entries:
            raise Err.invalid("批量排序失败", details=["updates 不能为空"])

        errors = [
            f"sort_order 不能为负数: 节点 {node_id} -> {sort_order}"
            for node_id, sort_order in entries
            if sort_order is None or sort_order < 0
        ]
        if errors:
            raise Err.invalid("批量排序失败", details=errors)

        nodes = [(self._get_node(node_id, tree_id), sort_order) for node_id, sort_order in entries]

        updated = []
        for node, sort_order in nodes:
            node.sort_order = sort_order
            updated.append(self.node_repository.save(node))

        logger.debug(f"批量更新排序: {len(updated)} 个节点")
        return updated

    @staticmethod
    def _read_entry(item) -> tuple:
        if isinstance(item, Mapping):
            node_id = item.get("node_id", item.get("nodeId"))
            sort_order = item.get("sort_order", item.get("sortOrder"))
        else:
            node_id = getattr(item, "node_id")
            sort_order = getattr(item, "sort_order")
        return node_id, sort_order
