"""仓储抽象基类

定义树和节点的持久化接口，核心算法（结构构建、级联删除、排序）只依赖这些接口。
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Tree, TreeNode


class TreeRepository(ABC):
    """树仓储抽象基类"""

    @abstractmethod
    def find_by_id(self, tree_id: int) -> Optional[Tree]:
        """按ID查找树（包括已删除的树），不存在返回 None"""
        pass

    @abstractmethod
    def find_active(self) -> List[Tree]:
        """所有未删除的树，按名称排序"""
        pass

    @abstractmethod
    def find_deleted(self) -> List[Tree]:
        """所有已删除的树，按名称排序"""
        pass

    @abstractmethod
    def find_active_by_name(self, name: str) -> Optional[Tree]:
        """按名称查找未删除的树（不区分大小写）"""
        pass

    @abstractmethod
    def save(self, tree: Tree) -> Tree:
        """保存树（id 为空时新增，否则更新），刷新 updated_at

        Returns:
            已分配 id 的树
        """
        pass

    @abstractmethod
    def soft_delete(self, tree_id: int) -> Optional[Tree]:
        """软删除，树不存在返回 None"""
        pass

    @abstractmethod
    def restore(self, tree_id: int) -> Optional[Tree]:
        """恢复已删除的树，树不存在返回 None"""
        pass


class TreeNodeRepository(ABC):
    """节点仓储抽象基类

    列表查询统一按 sort_order 升序，sort_order 相同按 id 升序。
    """

    @abstractmethod
    def find_by_id(self, node_id: int) -> Optional[TreeNode]:
        """按ID查找节点，不存在返回 None"""
        pass

    @abstractmethod
    def find_by_tree_id(self, tree_id: int) -> List[TreeNode]:
        """树的所有节点（平铺列表）"""
        pass

    @abstractmethod
    def find_children(self, parent_id: int) -> List[TreeNode]:
        """直接子节点"""
        pass

    @abstractmethod
    def find_previous_sibling(self, node: TreeNode) -> Optional[TreeNode]:
        """sort_order 严格小于该节点的兄弟中 sort_order 最大的一个"""
        pass

    @abstractmethod
    def find_next_sibling(self, node: TreeNode) -> Optional[TreeNode]:
        """sort_order 严格大于该节点的兄弟中 sort_order 最小的一个"""
        pass

    @abstractmethod
    def max_sibling_sort_order(self, tree_id: int, parent_id: Optional[int]) -> Optional[int]:
        """同一父节点下最大的 sort_order，没有兄弟返回 None"""
        pass

    @abstractmethod
    def save(self, node: TreeNode) -> TreeNode:
        """保存节点

        Returns:
            已分配 id 的节点
        """
        pass

    @abstractmethod
    def delete(self, node_id: int) -> bool:
        """物理删除单个节点（不级联）

        Returns:
            是否删除了记录
        """
        pass
