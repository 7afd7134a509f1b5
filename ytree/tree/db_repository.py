"""基于 SQLAlchemy 的仓储实现

通过模型的 query 属性访问当前 session（请求作用域或测试绑定的 scoped_session）。
"""

from typing import List, Optional

from sqlalchemy import func

from .models import Tree, TreeNode
from .repository import TreeRepository, TreeNodeRepository


class DatabaseTreeRepository(TreeRepository):
    """树仓储"""

    def find_by_id(self, tree_id: int) -> Optional[Tree]:
        return Tree.get(tree_id)

    def find_active(self) -> List[Tree]:
        return Tree.query.filter(Tree.is_active.is_(True)).order_by(Tree.name, Tree.id).all()

    def find_deleted(self) -> List[Tree]:
        return Tree.query.filter(Tree.is_active.is_(False)).order_by(Tree.name, Tree.id).all()

    def find_active_by_name(self, name: str) -> Optional[Tree]:
        return Tree.query.filter(
            Tree.is_active.is_(True),
            func.lower(Tree.name) == name.strip().lower(),
        ).first()

    def save(self, tree: Tree) -> Tree:
        if tree.id is not None:
            tree.touch()
        return tree.save(commit=True)

    def soft_delete(self, tree_id: int) -> Optional[Tree]:
        tree = self.find_by_id(tree_id)
        if tree is None:
            return None
        return tree.soft_delete().save(commit=True)

    def restore(self, tree_id: int) -> Optional[Tree]:
        tree = self.find_by_id(tree_id)
        if tree is None:
            return None
        return tree.restore().save(commit=True)


class DatabaseTreeNodeRepository(TreeNodeRepository):
    """节点仓储

    查询都在多态基类 TreeNode 上执行，返回的实例为具体子类型。
    """

    @staticmethod
    def _ordered(query):
        return query.order_by(TreeNode.sort_order, TreeNode.id)

    def find_by_id(self, node_id: int) -> Optional[TreeNode]:
        return TreeNode.get(node_id)

    def find_by_tree_id(self, tree_id: int) -> List[TreeNode]:
        return self._ordered(TreeNode.query.filter(TreeNode.tree_id == tree_id)).all()

    def find_children(self, parent_id: int) -> List[TreeNode]:
        return self._ordered(TreeNode.query.filter(TreeNode.parent_id == parent_id)).all()

    def find_previous_sibling(self, node: TreeNode) -> Optional[TreeNode]:
        return node.get_previous()

    def find_next_sibling(self, node: TreeNode) -> Optional[TreeNode]:
        return node.get_next()

    def max_sibling_sort_order(self, tree_id: int, parent_id: Optional[int]) -> Optional[int]:
        return TreeNode.get_max_sort_order({"tree_id": tree_id, "parent_id": parent_id})

    def save(self, node: TreeNode) -> TreeNode:
        return node.save(commit=True)

    def delete(self, node_id: int) -> bool:
        node = self.find_by_id(node_id)
        if node is None:
            return False
        node.delete(commit=True)
        return True
