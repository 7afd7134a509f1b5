"""树管理应用服务

组合仓储和核心算法，负责业务规则校验和事务边界：每个写操作在一个事务中执行，
成功提交、异常回滚。HTTP 层只调用这里的方法。
"""

from typing import Any, Dict, List, Optional, Sequence, Union

from ytree.exceptions import (
    Err,
    ErrorCode,
    InvalidTreeOperationException,
    TreeNodeNotFoundException,
    TreeNotFoundException,
)
from ytree.log import get_logger
from ytree.orm import transaction_manager

from .builder import ForestNode, build_forest, ensure_roots
from .cascade import collect_descendants, delete_subtree
from .db_repository import DatabaseTreeNodeRepository, DatabaseTreeRepository
from .models import NodeType, Tree, TreeNode, create_node
from .repository import TreeNodeRepository, TreeRepository
from .schemas import NodeCreate
from .sorting import NodeSortService

logger = get_logger()


class TreeService:
    """树管理服务

    使用示例:
        service = TreeService()
        tree = service.create_tree("组织架构", "公司部门结构")
        root = service.add_node(tree.id, NodeCreate(name="总部"))
        service.add_node(tree.id, NodeCreate(name="研发部", parent_id=root.id))
    """

    def __init__(
        self,
        tree_repository: Optional[TreeRepository] = None,
        node_repository: Optional[TreeNodeRepository] = None,
    ):
        self.tree_repository = tree_repository or DatabaseTreeRepository()
        self.node_repository = node_repository or DatabaseTreeNodeRepository()
        self.sorter = NodeSortService(self.node_repository)

    # ==================== 查询 ====================

    def list_active_trees(self) -> List[Tree]:
        return self.tree_repository.find_active()

    def list_deleted_trees(self) -> List[Tree]:
        return self.tree_repository.find_deleted()

    def get_tree(self, tree_id: int, include_deleted: bool = False) -> Tree:
        """获取树

        Raises:
            TreeNotFoundException: 树不存在，或已删除且 include_deleted 为 False
        """
        tree = self.tree_repository.find_by_id(tree_id)
        if tree is None or (not include_deleted and not tree.is_active):
            raise TreeNotFoundException(tree_id)
        return tree

    def get_tree_nodes(self, tree_id: int) -> List[TreeNode]:
        """树的平铺节点列表"""
        self.get_tree(tree_id)
        return self.node_repository.find_by_tree_id(tree_id)

    def get_tree_structure(self, tree_id: int) -> Dict[str, Any]:
        """获取树及其森林结构

        Returns:
            {"tree": Tree, "nodes": 平铺节点, "forest": 根节点列表}

        Raises:
            MalformedHierarchyException: 有节点但没有根节点
        """
        tree = self.get_tree(tree_id)
        nodes = self.node_repository.find_by_tree_id(tree_id)
        forest = ensure_roots(nodes, build_forest(nodes), tree_id=tree_id)
        return {"tree": tree, "nodes": nodes, "forest": forest}

    def get_node(self, tree_id: int, node_id: int) -> TreeNode:
        """获取树中的节点，节点属于其他树时同样视为不存在"""
        node = self.node_repository.find_by_id(node_id)
        if node is None or node.tree_id != tree_id:
            raise TreeNodeNotFoundException(node_id, tree_id=tree_id)
        return node

    def preview_node_deletion(self, tree_id: int, node_id: int) -> Dict[str, Any]:
        """删除节点前的预览：节点本身和将被一并删除的子孙"""
        self.get_tree(tree_id)
        node = self.get_node(tree_id, node_id)
        return {
            "node": node,
            "descendants": collect_descendants(self.node_repository, node_id),
        }

    # ==================== 树 ====================

    def _ensure_name_available(self, name: str, exclude_id: Optional[int] = None) -> None:
        existing = self.tree_repository.find_active_by_name(name)
        if existing is not None and existing.id != exclude_id:
            raise Err.conflict(
                f"已存在同名的树: {name}",
                code=ErrorCode.TREE_NAME_EXISTS,
                tree_id=existing.id,
            )

    @transaction_manager.transactional()
    def create_tree(self, name: str, description: Optional[str] = None) -> Tree:
        """创建树

        Raises:
            ResourceConflictException: 已有同名（不区分大小写）的有效树
        """
        name = name.strip()
        self._ensure_name_available(name)
        tree = self.tree_repository.save(Tree(name=name, description=description or None))
        logger.info(f"创建树: id={tree.id}, name={name}")
        return tree

    @transaction_manager.transactional()
    def create_tree_with_nodes(
        self,
        name: str,
        description: Optional[str],
        nodes: Sequence[NodeCreate],
    ) -> Tree:
        """在一个事务中创建树和它的节点，任一节点失败则整体回滚"""
        tree = self.create_tree(name, description)
        for data in nodes:
            self.add_node(tree.id, data)
        return tree

    @transaction_manager.transactional()
    def delete_tree(self, tree_id: int) -> Tree:
        """软删除树

        Raises:
            InvalidTreeOperationException: 树已被删除
        """
        tree = self.get_tree(tree_id, include_deleted=True)
        if not tree.is_active:
            raise InvalidTreeOperationException(f"树已被删除: {tree_id}", tree_id=tree_id)
        tree = self.tree_repository.soft_delete(tree_id)
        logger.info(f"删除树: id={tree_id}")
        return tree

    @transaction_manager.transactional()
    def restore_tree(self, tree_id: int) -> Tree:
        """恢复已删除的树

        Raises:
            InvalidTreeOperationException: 树未被删除
            ResourceConflictException: 名称已被其他有效的树占用
        """
        tree = self.get_tree(tree_id, include_deleted=True)
        if tree.is_active:
            raise InvalidTreeOperationException(f"树未被删除，无需恢复: {tree_id}", tree_id=tree_id)
        self._ensure_name_available(tree.name, exclude_id=tree.id)
        tree = self.tree_repository.restore(tree_id)
        logger.info(f"恢复树: id={tree_id}")
        return tree

    # ==================== 节点 ====================

    def _check_parent(self, tree_id: int, parent_id: Optional[int]) -> None:
        if parent_id is None:
            return
        parent = self.node_repository.find_by_id(parent_id)
        if parent is None or parent.tree_id != tree_id:
            raise TreeNodeNotFoundException(parent_id, tree_id=tree_id, message=f"父节点不存在: {parent_id}")

    @transaction_manager.transactional()
    def add_node(self, tree_id: int, data: Union[NodeCreate, Dict[str, Any]]) -> TreeNode:
        """添加节点

        sort_order 为空时排在同一父节点下最后一个兄弟之后（没有兄弟时为 0）。

        Raises:
            TreeNotFoundException: 树不存在或已删除
            TreeNodeNotFoundException: 父节点不存在或属于其他树
        """
        if isinstance(data, dict):
            data = NodeCreate.model_validate(data)

        self.get_tree(tree_id)
        self._check_parent(tree_id, data.parent_id)

        fields = data.node_fields()
        if fields.get("sort_order") is None:
            max_order = self.node_repository.max_sibling_sort_order(tree_id, data.parent_id)
            fields["sort_order"] = 0 if max_order is None else max_order + 1

        node = self.node_repository.save(create_node(data.node_type, tree_id=tree_id, **fields))
        logger.info(f"添加节点: tree_id={tree_id}, node_id={node.id}, type={data.node_type.value}")
        return node

    @transaction_manager.transactional()
    def delete_node(self, tree_id: int, node_id: int) -> List[int]:
        """删除节点及其所有子孙

        Returns:
            已删除的节点ID（子孙在前，节点本身最后）
        """
        self.get_tree(tree_id)
        self.get_node(tree_id, node_id)
        deleted_ids = delete_subtree(self.node_repository, node_id)
        logger.info(f"删除节点: tree_id={tree_id}, node_id={node_id}, 共 {len(deleted_ids)} 个")
        return deleted_ids

    @transaction_manager.transactional()
    def move_node(self, tree_id: int, node_id: int, new_parent_id: Optional[int]) -> TreeNode:
        """移动节点到新的父节点下（None 表示移动为根节点），排在新兄弟的最后

        Raises:
            InvalidTreeOperationException: 移动到自身或自己的子孙之下
        """
        self.get_tree(tree_id)
        node = self.get_node(tree_id, node_id)

        if new_parent_id is not None:
            if new_parent_id == node_id:
                raise InvalidTreeOperationException("不能把节点移动到自身之下", node_id=node_id)
            self._check_parent(tree_id, new_parent_id)
            descendant_ids = {item.id for item in collect_descendants(self.node_repository, node_id)}
            if new_parent_id in descendant_ids:
                raise InvalidTreeOperationException(
                    "不能把节点移动到自己的子孙节点之下",
                    node_id=node_id,
                    parent_id=new_parent_id,
                )

        if node.parent_id == new_parent_id:
            return node

        max_order = self.node_repository.max_sibling_sort_order(tree_id, new_parent_id)
        node.parent_id = new_parent_id
        node.sort_order = 0 if max_order is None else max_order + 1
        node = self.node_repository.save(node)
        logger.info(f"移动节点: node_id={node_id}, parent_id={new_parent_id}")
        return node

    # ==================== 排序 ====================

    @transaction_manager.transactional()
    def sort_node_left(self, tree_id: int, node_id: int) -> bool:
        self.get_tree(tree_id)
        return self.sorter.sort_node_left(node_id, tree_id=tree_id)

    @transaction_manager.transactional()
    def sort_node_right(self, tree_id: int, node_id: int) -> bool:
        self.get_tree(tree_id)
        return self.sorter.sort_node_right(node_id, tree_id=tree_id)

    @transaction_manager.transactional()
    def update_node_sort_order(self, tree_id: int, node_id: int, sort_order: int) -> TreeNode:
        self.get_tree(tree_id)
        return self.sorter.update_node_sort_order(node_id, sort_order, tree_id=tree_id)

    @transaction_manager.transactional()
    def bulk_update_sort_orders(self, tree_id: int, updates: Sequence[Any]) -> List[TreeNode]:
        self.get_tree(tree_id)
        nodes = self.sorter.bulk_update_sort_orders(updates, tree_id=tree_id)
        logger.info(f"批量排序: tree_id={tree_id}, {len(nodes)} 个节点")
        return nodes


def demo_forest() -> List[ForestNode]:
    """静态示例树（不落库）：Main(按钮) → Sub-1, Sub-2 → Sub-2-1, Sub-2-2"""
    rows = [
        create_node(NodeType.BUTTON, name="Main", tree_id=0, parent_id=None,
                    button_text="Click me", button_action="alert('Main')"),
        create_node(NodeType.SIMPLE, name="Sub-1", tree_id=0, sort_order=0),
        create_node(NodeType.SIMPLE, name="Sub-2", tree_id=0, sort_order=1),
        create_node(NodeType.SIMPLE, name="Sub-2-1", tree_id=0, sort_order=0),
        create_node(NodeType.SIMPLE, name="Sub-2-2", tree_id=0, sort_order=1),
    ]
    parents = [None, 1, 1, 3, 3]
    for index, (row, parent_id) in enumerate(zip(rows, parents), start=1):
        row.id = index
        row.parent_id = parent_id
    return build_forest(rows)
