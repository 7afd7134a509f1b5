"""级联删除

节点没有外键约束，删除节点时由这里负责收集并删除整棵子树。
不处理事务，异常原样向上抛出。
"""

from typing import List

from .models import TreeNode
from .repository import TreeNodeRepository


def collect_descendants(node_repository: TreeNodeRepository, node_id: int) -> List[TreeNode]:
    """收集所有子孙节点

    先序、从左到右（仓储返回的子节点顺序）：每个子节点之后紧跟它自己的子孙。
    """
    descendants: List[TreeNode] = []
    for child in node_repository.find_children(node_id):
        descendants.append(child)
        descendants.extend(collect_descendants(node_repository, child.id))
    return descendants


def delete_subtree(node_repository: TreeNodeRepository, node_id: int) -> List[int]:
    """删除节点及其所有子孙

    Returns:
        已删除的节点ID，子孙在前，节点本身在最后
    """
    deleted_ids = [descendant.id for descendant in collect_descendants(node_repository, node_id)]
    for descendant_id in deleted_ids:
        node_repository.delete(descendant_id)

    node_repository.delete(node_id)
    deleted_ids.append(node_id)
    return deleted_ids
