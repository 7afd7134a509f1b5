"""级联删除测试"""

import pytest
from sqlalchemy.orm import scoped_session, sessionmaker

from ytree.orm import Base, CoreModel
from ytree.tree import (
    DatabaseTreeNodeRepository,
    Tree,
    TreeNode,
    collect_descendants,
    create_node,
    delete_subtree,
)


class TestCascadeDelete:
    """子孙收集与子树删除"""

    @pytest.fixture(autouse=True)
    def setup_db(self, memory_engine):
        """初始化数据库"""
        Base.metadata.create_all(bind=memory_engine)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
        self.session_scope = scoped_session(SessionLocal)
        CoreModel.query = self.session_scope.query_property()
        self.repository = DatabaseTreeNodeRepository()
        self.tree = Tree(name="级联").save(commit=True)
        yield
        self.session_scope.remove()

    def add(self, name, parent=None, sort_order=0):
        return create_node(
            name=name,
            tree_id=self.tree.id,
            parent_id=parent.id if parent else None,
            sort_order=sort_order,
        ).save(commit=True)

    def test_collect_descendants_pre_order(self):
        """先序：每个子节点后紧跟它的子孙"""
        root = self.add("root")
        a = self.add("a", root, 0)
        b = self.add("b", root, 1)
        a1 = self.add("a1", a)
        b1 = self.add("b1", b)

        result = collect_descendants(self.repository, root.id)

        assert [node.id for node in result] == [a.id, a1.id, b.id, b1.id]

    def test_collect_descendants_of_leaf(self):
        leaf = self.add("leaf")

        assert collect_descendants(self.repository, leaf.id) == []

    def test_delete_subtree_keeps_siblings_and_ancestors(self):
        """删除 2 → {2, 3}，1 和 4 保留"""
        root = self.add("1")
        child = self.add("2", root, 0)
        grandchild = self.add("3", child)
        sibling = self.add("4", root, 1)
        child_id, grandchild_id = child.id, grandchild.id

        deleted = delete_subtree(self.repository, child_id)
        self.session_scope().commit()

        assert deleted == [grandchild_id, child_id]
        assert TreeNode.get(child_id) is None
        assert TreeNode.get(grandchild_id) is None
        assert TreeNode.get(root.id) is not None
        assert TreeNode.get(sibling.id) is not None

    def test_delete_subtree_deep_chain(self):
        nodes = [self.add("n0")]
        for i in range(1, 6):
            nodes.append(self.add(f"n{i}", nodes[-1]))
        node_ids = [node.id for node in nodes]

        deleted = delete_subtree(self.repository, node_ids[0])

        assert sorted(deleted) == sorted(node_ids)
        assert deleted[-1] == node_ids[0]
        assert TreeNode.query.count() == 0

    def test_delete_missing_node(self):
        """不存在的节点：只返回自身 ID，不影响其他数据"""
        other = self.add("other")

        assert delete_subtree(self.repository, 9999) == [9999]
        assert TreeNode.get(other.id) is not None
