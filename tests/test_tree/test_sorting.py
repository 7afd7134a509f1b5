"""兄弟节点排序测试"""

import pytest
from sqlalchemy.orm import scoped_session, sessionmaker

from ytree.exceptions import TreeNodeNotFoundException, ValidationException
from ytree.orm import Base, CoreModel
from ytree.tree import (
    DatabaseTreeNodeRepository,
    NodeSortService,
    NodeType,
    Tree,
    TreeNode,
    create_node,
)


class TestNodeSortService:
    """左移、右移、直接赋值和批量排序"""

    @pytest.fixture(autouse=True)
    def setup_db(self, memory_engine):
        """初始化数据库"""
        Base.metadata.create_all(bind=memory_engine)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
        self.session_scope = scoped_session(SessionLocal)
        CoreModel.query = self.session_scope.query_property()
        self.sorter = NodeSortService(DatabaseTreeNodeRepository())
        self.tree = Tree(name="排序").save(commit=True)
        yield
        self.session_scope.remove()

    def add(self, name, sort_order, parent_id=None, node_type=NodeType.SIMPLE, tree_id=None):
        return create_node(
            node_type,
            name=name,
            tree_id=tree_id or self.tree.id,
            parent_id=parent_id,
            sort_order=sort_order,
            button_text="Go",
        ).save(commit=True)

    def order(self, parent_id=None):
        nodes = TreeNode.query.filter_by(tree_id=self.tree.id, parent_id=parent_id).order_by(
            TreeNode.sort_order, TreeNode.id
        ).all()
        return [(node.name, node.sort_order) for node in nodes]

    def test_sort_left_first_sibling_is_noop(self):
        a = self.add("A", 0)
        self.add("B", 1)
        self.add("C", 2)

        assert self.sorter.sort_node_left(a.id) is False
        assert self.order() == [("A", 0), ("B", 1), ("C", 2)]

    def test_sort_left_swaps_with_previous(self):
        self.add("A", 0)
        self.add("B", 1)
        c = self.add("C", 2)

        assert self.sorter.sort_node_left(c.id) is True
        self.session_scope().commit()

        assert self.order() == [("A", 0), ("C", 1), ("B", 2)]

    def test_sort_right_last_sibling_is_noop(self):
        self.add("A", 0)
        c = self.add("C", 1)

        assert self.sorter.sort_node_right(c.id) is False
        assert self.order() == [("A", 0), ("C", 1)]

    def test_sort_right_swaps_with_next(self):
        a = self.add("A", 0)
        self.add("B", 1)

        assert self.sorter.sort_node_right(a.id) is True
        self.session_scope().commit()

        assert self.order() == [("B", 0), ("A", 1)]

    def test_siblings_span_node_types(self):
        """不同类型的节点互为兄弟"""
        self.add("Simple", 0)
        button = self.add("Button", 1, node_type=NodeType.BUTTON)

        assert self.sorter.sort_node_left(button.id) is True
        self.session_scope().commit()

        assert self.order() == [("Button", 0), ("Simple", 1)]

    def test_swap_stays_within_parent(self):
        root = self.add("root", 0)
        self.add("other-root", 1)
        child = self.add("child", 0, parent_id=root.id)

        assert self.sorter.sort_node_right(child.id) is False
        assert self.sorter.sort_node_left(child.id) is False

    def test_missing_node_raises(self):
        with pytest.raises(TreeNodeNotFoundException):
            self.sorter.sort_node_left(404)

    def test_node_in_other_tree_raises(self):
        other = Tree(name="其他").save(commit=True)
        node = self.add("X", 0, tree_id=other.id)

        with pytest.raises(TreeNodeNotFoundException):
            self.sorter.sort_node_right(node.id, tree_id=self.tree.id)

    def test_update_sort_order_allows_duplicates(self):
        """直接赋值不检测冲突，相同 sort_order 按 id 排列"""
        self.add("A", 0)
        b = self.add("B", 1)

        self.sorter.update_node_sort_order(b.id, 0)
        self.session_scope().commit()

        assert self.order() == [("A", 0), ("B", 0)]

    def test_equal_sort_order_siblings_do_not_swap(self):
        """sort_order 相同的兄弟不互为相邻，左移右移都不生效"""
        a = self.add("A", 1)
        b = self.add("B", 1)

        assert self.sorter.sort_node_left(b.id) is False
        assert self.sorter.sort_node_right(a.id) is False
        assert self.order() == [("A", 1), ("B", 1)]

    def test_update_sort_order_rejects_negative(self):
        a = self.add("A", 0)

        with pytest.raises(ValidationException):
            self.sorter.update_node_sort_order(a.id, -1)

    def test_bulk_update(self):
        a = self.add("A", 0)
        b = self.add("B", 1)
        c = self.add("C", 2)

        updated = self.sorter.bulk_update_sort_orders([
            {"node_id": c.id, "sort_order": 0},
            {"nodeId": a.id, "sortOrder": 1},
            {"node_id": b.id, "sort_order": 2},
        ])
        self.session_scope().commit()

        assert len(updated) == 3
        assert self.order() == [("C", 0), ("A", 1), ("B", 2)]

    def test_bulk_update_is_all_or_nothing(self):
        """任一条目无效时不写入任何节点"""
        a = self.add("A", 0)
        b = self.add("B", 1)

        with pytest.raises(TreeNodeNotFoundException):
            self.sorter.bulk_update_sort_orders([
                {"node_id": a.id, "sort_order": 5},
                {"node_id": 9999, "sort_order": 0},
            ])
        with pytest.raises(ValidationException) as exc_info:
            self.sorter.bulk_update_sort_orders([
                {"node_id": a.id, "sort_order": 5},
                {"node_id": b.id, "sort_order": -3},
            ])

        assert len(exc_info.value.details) == 1
        self.session_scope().rollback()
        assert self.order() == [("A", 0), ("B", 1)]

    def test_bulk_update_rejects_node_from_other_tree(self):
        """条目中有其他树的节点时整体失败，同批有效条目也不写入"""
        other = Tree(name="其他").save(commit=True)
        a = self.add("A", 0)
        x = self.add("X", 0, tree_id=other.id)

        with pytest.raises(TreeNodeNotFoundException):
            self.sorter.bulk_update_sort_orders([
                {"node_id": a.id, "sort_order": 5},
                {"node_id": x.id, "sort_order": 3},
            ], tree_id=self.tree.id)

        self.session_scope().rollback()
        assert self.order() == [("A", 0)]
        assert TreeNode.query.filter_by(tree_id=other.id).one().sort_order == 0

    def test_bulk_update_empty(self):
        with pytest.raises(ValidationException):
            self.sorter.bulk_update_sort_orders([])
