"""树结构构建测试

只依赖 id / parent_id，使用 SimpleNamespace 作为节点。
"""

from types import SimpleNamespace

import pytest

from ytree.exceptions import MalformedHierarchyException
from ytree.tree import build_forest, count_nodes, ensure_roots, iter_forest, max_depth


def make_nodes(*pairs):
    return [SimpleNamespace(id=node_id, parent_id=parent_id, name=f"N{node_id}") for node_id, parent_id in pairs]


def ids(forest):
    return [item.id for item in forest]


class TestBuildForest:
    """森林构建"""

    def test_simple_forest(self):
        """一个根，子节点保持输入顺序"""
        nodes = make_nodes((1, None), (2, 1), (3, 1), (4, 2))

        forest = build_forest(nodes)

        assert ids(forest) == [1]
        root = forest[0]
        assert ids(root.children) == [2, 3]
        assert ids(root.children[0].children) == [4]
        assert root.children[1].children == ()

    def test_dangling_parent_dropped(self):
        """父节点不在输入中的节点被丢弃"""
        nodes = make_nodes((1, None), (2, 99))

        forest = build_forest(nodes)

        assert ids(forest) == [1]
        assert [node.id for node, _ in iter_forest(forest)] == [1]

    def test_child_before_parent_in_input(self):
        """输入顺序不要求父节点在前"""
        nodes = make_nodes((3, 2), (2, 1), (1, None))

        forest = build_forest(nodes)

        assert [node.id for node, _ in iter_forest(forest)] == [1, 2, 3]

    def test_multiple_roots_in_input_order(self):
        nodes = make_nodes((5, None), (1, None), (2, 5))

        forest = build_forest(nodes)

        assert ids(forest) == [5, 1]
        assert ids(forest[0].children) == [2]

    def test_children_keep_input_order_not_sort_order(self):
        nodes = make_nodes((1, None), (3, 1), (2, 1))
        nodes[1].sort_order = 9
        nodes[2].sort_order = 0

        forest = build_forest(nodes)

        assert ids(forest[0].children) == [3, 2]

    def test_returns_original_node_objects(self):
        """结果引用输入的节点对象本身"""
        nodes = make_nodes((1, None), (2, 1))

        forest = build_forest(nodes)

        assert forest[0].node is nodes[0]
        assert forest[0].children[0].node is nodes[1]

    def test_input_not_mutated(self):
        """构建不修改输入节点"""
        nodes = make_nodes((1, None), (2, 1))
        before = [dict(vars(node)) for node in nodes]

        build_forest(nodes)
        build_forest(nodes)

        assert [dict(vars(node)) for node in nodes] == before

    def test_repeated_builds_are_independent(self):
        nodes = make_nodes((1, None), (2, 1))

        first = build_forest(nodes)
        second = build_forest(nodes)

        assert first == second
        assert first[0] is not second[0]

    def test_cycle_without_root(self):
        """父链成环且没有根：结果为空"""
        nodes = make_nodes((1, 2), (2, 1))

        assert build_forest(nodes) == []

    def test_cycle_beside_valid_root(self):
        """成环的节点不出现在结果中"""
        nodes = make_nodes((1, None), (2, 3), (3, 2), (4, 1))

        forest = build_forest(nodes)

        assert [node.id for node, _ in iter_forest(forest)] == [1, 4]

    def test_empty_input(self):
        assert build_forest([]) == []


class TestForestHelpers:
    """遍历与统计"""

    def test_iter_forest_depths(self):
        nodes = make_nodes((1, None), (2, 1), (3, 2), (4, None))

        result = [(node.id, depth) for node, depth in iter_forest(build_forest(nodes))]

        assert result == [(1, 0), (2, 1), (3, 2), (4, 0)]

    def test_count_nodes_only_reachable(self):
        nodes = make_nodes((1, None), (2, 1), (3, 99))

        assert count_nodes(build_forest(nodes)) == 2

    def test_max_depth(self):
        assert max_depth([]) == 0
        assert max_depth(build_forest(make_nodes((1, None)))) == 0
        assert max_depth(build_forest(make_nodes((1, None), (2, 1), (3, 2), (4, 1)))) == 2

    def test_has_children(self):
        forest = build_forest(make_nodes((1, None), (2, 1)))

        assert forest[0].has_children is True
        assert forest[0].children[0].has_children is False


class TestEnsureRoots:
    """根节点校验"""

    def test_empty_tree_is_valid(self):
        assert ensure_roots([], []) == []

    def test_nodes_without_root_raise(self):
        nodes = make_nodes((1, 2), (2, 1))

        with pytest.raises(MalformedHierarchyException) as exc_info:
            ensure_roots(nodes, build_forest(nodes), tree_id=7)

        assert exc_info.value.status_code == 409
        assert exc_info.value.tree_id == 7
        assert exc_info.value.node_count == 2

    def test_valid_forest_passes_through(self):
        nodes = make_nodes((1, None))
        forest = build_forest(nodes)

        assert ensure_roots(nodes, forest) == forest
