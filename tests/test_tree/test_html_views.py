"""HTML 页面测试"""

import re

import pytest


def create_tree(client, name="组织架构"):
    response = client.post("/tree/add", data={"name": name, "description": ""}, follow_redirects=False)
    assert response.status_code == 303, response.text
    return int(re.search(r"/tree/(\d+)$", response.headers["location"]).group(1))


def add_node(client, tree_id, **form):
    response = client.post(f"/tree/{tree_id}/add-node", data=form, follow_redirects=False)
    assert response.status_code == 303, response.text
    nodes = client.get(f"/tree/{tree_id}/json").json()["data"]["tree"]["root_nodes"]
    return nodes


class TestTreePages:
    """树列表与表单"""

    def test_index(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "树列表" in response.text
        assert "还没有任何树" in response.text

    def test_add_tree_form(self, client):
        response = client.get("/tree/add")

        assert response.status_code == 200
        assert 'action="/tree/add"' in response.text

    def test_add_tree_redirects(self, client):
        tree_id = create_tree(client, "Menu")

        response = client.get("/trees")
        assert f'href="/tree/{tree_id}"' in response.text
        assert "Menu" in response.text

    def test_add_tree_invalid_rerenders_form(self, client):
        response = client.post("/tree/add", data={"name": "", "description": "<b>x</b>"})

        assert response.status_code == 422
        assert 'class="errors"' in response.text
        assert "&lt;b&gt;x&lt;/b&gt;" in response.text

    def test_add_tree_duplicate(self, client):
        create_tree(client, "Menu")

        response = client.post("/tree/add", data={"name": "menu"})

        assert response.status_code == 409
        assert "已存在同名的树" in response.text

    def test_name_is_escaped(self, client):
        tree_id = create_tree(client, "<script>x</script>")

        response = client.get(f"/tree/{tree_id}")

        assert "<script>x</script>" not in response.text
        assert "&lt;script&gt;x&lt;/script&gt;" in response.text

    def test_empty_tree_view(self, client):
        tree_id = create_tree(client)

        response = client.get(f"/tree/{tree_id}")

        assert response.status_code == 200
        assert "这棵树还没有节点" in response.text

    def test_missing_tree_page(self, client):
        response = client.get("/tree/999")

        assert response.status_code == 404
        assert "错误 404" in response.text

    def test_delete_and_restore_flow(self, client):
        tree_id = create_tree(client, "Menu")

        confirm = client.get(f"/tree/{tree_id}/delete")
        assert confirm.status_code == 200
        assert f'action="/tree/{tree_id}/delete"' in confirm.text

        response = client.post(f"/tree/{tree_id}/delete", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/trees"

        deleted_page = client.get("/trees/deleted")
        assert f'href="/tree/{tree_id}/restore"' in deleted_page.text
        assert client.get(f"/tree/{tree_id}").status_code == 404

        response = client.post(f"/tree/{tree_id}/restore", follow_redirects=False)
        assert response.status_code == 303
        assert client.get(f"/tree/{tree_id}").status_code == 200

    def test_demo_tree_page(self, client):
        response = client.get("/tree")

        assert response.status_code == 200
        assert "Sub-2-2" in response.text
        assert "<button onclick=\"alert(&#x27;Main&#x27;)\">Click me</button>" in response.text
        assert "/sort-left" not in response.text


class TestNodePages:
    """节点表单、删除与排序"""

    @pytest.fixture
    def tree_id(self, client):
        return create_tree(client, "节点页面")

    def test_add_node_form_preselects_parent(self, client, tree_id):
        nodes = add_node(client, tree_id, name="root", node_type="SimpleNode", parent_id="", sort_order="")
        root_id = nodes[0]["id"]

        response = client.get(f"/tree/{tree_id}/add-node", params={"parent_id": root_id})

        assert response.status_code == 200
        assert f'<option value="{root_id}" selected>root</option>' in response.text

    def test_add_button_node(self, client, tree_id):
        nodes = add_node(
            client, tree_id,
            name="btn", node_type="ButtonNode", button_text="Go", button_action="alert(1)",
        )

        assert nodes[0]["type"] == "ButtonNode"
        page = client.get(f"/tree/{tree_id}").text
        assert '<button onclick="alert(1)">Go</button>' in page

    def test_add_node_invalid(self, client, tree_id):
        response = client.post(f"/tree/{tree_id}/add-node", data={"name": "b", "node_type": "ButtonNode"})

        assert response.status_code == 422
        assert "按钮节点必须提供 button_text" in response.text

    def test_add_node_missing_parent(self, client, tree_id):
        response = client.post(f"/tree/{tree_id}/add-node", data={"name": "x", "parent_id": "77"})

        assert response.status_code == 422
        assert "父节点不存在" in response.text

    def test_edit_links(self, client, tree_id):
        nodes = add_node(client, tree_id, name="root")
        node_id = nodes[0]["id"]

        editable = client.get(f"/tree/{tree_id}").text
        read_only = client.get(f"/tree/{tree_id}/view").text

        for href in ("delete", "sort-left", "sort-right"):
            assert f'href="/tree/{tree_id}/node/{node_id}/{href}"' in editable
            assert f"/node/{node_id}/{href}" not in read_only
        assert f'href="/tree/{tree_id}/add-node?parent_id={node_id}"' in editable

    def test_delete_node_flow(self, client, tree_id):
        root_id = add_node(client, tree_id, name="root")[0]["id"]
        add_node(client, tree_id, name="child-1", parent_id=str(root_id))

        confirm = client.get(f"/tree/{tree_id}/node/{root_id}/delete")
        assert confirm.status_code == 200
        assert "child-1" in confirm.text
        assert "1 个子孙节点" in confirm.text

        response = client.post(f"/tree/{tree_id}/node/{root_id}/delete", follow_redirects=False)
        assert response.status_code == 303
        assert "这棵树还没有节点" in client.get(f"/tree/{tree_id}").text

    def test_sort_links_redirect(self, client, tree_id):
        add_node(client, tree_id, name="a")
        nodes = add_node(client, tree_id, name="b")
        b_id = nodes[1]["id"]

        response = client.get(f"/tree/{tree_id}/node/{b_id}/sort-left", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == f"/tree/{tree_id}"
        names = [n["name"] for n in client.get(f"/tree/{tree_id}/json").json()["data"]["tree"]["root_nodes"]]
        assert names == ["b", "a"]

    def test_sort_unknown_node(self, client, tree_id):
        response = client.get(f"/tree/{tree_id}/node/999/sort-right")

        assert response.status_code == 404
