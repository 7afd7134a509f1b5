"""HTML 渲染

- HtmlTreeRenderer: 把森林渲染为嵌套的 <ul>/<li>，编辑模式附带删除、左移、右移、添加子节点链接
- render_* 页面函数: 树列表、树视图、表单、确认页、错误页

所有用户输入的文本都经过 html.escape 转义。
"""

from html import escape
from typing import Iterable, List, Optional, Sequence

from .builder import ForestNode
from .models import NodeType, Tree

_CSS = """
body { font-family: -apple-system, "Segoe UI", sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }
.container { max-width: 1200px; margin: 0 auto; background: #fff; padding: 24px; border-radius: 8px; }
.header h1 { margin: 0 0 8px 0; }
.description { color: #666; }
.navigation { margin: 16px 0; }
.btn { display: inline-block; padding: 6px 14px; margin-right: 8px; border-radius: 4px; background: #6c757d; color: #fff; text-decoration: none; border: 0; cursor: pointer; }
.btn-primary { background: #007bff; }
.btn-danger { background: #dc3545; }
.tree-item { border-bottom: 1px solid #eee; padding: 12px 0; }
.errors { color: #b00020; }
.form-group { margin-bottom: 12px; }
.form-group label { display: block; font-weight: bold; margin-bottom: 4px; }
.tree { overflow-x: auto; }
.tree ul { padding-top: 20px; position: relative; display: flex; flex-wrap: nowrap; }
.tree li { flex-shrink: 0; text-align: center; list-style-type: none; position: relative; padding: 20px 15px 0 15px; }
.tree li::before, .tree li::after { content: ''; position: absolute; top: 0; right: 50%; border-top: 1px solid #ccc; width: 50%; height: 20px; }
.tree li::after { right: auto; left: 50%; border-left: 1px solid #ccc; }
.tree li:only-child::after, .tree li:only-child::before { display: none; }
.tree li:only-child { padding-top: 0; }
.tree li:first-child::before, .tree li:last-child::after { border: 0 none; }
.tree-node { border: 1px solid #ccc; padding: 6px 10px; display: inline-block; border-radius: 5px; }
.remove-icon, .sort-left-icon, .sort-right-icon, .add-icon { margin: 0 3px; text-decoration: none; }
.remove-icon { color: #dc3545; }
.add-icon { color: #28a745; }
"""


def _e(value) -> str:
    return escape("" if value is None else str(value), quote=True)


def _format_time(value) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")


class HtmlTreeRenderer:
    """节点 HTML 渲染器

    Args:
        allow_edit: 是否渲染编辑链接（删除 ×、左移 <、右移 >、添加子节点 +）
    """

    def __init__(self, allow_edit: bool = True):
        self.allow_edit = allow_edit

    def render_forest(self, forest: Sequence[ForestNode]) -> str:
        items = "".join(f"<li>{self.render(item)}</li>" for item in forest)
        return f'<div class="tree"><ul>{items}</ul></div>'

    def render(self, item: ForestNode) -> str:
        html = self.render_node(item.node)
        if item.children:
            children = "".join(f"<li>{self.render(child)}</li>" for child in item.children)
            html += f"<ul>{children}</ul>"
        return html

    def render_node(self, node) -> str:
        """渲染单个节点（不含子节点）"""
        parts = ['<div class="tree-node">']
        if self.allow_edit:
            base = f"/tree/{node.tree_id}/node/{node.id}"
            parts.append(f'<a href="{base}/delete" class="remove-icon">×</a>')
            parts.append(f'<a href="{base}/sort-left" class="sort-left-icon">&lt;</a>')
            parts.append(f'<a href="{base}/sort-right" class="sort-right-icon">&gt;</a>')
        parts.append(f'<input type="checkbox"> {_e(node.name)}')

        if node.node_type == NodeType.BUTTON.value:
            data = node.type_data()
            text = _e(data.get("button_text"))
            action = data.get("button_action")
            if action:
                parts.append(f' <br/> <button onclick="{_e(action)}">{text}</button>')
            else:
                parts.append(f" <br/> <button>{text}</button>")

        if self.allow_edit:
            parts.append(
                f'<a href="/tree/{node.tree_id}/add-node?parent_id={node.id}" class="add-icon">+</a>'
            )
        parts.append("</div>")
        return "".join(parts)


# ==================== 页面 ====================

def render_page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>"
        '<html lang="zh-CN"><head><meta charset="UTF-8">'
        f"<title>{_e(title)}</title><style>{_CSS}</style></head>"
        f'<body><div class="container">{body}</div></body></html>'
    )


def _header(title: str, description: str = "") -> str:
    html = f'<div class="header"><h1>{_e(title)}</h1>'
    if description:
        html += f'<p class="description">{_e(description)}</p>'
    return html + "</div>"


def _navigation(*links) -> str:
    anchors = "".join(f'<a href="{href}" class="btn {css}">{_e(text)}</a>' for href, text, css in links)
    return f'<div class="navigation">{anchors}</div>'


def _errors(errors: Optional[Iterable[str]]) -> str:
    errors = list(errors or [])
    if not errors:
        return ""
    items = "".join(f"<li>{_e(error)}</li>" for error in errors)
    return f'<div class="errors"><ul>{items}</ul></div>'


def render_tree_list(trees: List[Tree], deleted: bool = False) -> str:
    """树列表页（有效的树或已删除的树）"""
    if deleted:
        title = "已删除的树"
        navigation = _navigation(("/trees", "返回树列表", ""))
    else:
        title = "树列表"
        navigation = _navigation(
            ("/tree/add", "新建树", "btn-primary"),
            ("/trees/deleted", "已删除的树", ""),
        )

    if not trees:
        content = f'<p class="message">{"没有已删除的树" if deleted else "还没有任何树"}</p>'
    else:
        items = []
        for tree in trees:
            if deleted:
                link = f'{_e(tree.name)} <a href="/tree/{tree.id}/restore" class="btn btn-primary">恢复</a>'
            else:
                link = f'<a href="/tree/{tree.id}">{_e(tree.name)}</a>'
            items.append(
                '<div class="tree-item">'
                f"<h3>{link}</h3>"
                f"<p>{_e(tree.description or '暂无描述')}</p>"
                f"<small>创建时间: {_format_time(tree.created_at)}</small>"
                "</div>"
            )
        content = f'<div class="tree-list">{"".join(items)}</div>'

    return render_page(title, _header(title) + navigation + content)


def render_tree_view(tree: Tree, forest: Sequence[ForestNode], allow_edit: bool = True) -> str:
    """树视图页，空树显示提示"""
    links = [("/trees", "返回树列表", "")]
    if allow_edit:
        links += [
            (f"/tree/{tree.id}/add-node", "添加节点", "btn-primary"),
            (f"/tree/{tree.id}/view", "只读视图", ""),
            (f"/tree/{tree.id}/delete", "删除树", "btn-danger"),
        ]
    else:
        links.append((f"/tree/{tree.id}", "编辑视图", ""))
    links.append((f"/tree/{tree.id}/json", "JSON", ""))

    if forest:
        content = HtmlTreeRenderer(allow_edit=allow_edit).render_forest(forest)
    else:
        content = '<p class="message">这棵树还没有节点</p>'

    body = (
        _header(f"树结构: {tree.name}", tree.description or "暂无描述")
        + f'<div class="tree-info">树ID: {tree.id} · 创建时间: {_format_time(tree.created_at)}</div>'
        + _navigation(*links)
        + content
    )
    return render_page(f"树结构 - {tree.name}", body)


def render_add_tree_form(values: Optional[dict] = None, errors: Optional[List[str]] = None) -> str:
    values = values or {}
    body = (
        _header("新建树")
        + _errors(errors)
        + '<form method="post" action="/tree/add">'
        + '<div class="form-group"><label for="name">名称</label>'
        + f'<input type="text" id="name" name="name" maxlength="255" required value="{_e(values.get("name"))}"></div>'
        + '<div class="form-group"><label for="description">描述</label>'
        + f'<textarea id="description" name="description" maxlength="1000">{_e(values.get("description"))}</textarea></div>'
        + '<button type="submit" class="btn btn-primary">创建</button>'
        + '<a href="/trees" class="btn">取消</a>'
        + "</form>"
    )
    return render_page("新建树", body)


def render_add_node_form(
    tree: Tree,
    nodes: Sequence,
    values: Optional[dict] = None,
    errors: Optional[List[str]] = None,
) -> str:
    """添加节点表单，父节点下拉框列出树中现有节点"""
    values = values or {}
    selected_parent = str(values.get("parent_id") or "")
    selected_type = values.get("node_type") or NodeType.SIMPLE.value

    parent_options = ['<option value="">（根节点）</option>']
    for node in nodes:
        selected = " selected" if str(node.id) == selected_parent else ""
        parent_options.append(f'<option value="{node.id}"{selected}>{_e(node.name)}</option>')

    type_options = []
    for node_type in NodeType:
        selected = " selected" if node_type.value == selected_type else ""
        type_options.append(f'<option value="{node_type.value}"{selected}>{node_type.value}</option>')

    sort_order = values.get("sort_order")
    body = (
        _header(f"添加节点: {tree.name}")
        + _errors(errors)
        + f'<form method="post" action="/tree/{tree.id}/add-node">'
        + '<div class="form-group"><label for="name">名称</label>'
        + f'<input type="text" id="name" name="name" maxlength="255" required value="{_e(values.get("name"))}"></div>'
        + '<div class="form-group"><label for="node_type">类型</label>'
        + f'<select id="node_type" name="node_type">{"".join(type_options)}</select></div>'
        + '<div class="form-group"><label for="parent_id">父节点</label>'
        + f'<select id="parent_id" name="parent_id">{"".join(parent_options)}</select></div>'
        + '<div class="form-group"><label for="sort_order">排序序号</label>'
        + f'<input type="number" id="sort_order" name="sort_order" min="0" value="{_e(sort_order)}"></div>'
        + '<div class="form-group"><label for="button_text">按钮文字</label>'
        + f'<input type="text" id="button_text" name="button_text" maxlength="100" value="{_e(values.get("button_text"))}"></div>'
        + '<div class="form-group"><label for="button_action">按钮动作</label>'
        + f'<input type="text" id="button_action" name="button_action" maxlength="255" value="{_e(values.get("button_action"))}"></div>'
        + '<button type="submit" class="btn btn-primary">添加</button>'
        + f'<a href="/tree/{tree.id}" class="btn">取消</a>'
        + "</form>"
    )
    return render_page(f"添加节点 - {tree.name}", body)


def render_confirm_page(title: str, message: str, action: str, cancel_href: str,
                        items: Optional[List[str]] = None, submit_text: str = "确认") -> str:
    """确认页（删除树、恢复树、删除节点）"""
    listing = ""
    if items:
        listing = "<ul>" + "".join(f"<li>{_e(item)}</li>" for item in items) + "</ul>"
    body = (
        _header(title)
        + f'<p class="message">{_e(message)}</p>'
        + listing
        + f'<form method="post" action="{action}">'
        + f'<button type="submit" class="btn btn-danger">{_e(submit_text)}</button>'
        + f'<a href="{cancel_href}" class="btn">取消</a>'
        + "</form>"
    )
    return render_page(title, body)


def render_error_page(status_code: int, message: str, details: Optional[List[str]] = None) -> str:
    body = (
        _header(f"错误 {status_code}", message)
        + _errors(details)
        + _navigation(("/trees", "返回树列表", ""))
    )
    return render_page(f"错误 {status_code}", body)
