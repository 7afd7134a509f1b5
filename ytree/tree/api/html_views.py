"""
树管理 - HTML 页面

成功的 POST 请求以 303 重定向；业务异常渲染为同状态码的错误页，表单校验失败时重新显示表单。
"""

from functools import wraps
from typing import List, Optional

from fastapi import APIRouter, Form, Path, Query
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from ytree.exceptions import BusinessException
from ytree.log import get_logger

from .. import renderer
from ..schemas import NodeCreate, TreeCreate
from ..services import TreeService, demo_forest

logger = get_logger()


def _validation_messages(exc: ValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        message = error["msg"]
        if error["type"] == "value_error":
            message = str(error.get("ctx", {}).get("error", message))
        messages.append(f"{field}: {message}" if field else message)
    return messages


def _optional_int(value: Optional[str]) -> Optional[str]:
    """表单中的空字符串视为未填写"""
    if value is None or not value.strip():
        return None
    return value.strip()


def html_errors(func):
    """把业务异常渲染为 HTML 错误页"""
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except BusinessException as exc:
            logger.warning(f"HTML 页面业务异常: {exc.code} - {exc.message}")
            return HTMLResponse(
                renderer.render_error_page(exc.status_code, exc.message, exc.details),
                status_code=exc.status_code,
            )
    return wrapper


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def create_tree_html_router(service: TreeService) -> APIRouter:
    """创建树管理 HTML 路由

    生成的路由:
        GET       /, /trees                                  - 树列表
        GET       /trees/deleted                             - 已删除的树
        GET       /tree                                      - 静态示例树
        GET/POST  /tree/add                                  - 新建树
        GET       /tree/{tree_id}                            - 可编辑的树视图
        GET       /tree/{tree_id}/view                       - 只读树视图
        GET/POST  /tree/{tree_id}/delete                     - 删除树
        GET/POST  /tree/{tree_id}/restore                    - 恢复树
        GET/POST  /tree/{tree_id}/add-node                   - 添加节点
        GET/POST  /tree/{tree_id}/node/{node_id}/delete      - 删除节点（确认页列出子孙）
        GET       /tree/{tree_id}/node/{node_id}/sort-left   - 左移
        GET       /tree/{tree_id}/node/{node_id}/sort-right  - 右移
    """
    router = APIRouter(tags=["树管理 HTML"], default_response_class=HTMLResponse)

    @router.get("/", summary="首页（树列表）")
    @router.get("/trees", summary="树列表")
    async def list_trees():
        return HTMLResponse(renderer.render_tree_list(service.list_active_trees()))

    @router.get("/trees/deleted", summary="已删除的树")
    async def list_deleted_trees():
        return HTMLResponse(renderer.render_tree_list(service.list_deleted_trees(), deleted=True))

    @router.get("/tree", summary="示例树")
    async def view_demo_tree():
        forest = demo_forest()
        body = (
            '<div class="header"><h1>示例树</h1></div>'
            + renderer.HtmlTreeRenderer(allow_edit=False).render_forest(forest)
        )
        return HTMLResponse(renderer.render_page("示例树", body))

    @router.get("/tree/add", summary="新建树表单")
    async def add_tree_form():
        return HTMLResponse(renderer.render_add_tree_form())

    @router.post("/tree/add", summary="提交新建树")
    @html_errors
    async def add_tree(
        name: str = Form(""),
        description: Optional[str] = Form(None),
    ):
        values = {"name": name, "description": description}
        try:
            data = TreeCreate(name=name, description=description)
        except ValidationError as exc:
            return HTMLResponse(
                renderer.render_add_tree_form(values, _validation_messages(exc)),
                status_code=422,
            )
        try:
            tree = service.create_tree(data.name, data.description)
        except BusinessException as exc:
            return HTMLResponse(
                renderer.render_add_tree_form(values, [exc.message]),
                status_code=exc.status_code,
            )
        return _redirect(f"/tree/{tree.id}")

    @router.get("/tree/{tree_id}", summary="树视图（可编辑）")
    @html_errors
    async def view_tree(tree_id: int = Path(..., description="树ID")):
        structure = service.get_tree_structure(tree_id)
        return HTMLResponse(renderer.render_tree_view(structure["tree"], structure["forest"], allow_edit=True))

    @router.get("/tree/{tree_id}/view", summary="树视图（只读）")
    @html_errors
    async def view_tree_read_only(tree_id: int = Path(..., description="树ID")):
        structure = service.get_tree_structure(tree_id)
        return HTMLResponse(renderer.render_tree_view(structure["tree"], structure["forest"], allow_edit=False))

    @router.get("/tree/{tree_id}/delete", summary="删除树确认页")
    @html_errors
    async def delete_tree_confirm(tree_id: int = Path(..., description="树ID")):
        tree = service.get_tree(tree_id)
        return HTMLResponse(renderer.render_confirm_page(
            title=f"删除树: {tree.name}",
            message="删除后可在“已删除的树”中恢复。",
            action=f"/tree/{tree_id}/delete",
            cancel_href=f"/tree/{tree_id}",
            submit_text="删除",
        ))

    @router.post("/tree/{tree_id}/delete", summary="删除树")
    @html_errors
    async def delete_tree(tree_id: int = Path(..., description="树ID")):
        service.delete_tree(tree_id)
        return _redirect("/trees")

    @router.get("/tree/{tree_id}/restore", summary="恢复树确认页")
    @html_errors
    async def restore_tree_confirm(tree_id: int = Path(..., description="树ID")):
        tree = service.get_tree(tree_id, include_deleted=True)
        return HTMLResponse(renderer.render_confirm_page(
            title=f"恢复树: {tree.name}",
            message="确认恢复这棵树？",
            action=f"/tree/{tree_id}/restore",
            cancel_href="/trees/deleted",
            submit_text="恢复",
        ))

    @router.post("/tree/{tree_id}/restore", summary="恢复树")
    @html_errors
    async def restore_tree(tree_id: int = Path(..., description="树ID")):
        service.restore_tree(tree_id)
        return _redirect(f"/tree/{tree_id}")

    @router.get("/tree/{tree_id}/add-node", summary="添加节点表单")
    @html_errors
    async def add_node_form(
        tree_id: int = Path(..., description="树ID"),
        parent_id: Optional[int] = Query(None, description="预选的父节点"),
    ):
        tree = service.get_tree(tree_id)
        nodes = service.get_tree_nodes(tree_id)
        return HTMLResponse(renderer.render_add_node_form(tree, nodes, {"parent_id": parent_id}))

    @router.post("/tree/{tree_id}/add-node", summary="提交添加节点")
    @html_errors
    async def add_node(
        tree_id: int = Path(..., description="树ID"),
        name: str = Form(""),
        node_type: str = Form("SimpleNode"),
        parent_id: Optional[str] = Form(None),
        sort_order: Optional[str] = Form(None),
        button_text: Optional[str] = Form(None),
        button_action: Optional[str] = Form(None),
    ):
        values = {
            "name": name,
            "node_type": node_type,
            "parent_id": _optional_int(parent_id),
            "sort_order": _optional_int(sort_order),
            "button_text": button_text,
            "button_action": button_action,
        }
        tree = service.get_tree(tree_id)
        try:
            data = NodeCreate.model_validate(values)
            service.add_node(tree_id, data)
        except ValidationError as exc:
            errors = _validation_messages(exc)
        except BusinessException as exc:
            errors = [exc.message, *exc.details]
        else:
            return _redirect(f"/tree/{tree_id}")

        nodes = service.get_tree_nodes(tree_id)
        return HTMLResponse(renderer.render_add_node_form(tree, nodes, values, errors), status_code=422)

    @router.get("/tree/{tree_id}/node/{node_id}/delete", summary="删除节点确认页")
    @html_errors
    async def delete_node_confirm(
        tree_id: int = Path(..., description="树ID"),
        node_id: int = Path(..., description="节点ID"),
    ):
        preview = service.preview_node_deletion(tree_id, node_id)
        node = preview["node"]
        descendants = preview["descendants"]
        message = f"将删除节点“{node.name}”"
        if descendants:
            message += f"以及它的 {len(descendants)} 个子孙节点："
        return HTMLResponse(renderer.render_confirm_page(
            title=f"删除节点: {node.name}",
            message=message,
            action=f"/tree/{tree_id}/node/{node_id}/delete",
            cancel_href=f"/tree/{tree_id}",
            items=[item.name for item in descendants],
            submit_text="删除",
        ))

    @router.post("/tree/{tree_id}/node/{node_id}/delete", summary="删除节点")
    @html_errors
    async def delete_node(
        tree_id: int = Path(..., description="树ID"),
        node_id: int = Path(..., description="节点ID"),
    ):
        service.delete_node(tree_id, node_id)
        return _redirect(f"/tree/{tree_id}")

    @router.get("/tree/{tree_id}/node/{node_id}/sort-left", summary="节点左移")
    @html_errors
    async def sort_left(
        tree_id: int = Path(..., description="树ID"),
        node_id: int = Path(..., description="节点ID"),
    ):
        service.sort_node_left(tree_id, node_id)
        return _redirect(f"/tree/{tree_id}")

    @router.get("/tree/{tree_id}/node/{node_id}/sort-right", summary="节点右移")
    @html_errors
    async def sort_right(
        tree_id: int = Path(..., description="树ID"),
        node_id: int = Path(..., description="节点ID"),
    ):
        service.sort_node_right(tree_id, node_id)
        return _redirect(f"/tree/{tree_id}")

    return router
