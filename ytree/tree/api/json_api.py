"""
树管理 - JSON API

统一响应格式 {"status", "message", "msg_details", "data"}，错误由全局异常处理器转换。
"""

from fastapi import APIRouter, Path

from ytree.response import ItemResponse, OkResponse, Resp

from ..builder import count_nodes, max_depth
from ..schemas import (
    BulkSortRequest,
    NodeCreate,
    NodeMoveRequest,
    NodeResponse,
    NodeSortRequest,
    TreeCreate,
    TreeResponse,
    TreeStructureNode,
)
from ..services import TreeService, demo_forest


def _tree_links(tree_id: int) -> dict:
    return {
        "view_tree": f"/tree/{tree_id}",
        "view_tree_json": f"/tree/{tree_id}/json",
        "add_node": f"/tree/{tree_id}/add-node",
        "add_node_json": f"/tree/{tree_id}/add-node/json",
    }


def _structure_payload(forest) -> dict:
    return {
        "root_nodes": [TreeStructureNode.from_forest(item) for item in forest],
        "total_nodes": count_nodes(forest),
        "total_levels": max_depth(forest),
        "total_root_nodes": len(forest),
    }


def create_tree_json_router(service: TreeService) -> APIRouter:
    """创建树管理 JSON 路由

    Args:
        service: 树管理服务

    生成的路由:
        GET  /trees/json                                - 有效的树列表
        GET  /trees/deleted/json                        - 已删除的树列表
        GET  /tree/json                                 - 静态示例树
        POST /tree/add/json                             - 创建树
        GET  /tree/{tree_id}/json                       - 树结构
        POST /tree/{tree_id}/delete/json                - 软删除树
        POST /tree/{tree_id}/restore/json               - 恢复树
        POST /tree/{tree_id}/add-node/json              - 添加节点
        POST /tree/{tree_id}/node/{node_id}/delete/json - 级联删除节点
        POST /tree/{tree_id}/node/{node_id}/move/json   - 移动节点
        POST /api/tree/{tree_id}/node/{node_id}/sort    - 单节点排序
        POST /api/tree/{tree_id}/nodes/sort             - 批量排序
    """
    router = APIRouter(tags=["树管理 JSON"])

    @router.get(
        "/trees/json",
        summary="获取树列表",
        description="获取所有未删除的树，按名称排序"
    )
    async def list_trees():
        trees = service.list_active_trees()
        return Resp.OK(data={
            "trees": TreeResponse.from_list(trees),
            "stats": {"total_active_trees": len(trees)},
            "links": {
                "add_tree": "/tree/add",
                "add_tree_json": "/tree/add/json",
                "deleted_trees": "/trees/deleted/json",
            },
        })

    @router.get(
        "/trees/deleted/json",
        summary="获取已删除的树",
        description="获取所有已软删除的树，按名称排序"
    )
    async def list_deleted_trees():
        trees = service.list_deleted_trees()
        return Resp.OK(data={
            "trees": TreeResponse.from_list(trees),
            "stats": {"total_deleted_trees": len(trees)},
            "links": {"active_trees": "/trees/json"},
        })

    @router.get(
        "/tree/json",
        summary="示例树",
        description="返回静态示例树结构（不读取数据库）"
    )
    async def view_demo_tree():
        return Resp.OK(data=_structure_payload(demo_forest()))

    @router.post(
        "/tree/add/json",
        response_model=ItemResponse[TreeResponse],
        status_code=201,
        summary="创建树",
        description="创建新的树，名称在未删除的树中唯一（不区分大小写）"
    )
    async def add_tree(data: TreeCreate):
        tree = service.create_tree(data.name, data.description)
        return Resp.Created(
            data={"tree": TreeResponse.from_entity(tree), "links": _tree_links(tree.id)},
            message="树创建成功",
        )

    @router.get(
        "/tree/{tree_id}/json",
        summary="获取树结构",
        description="返回树信息及递归的节点结构；没有节点返回 404，节点无法组成树返回 409"
    )
    async def view_tree(tree_id: int = Path(..., description="树ID")):
        structure = service.get_tree_structure(tree_id)
        if not structure["nodes"]:
            return Resp.NotFound(message=f"树 {tree_id} 没有任何节点")

        payload = _structure_payload(structure["forest"])
        tree_data = TreeResponse.from_entity(structure["tree"]).model_dump()
        tree_data["root_nodes"] = payload.pop("root_nodes")
        return Resp.OK(data={"tree": tree_data, **payload})

    @router.post(
        "/tree/{tree_id}/delete/json",
        response_model=OkResponse,
        summary="删除树",
        description="软删除树，可通过恢复接口还原"
    )
    async def delete_tree(tree_id: int = Path(..., description="树ID")):
        tree = service.delete_tree(tree_id)
        return Resp.OK(
            data={"tree": TreeResponse.from_entity(tree), "links": {"deleted_trees": "/trees/deleted/json"}},
            message="树已删除",
        )

    @router.post(
        "/tree/{tree_id}/restore/json",
        response_model=OkResponse,
        summary="恢复树",
        description="恢复已删除的树；名称被其他树占用时返回 409"
    )
    async def restore_tree(tree_id: int = Path(..., description="树ID")):
        tree = service.restore_tree(tree_id)
        return Resp.OK(
            data={"tree": TreeResponse.from_entity(tree), "links": _tree_links(tree.id)},
            message="树已恢复",
        )

    @router.post(
        "/tree/{tree_id}/add-node/json",
        status_code=201,
        summary="添加节点",
        description="向树中添加节点，parent_id 为空时作为根节点"
    )
    async def add_node(data: NodeCreate, tree_id: int = Path(..., description="树ID")):
        node = service.add_node(tree_id, data)
        tree = service.get_tree(tree_id)
        return Resp.Created(
            data={
                "node": NodeResponse.from_entity(node),
                "tree": TreeResponse.from_entity(tree),
                "links": _tree_links(tree_id),
            },
            message="节点添加成功",
        )

    @router.post(
        "/tree/{tree_id}/node/{node_id}/delete/json",
        response_model=OkResponse,
        summary="删除节点",
        description="删除节点及其所有子孙节点"
    )
    async def delete_node(
        tree_id: int = Path(..., description="树ID"),
        node_id: int = Path(..., description="节点ID"),
    ):
        deleted_ids = service.delete_node(tree_id, node_id)
        return Resp.OK(
            data={"deleted_node_ids": deleted_ids, "deleted_count": len(deleted_ids)},
            message="节点已删除",
        )

    @router.post(
        "/tree/{tree_id}/node/{node_id}/move/json",
        summary="移动节点",
        description="把节点移动到新的父节点下，parent_id 为空表示移动为根节点"
    )
    async def move_node(
        data: NodeMoveRequest,
        tree_id: int = Path(..., description="树ID"),
        node_id: int = Path(..., description="节点ID"),
    ):
        node = service.move_node(tree_id, node_id, data.parent_id)
        return Resp.OK(data={"node": NodeResponse.from_entity(node)}, message="节点已移动")

    @router.post(
        "/api/tree/{tree_id}/node/{node_id}/sort",
        response_model=OkResponse,
        summary="节点排序",
        description='{"direction": "left"|"right"} 与相邻兄弟交换，或 {"sortOrder": n} 直接设置'
    )
    async def sort_node(
        data: NodeSortRequest,
        tree_id: int = Path(..., description="树ID"),
        node_id: int = Path(..., description="节点ID"),
    ):
        if data.direction == "left":
            moved = service.sort_node_left(tree_id, node_id)
        elif data.direction == "right":
            moved = service.sort_node_right(tree_id, node_id)
        else:
            service.update_node_sort_order(tree_id, node_id, data.sort_order)
            moved = True

        node = service.get_node(tree_id, node_id)
        return Resp.OK(
            data={"node_id": node_id, "moved": moved, "sort_order": node.sort_order},
            message="排序已更新" if moved else "节点已在边界位置",
        )

    @router.post(
        "/api/tree/{tree_id}/nodes/sort",
        response_model=OkResponse,
        summary="批量排序",
        description="批量设置节点排序序号，任一条目无效则全部不生效"
    )
    async def bulk_sort(data: BulkSortRequest, tree_id: int = Path(..., description="树ID")):
        nodes = service.bulk_update_sort_orders(tree_id, data.updates)
        return Resp.OK(
            data={
                "updated": [{"node_id": node.id, "sort_order": node.sort_order} for node in nodes],
                "updated_count": len(nodes),
            },
            message="批量排序已更新",
        )

    return router
