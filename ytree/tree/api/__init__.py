"""树管理 HTTP 路由"""

from .json_api import create_tree_json_router
from .html_views import create_tree_html_router

__all__ = [
    "create_tree_json_router",
    "create_tree_html_router",
]
