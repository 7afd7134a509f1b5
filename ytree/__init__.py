"""
YTree - 树结构管理应用

基于 FastAPI + SQLAlchemy，提供树和节点的增删改、排序以及 JSON/HTML 两种访问方式
"""

__version__ = "0.1.0"
__description__ = "树结构管理应用"
