"""中间件模块"""

from .request_id import RequestIDMiddleware, get_request_id
from .performance import PerformanceMonitoringMiddleware

__all__ = [
    "RequestIDMiddleware",
    "get_request_id",
    "PerformanceMonitoringMiddleware",
]
