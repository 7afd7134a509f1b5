"""性能监控中间件"""
import time
import logging

from ytree.log import get_logger

_default_logger = get_logger()


class PerformanceMonitoringMiddleware:
    """性能监控中间件

    为响应添加 X-Response-Time 头（毫秒），超过阈值的慢请求记录警告日志。

    使用示例:
        app = FastAPI()
        app.add_middleware(PerformanceMonitoringMiddleware, slow_request_threshold=1.0)
    """

    def __init__(self, app, slow_request_threshold: float = 1.0, logger: logging.Logger = None):
        """
        Args:
            app: ASGI 应用实例
            slow_request_threshold: 慢请求阈值（秒）
            logger: 自定义日志记录器
        """
        self.app = app
        self.slow_request_threshold = slow_request_threshold
        self.logger = logger or _default_logger

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        start_time = time.time()

        async def send_wrapper(message):
            if message.get("type") == "http.response.start":
                process_time = time.time() - start_time
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time", f"{process_time * 1000:.2f}ms".encode()))
                message = {**message, "headers": headers}

                if process_time > self.slow_request_threshold:
                    path = scope.get("path", "")
                    method = scope.get("method", "")
                    self.logger.warning(
                        f"Slow request detected: {method} {path} took {process_time:.2f}s"
                    )

            await send(message)

        await self.app(scope, receive, send_wrapper)
