"""请求ID中间件

注意：使用纯 ASGI 中间件而非 BaseHTTPMiddleware，
因为 BaseHTTPMiddleware 会在 call_next 时创建新的任务上下文，
导致 ContextVar 的修改无法传播回父上下文，从而导致 session 清理失败。
"""

from ytree.orm.db_session import db_manager, on_request_end


class RequestIDMiddleware:
    """请求ID中间件（纯 ASGI 实现）

    为每个请求生成唯一ID，作为数据库 session 的作用域标识并写入 X-Request-ID 响应头。
    请求结束时自动提交未提交的更改并清理 session，防止连接泄漏。

    使用示例:
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = db_manager._set_request_id()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode()))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            # 与 _set_request_id 在同一个上下文中执行，ContextVar 修改可见
            on_request_end()


def get_request_id() -> str:
    return db_manager._get_request_id()
