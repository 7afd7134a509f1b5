"""响应模块

推荐使用示例（Resp 快捷类）:
    from ytree.response import Resp

    return Resp.OK(data=result)
    return Resp.NotFound(message="树不存在")
"""

from .base_response import (
    Resp,
    ResponseStatus,
    ItemResponse,
    OkResponse,
    ValidationErrorResponse,
    BaseResponse,
    SuccessResponse,
    ClientErrorResponse,
    ServerErrorResponse,
    OK,
    Created,
    BadRequest,
    NotFound,
    Conflict,
    InternalServerError,
)

__all__ = [
    "Resp",
    "ResponseStatus",
    "ItemResponse",
    "OkResponse",
    "ValidationErrorResponse",
    "BaseResponse",
    "SuccessResponse",
    "ClientErrorResponse",
    "ServerErrorResponse",
    "OK",
    "Created",
    "BadRequest",
    "NotFound",
    "Conflict",
    "InternalServerError",
]
