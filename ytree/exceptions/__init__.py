"""异常处理模块

提供业务异常类、树管理领域异常、全局异常处理器。

使用示例:
    from ytree.exceptions import Err, register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

    raise Err.conflict("已存在同名的树")
"""

from .exceptions import (
    Err,
    ErrorCode,
    ErrorCodeType,
    BusinessException,
    ResourceNotFoundException,
    ResourceConflictException,
    ValidationException,
    TreeNotFoundException,
    TreeNodeNotFoundException,
    MalformedHierarchyException,
    InvalidTreeOperationException,
)

from .handlers import (
    register_exception_handlers,
    business_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    general_exception_handler,
    ValidationErrorTranslator,
)

__all__ = [
    "Err",
    "ErrorCode",
    "ErrorCodeType",
    "BusinessException",
    "ResourceNotFoundException",
    "ResourceConflictException",
    "ValidationException",
    "TreeNotFoundException",
    "TreeNodeNotFoundException",
    "MalformedHierarchyException",
    "InvalidTreeOperationException",
    "register_exception_handlers",
    "business_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
    "general_exception_handler",
    "ValidationErrorTranslator",
]
