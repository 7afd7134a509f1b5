"""全局异常处理器

提供 FastAPI 全局异常处理器，自动将异常转换为统一的 JSON 响应格式。
"""

import os
import sys
import traceback
from typing import Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ytree.log import get_logger
from ytree.response import ResponseStatus, ValidationErrorResponse
from .exceptions import BusinessException

logger = get_logger()


def _is_debug() -> bool:
    return os.getenv("DEBUG", "false").lower() == "true"


class ValidationErrorTranslator:
    """验证错误翻译器

    把 Pydantic v2 的错误类型翻译为中文提示，可通过 add_messages 扩展。

    使用示例:
        ValidationErrorTranslator.add_messages({
            "value_error.button_action": "按钮动作包含不安全的脚本",
        })
    """

    _custom_messages: Dict[str, str] = {}

    _builtin_messages: Dict[str, str] = {
        "missing": "此字段为必填项",
        "int_type": "必须是整数",
        "int_parsing": "必须是整数",
        "str_type": "必须是字符串",
        "bool_type": "必须是布尔值",
        "list_type": "必须是列表",
        "dict_type": "必须是对象",
        "model_type": "必须是有效的对象",
        "json_invalid": "JSON 格式不正确",
        "string_pattern_mismatch": "格式不正确",
        "extra_forbidden": "不允许额外的字段",
    }

    _context_message_templates: Dict[str, str] = {
        "string_too_short": "长度不能少于 {min_length} 个字符",
        "string_too_long": "长度不能超过 {max_length} 个字符",
        "greater_than": "必须大于 {gt}",
        "greater_than_equal": "必须大于或等于 {ge}",
        "less_than": "必须小于 {lt}",
        "less_than_equal": "必须小于或等于 {le}",
        "too_short": "元素数量不能少于 {min_length} 个",
        "too_long": "元素数量不能超过 {max_length} 个",
    }

    @classmethod
    def add_messages(cls, messages: Dict[str, str]) -> None:
        """添加自定义错误消息映射"""
        cls._custom_messages.update(messages)

    @classmethod
    def translate(cls, error_type: str, error: dict) -> Optional[str]:
        """翻译验证错误

        翻译优先级：自定义消息 > 带上下文的内置模板 > 内置静态消息。
        value_error（自定义校验器抛出的 ValueError）直接使用校验器给出的消息。

        Returns:
            翻译后的消息，无法翻译时返回 None
        """
        ctx = error.get("ctx") or {}

        if error_type in cls._custom_messages:
            return cls._custom_messages[error_type]

        if error_type in cls._context_message_templates:
            template = cls._context_message_templates[error_type]
            try:
                return template.format(**ctx)
            except (KeyError, IndexError):
                return template

        if error_type in ("enum", "literal_error"):
            return f"值必须是以下之一: {ctx.get('expected', '')}"

        if error_type == "value_error":
            reason = ctx.get("error")
            return str(reason) if reason is not None else None

        return cls._builtin_messages.get(error_type)


async def business_exception_handler(
    request: Request,
    exc: BusinessException
) -> JSONResponse:
    """业务异常处理器

    处理所有继承自 BusinessException 的异常，转换为统一的 JSON 响应。
    """
    logger.warning(
        f"Business exception occurred: {exc.code} - {exc.message}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_code": exc.code,
            "status_code": exc.status_code,
        }
    )

    content = {
        "status": ResponseStatus.ERROR.value,
        "message": exc.message,
        "msg_details": exc.details,
        "data": {},
    }
    if exc.code:
        content["error_code"] = exc.code.value if hasattr(exc.code, "value") else exc.code

    if _is_debug() and exc.extra:
        content["debug_info"] = {k: str(v) for k, v in exc.extra.items()}

    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Pydantic 验证异常处理器

    处理 FastAPI 的请求参数验证异常，转换为 "字段: 消息" 形式的错误列表。
    """
    errors = []
    for error in exc.errors():
        loc_parts = [str(loc) for loc in error["loc"] if loc not in ("body", "query", "path", "header", "cookie")]
        field = ".".join(loc_parts) if loc_parts else "请求体"

        translated_msg = ValidationErrorTranslator.translate(error["type"], error)
        errors.append(f"{field}: {translated_msg or error['msg']}")

    logger.warning(
        f"Validation error: {len(errors)} field(s) failed validation",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": errors
        }
    )

    return JSONResponse(
        status_code=422,
        content={
            "status": ResponseStatus.ERROR.value,
            "message": "请求参数验证失败",
            "msg_details": errors,
            "data": {},
            "error_code": "VALIDATION_ERROR"
        }
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """HTTP 异常处理器"""
    log_level = "warning" if exc.status_code < 500 else "error"
    getattr(logger, log_level)(
        f"HTTP exception: {exc.status_code} - {exc.detail}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": ResponseStatus.ERROR.value,
            "message": str(exc.detail),
            "msg_details": [],
            "data": {},
            "error_code": f"HTTP_{exc.status_code}"
        },
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """通用异常处理器

    捕获所有未被其他处理器处理的异常（包括持久化层错误），记录完整堆栈信息。
    """
    exc_type, exc_value, exc_traceback = sys.exc_info()
    tb_lines = traceback.format_exception(exc_type, exc_value, exc_traceback)

    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "traceback": "".join(tb_lines),
        }
    )

    content = {
        "status": ResponseStatus.ERROR.value,
        "message": "服务器内部错误",
        "msg_details": [],
        "data": {},
        "error_code": "INTERNAL_SERVER_ERROR"
    }

    if _is_debug():
        content["msg_details"] = [
            f"异常类型: {type(exc).__name__}",
            f"异常消息: {str(exc)}"
        ]

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content
    )


def register_exception_handlers(app) -> None:
    """注册所有异常处理器到 FastAPI 应用

    注册顺序：
    1. BusinessException - 业务异常处理器
    2. RequestValidationError - 参数验证异常处理器
    3. HTTPException - HTTP 异常处理器
    4. Exception - 通用异常处理器（兜底）
    """
    app.add_exception_handler(BusinessException, business_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.router.responses[422] = {
        "description": "请求参数验证失败",
        "model": ValidationErrorResponse,
    }

    logger.info("Exception handlers registered successfully")
