"""业务异常类定义

定义应用使用的业务异常类体系，以及树管理的领域异常。
"""

import copy
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from fastapi import status


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串使用。
    """

    # ==================== 通用错误 ====================
    BUSINESS_ERROR = "BUSINESS_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

    # ==================== 资源相关 (404) ====================
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    TREE_NOT_FOUND = "TREE_NOT_FOUND"
    TREE_NODE_NOT_FOUND = "TREE_NODE_NOT_FOUND"

    # ==================== 冲突相关 (409) ====================
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    TREE_NAME_EXISTS = "TREE_NAME_EXISTS"
    MALFORMED_HIERARCHY = "MALFORMED_HIERARCHY"

    # ==================== 验证相关 (422) ====================
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # ==================== 树操作相关 (400) ====================
    INVALID_TREE_OPERATION = "INVALID_TREE_OPERATION"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class BusinessException(Exception):
    """业务异常基类

    所有业务异常都应该继承此类。

    属性:
        message: 错误消息（面向用户）
        code: 错误代码（用于程序判断）
        status_code: HTTP 状态码
        details: 详细错误信息列表
        extra: 额外的上下文信息
    """

    def __init__(
        self,
        message: str,
        code: ErrorCodeType = ErrorCode.BUSINESS_ERROR,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or []
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


class ResourceNotFoundException(BusinessException):
    """资源不存在异常"""

    def __init__(
        self,
        message: str = "资源不存在",
        code: ErrorCodeType = ErrorCode.RESOURCE_NOT_FOUND,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            **extra
        )


class ResourceConflictException(BusinessException):
    """资源冲突异常"""

    def __init__(
        self,
        message: str = "资源冲突",
        code: ErrorCodeType = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            **extra
        )


class ValidationException(BusinessException):
    """数据验证异常

    使用示例:
        raise ValidationException(
            "数据验证失败",
            details=["sort_order 不能为负数"]
        )
    """

    def __init__(
        self,
        message: str = "数据验证失败",
        code: ErrorCodeType = ErrorCode.VALIDATION_ERROR,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=422,
            details=details,
            **extra
        )


# ==================== 树管理领域异常 ====================

class TreeNotFoundException(ResourceNotFoundException):
    """树不存在"""

    def __init__(self, tree_id: Any, message: str = None):
        super().__init__(
            message or f"树不存在: {tree_id}",
            code=ErrorCode.TREE_NOT_FOUND,
            tree_id=tree_id,
        )
        self.tree_id = tree_id


class TreeNodeNotFoundException(ResourceNotFoundException):
    """节点不存在

    节点存在但属于其他树时同样抛出此异常，调用方无法区分两种情况。
    """

    def __init__(self, node_id: Any, tree_id: Any = None, message: str = None):
        if message is None:
            message = f"节点不存在: {node_id}"
            if tree_id is not None:
                message = f"树 {tree_id} 中不存在节点: {node_id}"
        super().__init__(
            message,
            code=ErrorCode.TREE_NODE_NOT_FOUND,
            node_id=node_id,
            tree_id=tree_id,
        )
        self.node_id = node_id
        self.tree_id = tree_id


class MalformedHierarchyException(ResourceConflictException):
    """树结构异常：节点集合非空，但没有任何可解析的根节点"""

    def __init__(self, tree_id: Any = None, node_count: int = 0):
        super().__init__(
            "树结构无效：未找到根节点",
            code=ErrorCode.MALFORMED_HIERARCHY,
            tree_id=tree_id,
            node_count=node_count,
        )
        self.tree_id = tree_id
        self.node_count = node_count


class InvalidTreeOperationException(BusinessException):
    """非法的树操作（如重复删除、恢复未删除的树、把节点移动到自身子树下）"""

    def __init__(self, message: str, **extra: Any):
        super().__init__(
            message,
            code=ErrorCode.INVALID_TREE_OPERATION,
            status_code=status.HTTP_400_BAD_REQUEST,
            **extra
        )


class Err:
    """异常快捷创建类

    使用示例:
        from ytree.exceptions import Err

        raise Err.conflict("已存在同名的树", code=ErrorCode.TREE_NAME_EXISTS)
        raise Err.invalid("数据验证失败", details=["name 不能为空"])
    """

    @staticmethod
    def conflict(message: str = "资源冲突", **kwargs) -> ResourceConflictException:
        """资源冲突 (409)"""
        return ResourceConflictException(message, **kwargs)

    @staticmethod
    def invalid(message: str = "数据验证失败", **kwargs) -> ValidationException:
        """数据验证失败 (422)"""
        return ValidationException(message, **kwargs)
