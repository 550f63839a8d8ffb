"""
统一异常体系

领域层以返回值（ValidationFailure）报告校验与不变量错误，
只有对外边界（HTTP 路由、CLI）和存储层才抛出异常。

提供:
- 业务异常基类 (ApplicationError)
- 常用异常类型
- HTTP 状态码映射
"""

from enum import Enum
from typing import Any, Dict, Optional, TYPE_CHECKING
from dataclasses import dataclass

if TYPE_CHECKING:
    from domains.label_hub.core.typecheck import ValidationFailure


class ErrorCategory(str, Enum):
    """错误分类"""
    VALIDATION = "validation"      # 参数验证错误
    NOT_FOUND = "not_found"        # 资源不存在
    UNAVAILABLE = "unavailable"    # 库处于终止性错误状态
    STORAGE = "storage"            # 持久化失败
    INTERNAL = "internal"          # 内部错误


@dataclass
class ApplicationError(Exception):
    """
    应用层异常基类

    使用示例:
        raise LabelNotFoundError("dog")
        raise InvariantError(failure)
    """
    code: str                                    # 错误码 (如 "NOT_FOUND", "INVARIANT_VIOLATION")
    message: str                                 # 用户可读的错误信息
    category: ErrorCategory = ErrorCategory.INTERNAL
    details: Optional[Dict[str, Any]] = None    # 附加详情
    cause: Optional[Exception] = None           # 原始异常

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    @property
    def http_status_code(self) -> int:
        """映射到 HTTP 状态码"""
        mapping = {
            ErrorCategory.VALIDATION: 400,
            ErrorCategory.NOT_FOUND: 404,
            ErrorCategory.UNAVAILABLE: 503,
            ErrorCategory.STORAGE: 500,
            ErrorCategory.INTERNAL: 500,
        }
        return mapping.get(self.category, 500)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式（用于 API 响应）"""
        result = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }
        if self.details:
            result["details"] = self.details
        return result


# ==================== 常用异常 ====================

class NotFoundError(ApplicationError):
    """资源不存在"""
    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource_type}不存在: {resource_id}",
            category=ErrorCategory.NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ValidationError(ApplicationError):
    """参数验证错误"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            category=ErrorCategory.VALIDATION,
            details=details
        )


class InvariantError(ValidationError):
    """
    不变量错误

    把领域层返回的 ValidationFailure 包装为异常，供对外边界使用。
    details 中保留 path / expected / got，便于调用方定位。
    """
    def __init__(self, failure: "ValidationFailure"):
        super().__init__(str(failure), details=failure.to_dict())
        self.code = "INVARIANT_VIOLATION"
        self.failure = failure


class DatabaseUnavailableError(ApplicationError):
    """加载阶段出现终止性错误，库不可用"""
    def __init__(self, failure: "ValidationFailure"):
        super().__init__(
            code="DATABASE_UNAVAILABLE",
            message=f"知识库加载失败: {failure}",
            category=ErrorCategory.UNAVAILABLE,
            details=failure.to_dict()
        )
        self.failure = failure


class StorageError(ApplicationError):
    """持久化读写失败"""
    def __init__(self, message: str, key: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(
            code="STORAGE_ERROR",
            message=message,
            category=ErrorCategory.STORAGE,
            details={"key": key} if key else None,
            cause=cause
        )


# ==================== 标签库相关异常 ====================

class LabelNotFoundError(NotFoundError):
    """标签不存在"""
    def __init__(self, name: str):
        super().__init__("标签", name)
        self.name = name


class TextNotFoundError(NotFoundError):
    """笔记不存在"""
    def __init__(self, text_id: int):
        super().__init__("笔记", text_id)
        self.text_id = text_id


# ==================== 导出 ====================

__all__ = [
    # 基类
    "ErrorCategory",
    "ApplicationError",
    # 通用异常
    "NotFoundError",
    "ValidationError",
    "InvariantError",
    "DatabaseUnavailableError",
    "StorageError",
    # 标签库异常
    "LabelNotFoundError",
    "TextNotFoundError",
]
