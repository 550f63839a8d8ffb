"""
Core - 通用应用基础设施

提供与具体领域无关的基础设施组件:
- 统一异常体系
- 结构化日志（见 logging 子模块）
"""

from .exceptions import (
    ApplicationError,
    DatabaseUnavailableError,
    ErrorCategory,
    InvariantError,
    LabelNotFoundError,
    NotFoundError,
    StorageError,
    TextNotFoundError,
    ValidationError,
)

__all__ = [
    "ErrorCategory",
    "ApplicationError",
    "NotFoundError",
    "ValidationError",
    "InvariantError",
    "DatabaseUnavailableError",
    "StorageError",
    "LabelNotFoundError",
    "TextNotFoundError",
]
